"""Ready-made primitives for apiwrap backends.

The generator core never talks to the network: it calls whatever primitives
the host program registers.  This sub-package offers one such supplier,
:class:`HttpxPrimitives`, backed by :class:`httpx.Client`.

Example::

    from apiwrap.client import HttpxPrimitives
    from apiwrap.config import resolve_client_config

    with HttpxPrimitives(resolve_client_config()) as client:
        primitives = client.primitives()
"""

from apiwrap.client.primitives import HttpxPrimitives
from apiwrap.client.response import extract_response_data

__all__ = ["HttpxPrimitives", "extract_response_data"]
