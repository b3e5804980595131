"""Numeric process exit codes used by the ``apiwrap`` command line tool.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apiwrap.exceptions.ApiwrapError` subclass, so shell
wrappers can tell failure classes apart without parsing stderr.

Example::

    $ apiwrap resolve '/repos/:owner.login/:name' '{"owner": {}}'
    $ echo $?
    4   # EXIT_INTERPOLATION_ERROR -- a token could not be resolved
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, including a malformed keyword/value sequence."""

EXIT_CONFIG_ERROR = 3
"""A backend or resource definition is incomplete or malformed."""

EXIT_INTERPOLATION_ERROR = 4
"""A path token could not be resolved against the supplied objects."""

EXIT_DEFINITION_ERROR = 5
"""A resource table file could not be loaded or parsed."""

EXIT_HTTP_ERROR = 6
"""The bundled httpx primitives received an error response or lost the connection."""
