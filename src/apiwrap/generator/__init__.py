"""Resource generator -- turn resource descriptions into documented functions.

This sub-package holds the generation-time engine and the call-time helpers
every generated function relies on.

Typical usage::

    from apiwrap.generator import generate
    from apiwrap.models import ResourceSpec

    fn = generate(backend_config, ResourceSpec(verb="GET", default_path="/issues"))
    fn(state="closed")

Sub-modules:

* :mod:`~apiwrap.generator.resource` -- Builds the function for one
  resource, wiring the pieces below to the backend's primitive.
* :mod:`~apiwrap.generator.paths` -- Parse path templates and resolve
  ``:dotted.tokens`` against nested mappings.
* :mod:`~apiwrap.generator.arguments` -- Normalise keyword/value sequences
  into ordered request parameters.
* :mod:`~apiwrap.generator.docs` -- Synthesize generated docstrings.
* :mod:`~apiwrap.generator.params` -- Map declared parameter symbols to
  Python identifiers and glossary descriptions.
"""

from apiwrap.generator.arguments import RequestParams, normalize
from apiwrap.generator.docs import synthesize
from apiwrap.generator.paths import parse_template, resolve_path
from apiwrap.generator.resource import function_name, generate

__all__ = [
    "RequestParams",
    "function_name",
    "generate",
    "normalize",
    "parse_template",
    "resolve_path",
    "synthesize",
]
