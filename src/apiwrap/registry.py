"""Backend registry -- per-service configuration and resource definers.

This module contains :class:`BackendRegistry`, which validates and stores one
:class:`~apiwrap.models.BackendConfig` per function prefix, and
:class:`Backend`, the facade returned to host programs.  A backend offers one
*definer* per HTTP verb; each definer turns an endpoint description into a
generated function::

    github = register_backend(
        "GitHub",
        "ghubp",
        glossary,
        lambda version, fragment: f"https://developer.github.com/v{version}/{fragment}",
        {"GET": ghub_get, "POST": ghub_post, ...},
    )
    get_issues = github.get("/issues", "List issues.", 3, "issues/#list-issues")

Registration is expected to happen at setup time.  Writes to a registry are
serialised with a lock and reads work on a snapshot, so generated functions
can be called from many threads while a backend is being re-registered.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Sequence

from apiwrap.exceptions import ConfigError
from apiwrap.generator.resource import generate
from apiwrap.models import ALL_VERBS, BackendConfig, ResourceSpec, Verb

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")


class BackendRegistry:
    """Process-wide store of backend configurations keyed by function prefix.

    Re-registering a prefix replaces the previous configuration (last writer
    wins): it stands for re-evaluating the same backend definition.

    Example::

        registry = BackendRegistry()
        config = registry.register("GitHub", "ghubp", {}, link, primitives)
        assert registry.get("ghubp") is config
    """

    def __init__(self) -> None:
        self._backends: dict[str, BackendConfig] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        service_name: str,
        function_prefix: str,
        standard_params: Mapping[str, str],
        doc_link_formatter: Callable[[int, str], str],
        primitives: Mapping[Any, Callable[..., Any]],
        *,
        required_verbs: Iterable[Any] = ALL_VERBS,
    ) -> BackendConfig:
        """Validate and store a backend configuration.

        Args:
            service_name: Human-readable API name used in docstrings.
            function_prefix: Prefix of every generated function name; also
                the registry key.
            standard_params: Glossary of parameter symbol to description.
            doc_link_formatter: ``(api_version, fragment) -> url``.
            primitives: Verb to primitive function.  Keys may be
                :class:`~apiwrap.models.Verb` members or verb names in any
                case (``"get"``, ``"GET"``).
            required_verbs: Verbs that must have a primitive.  Defaults to
                all six.

        Returns:
            The stored, frozen :class:`~apiwrap.models.BackendConfig`.

        Raises:
            ConfigError: If the prefix is empty or unusable in a function
                name, a required verb has no primitive, a primitive or the
                link formatter is not callable, or a key names no verb.
        """
        if not function_prefix:
            raise ConfigError("Backend function prefix must not be empty")
        if not _PREFIX_RE.fullmatch(function_prefix):
            raise ConfigError(
                f"Backend function prefix '{function_prefix}' cannot start a "
                f"function name"
            )
        if not callable(doc_link_formatter):
            raise ConfigError(
                f"Documentation link formatter of '{function_prefix}' is not callable"
            )

        bound = _parse_primitives(function_prefix, primitives)
        required = {_parse_verb(function_prefix, v) for v in required_verbs}
        missing = sorted(v.value for v in required if v not in bound)
        if missing:
            raise ConfigError(
                f"Backend '{function_prefix}' has no primitive for "
                f"{', '.join(missing)}"
            )

        try:
            config = BackendConfig(
                service_name=service_name,
                function_prefix=function_prefix,
                standard_params=dict(standard_params or {}),
                doc_link_formatter=doc_link_formatter,
                primitives=bound,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid backend '{function_prefix}': {exc}") from exc

        with self._lock:
            replaced = function_prefix in self._backends
            backends = dict(self._backends)
            backends[function_prefix] = config
            self._backends = backends

        if replaced:
            logger.debug("Re-registered backend '%s' (%s)", function_prefix, service_name)
        else:
            logger.debug("Registered backend '%s' (%s)", function_prefix, service_name)
        return config

    def unregister(self, function_prefix: str) -> None:
        """Remove a backend.

        Raises:
            ConfigError: If no backend uses *function_prefix*.
        """
        with self._lock:
            if function_prefix not in self._backends:
                raise ConfigError(f"No backend registered as '{function_prefix}'")
            backends = dict(self._backends)
            del backends[function_prefix]
            self._backends = backends
        logger.debug("Unregistered backend '%s'", function_prefix)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, function_prefix: str) -> BackendConfig:
        """Return the configuration registered under *function_prefix*.

        Raises:
            ConfigError: If no backend uses *function_prefix*.
        """
        config = self._backends.get(function_prefix)
        if config is None:
            raise ConfigError(f"No backend registered as '{function_prefix}'")
        return config

    def prefixes(self) -> list[str]:
        """Return the registered prefixes, sorted alphabetically."""
        return sorted(self._backends)

    def __contains__(self, function_prefix: object) -> bool:
        return function_prefix in self._backends

    def __len__(self) -> int:
        return len(self._backends)


class Backend:
    """Facade over one registered backend, exposing a definer per verb.

    Definers read the current configuration from the registry each time they
    run, so resources defined after a re-registration use the new primitives
    while functions generated earlier keep the ones they were built with.

    Args:
        registry: The registry holding the configuration.
        function_prefix: The backend's key in *registry*.
    """

    def __init__(self, registry: BackendRegistry, function_prefix: str) -> None:
        self._registry = registry
        self._prefix = function_prefix
        self._resources: dict[str, Callable[..., Any]] = {}

    @property
    def config(self) -> BackendConfig:
        """The backend's current configuration."""
        return self._registry.get(self._prefix)

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def resources(self) -> Mapping[str, Callable[..., Any]]:
        """Generated functions by name, in definition order."""
        return dict(self._resources)

    # ------------------------------------------------------------------
    # Definers
    # ------------------------------------------------------------------

    def define(
        self,
        spec: ResourceSpec,
        extra_params: Sequence[str] = (),
        *,
        name: Optional[str] = None,
    ) -> Callable[..., Any]:
        """Generate and record the function for *spec*.

        Raises:
            ConfigError: See :func:`~apiwrap.generator.resource.generate`.
        """
        fn = generate(self.config, spec, extra_params, name=name)
        self._resources[fn.__name__] = fn
        return fn

    def define_all(self, specs: Iterable[ResourceSpec]) -> dict[str, Callable[..., Any]]:
        """Generate a function for every spec of a resource table."""
        generated: dict[str, Callable[..., Any]] = {}
        for spec in specs:
            fn = self.define(spec)
            generated[fn.__name__] = fn
        return generated

    def resource(
        self,
        verb: Verb | str,
        path: str,
        docstring: str = "",
        api_version: int = 3,
        doc_fragment: str = "",
        interpolation: Any = None,
        *,
        extra_params: Sequence[str] = (),
        name: Optional[str] = None,
    ) -> Callable[..., Any]:
        """Describe and generate one resource.

        Args:
            verb: HTTP verb.
            path: The endpoint as documented; the literal request path when
                there is no *interpolation*.
            docstring: Summary shown first in the generated docstring.
            api_version: Passed to the backend's link formatter.
            doc_fragment: Passed to the backend's link formatter.
            interpolation: ``(param_name, template)``, ``((names...),
                template)`` or an :class:`~apiwrap.models.Interpolation`.
            extra_params: Further named parameters.
            name: Function name override.

        Raises:
            ConfigError: If the description is invalid or the verb has no
                primitive.
        """
        try:
            spec = ResourceSpec(
                verb=verb,
                default_path=path,
                docstring=docstring,
                api_version=api_version,
                doc_fragment=doc_fragment,
                interpolation=interpolation,
                extra_params=tuple(extra_params),
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid resource {verb} {path}: {exc}") from exc
        return self.define(spec, name=name)

    def get(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a GET resource.  See :meth:`resource`."""
        return self.resource(Verb.GET, path, *args, **kwargs)

    def put(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a PUT resource.  See :meth:`resource`."""
        return self.resource(Verb.PUT, path, *args, **kwargs)

    def head(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a HEAD resource.  See :meth:`resource`."""
        return self.resource(Verb.HEAD, path, *args, **kwargs)

    def post(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a POST resource.  See :meth:`resource`."""
        return self.resource(Verb.POST, path, *args, **kwargs)

    def patch(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a PATCH resource.  See :meth:`resource`."""
        return self.resource(Verb.PATCH, path, *args, **kwargs)

    def delete(self, path: str, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Define a DELETE resource.  See :meth:`resource`."""
        return self.resource(Verb.DELETE, path, *args, **kwargs)

    def __repr__(self) -> str:
        return f"Backend({self._prefix!r}, resources={len(self._resources)})"


# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------

default_registry = BackendRegistry()
"""The registry used by :func:`register_backend` unless another is given."""


def register_backend(
    service_name: str,
    function_prefix: str,
    standard_params: Mapping[str, str],
    doc_link_formatter: Callable[[int, str], str],
    primitives: Mapping[Any, Callable[..., Any]],
    *,
    required_verbs: Iterable[Any] = ALL_VERBS,
    registry: Optional[BackendRegistry] = None,
) -> Backend:
    """Register a backend and return its :class:`Backend` facade.

    Arguments are those of :meth:`BackendRegistry.register`; *registry*
    defaults to :data:`default_registry`.
    """
    target = registry if registry is not None else default_registry
    target.register(
        service_name,
        function_prefix,
        standard_params,
        doc_link_formatter,
        primitives,
        required_verbs=required_verbs,
    )
    return Backend(target, function_prefix)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_verb(prefix: str, value: Any) -> Verb:
    try:
        return Verb.parse(value)
    except ValueError:
        raise ConfigError(f"Backend '{prefix}' names an unknown verb {value!r}") from None


def _parse_primitives(
    prefix: str,
    primitives: Mapping[Any, Callable[..., Any]],
) -> dict[Verb, Callable[..., Any]]:
    """Normalise primitive keys to :class:`Verb` and check they are callable."""
    bound: dict[Verb, Callable[..., Any]] = {}
    for key, fn in (primitives or {}).items():
        verb = _parse_verb(prefix, key)
        if not callable(fn):
            raise ConfigError(
                f"Primitive for {verb.value} of backend '{prefix}' is not callable"
            )
        bound[verb] = fn
    return bound
