"""Canonical Pydantic models shared across all apiwrap modules.

The models fall into two groups:

**Generator models** -- consumed by the registry and the resource generator:
    :class:`Verb`, :class:`BackendConfig`, :class:`Interpolation` and
    :class:`ResourceSpec`.

**Client configuration** -- consumed by :mod:`apiwrap.client`:
    :class:`ClientConfig`.

:class:`BackendConfig` is frozen once built.  :class:`ResourceSpec` is a
transient description: the generator reads it while building a function and
the generated function never refers back to it.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Verb(str, enum.Enum):
    """HTTP verbs a backend can bind a primitive to."""

    GET = "GET"
    PUT = "PUT"
    HEAD = "HEAD"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Any) -> Verb:
        """Coerce ``"get"``, ``"GET"`` or a :class:`Verb` into a :class:`Verb`.

        Raises:
            ValueError: If *value* names no known verb.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


ALL_VERBS: frozenset[Verb] = frozenset(Verb)
"""Every verb; the default set of bindings a backend must supply."""


# --- Generator models ---


class BackendConfig(BaseModel):
    """Per-backend configuration, owned by the :class:`~apiwrap.registry.BackendRegistry`.

    Built once by :meth:`~apiwrap.registry.BackendRegistry.register` and never
    mutated afterwards: the model is frozen and both mappings are exposed as
    read-only proxies.

    Example::

        BackendConfig(
            service_name="GitHub",
            function_prefix="ghubp",
            standard_params={"repo": "A repository object."},
            doc_link_formatter=lambda v, frag: f"https://developer.github.com/v{v}/{frag}",
            primitives={Verb.GET: ghub_get},
        )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_name: str = Field(description="Human-readable API name, e.g. 'GitHub'")
    function_prefix: str = Field(description="Prefix of every generated function name")
    standard_params: Mapping[str, str] = Field(
        default_factory=dict,
        description="Glossary of parameter name to description",
    )
    doc_link_formatter: Callable[[int, str], str]
    primitives: Mapping[Verb, Callable[..., Any]] = Field(default_factory=dict)

    @field_validator("standard_params", mode="after")
    @classmethod
    def _freeze_glossary(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_validator("primitives", mode="after")
    @classmethod
    def _freeze_primitives(
        cls, value: Mapping[Verb, Callable[..., Any]]
    ) -> Mapping[Verb, Callable[..., Any]]:
        return MappingProxyType(dict(value))

    def doc_url(self, api_version: int, fragment: str) -> str:
        """Format the documentation link for one endpoint."""
        return self.doc_link_formatter(api_version, fragment)

    def describe(self, param: str) -> Optional[str]:
        """Return the glossary description of *param*, or ``None``."""
        return self.standard_params.get(param)


class Interpolation(BaseModel):
    """How to compute a resource's request path from call-time objects.

    ``params`` names the parameters of the generated function that receive
    domain objects; the first one is the *primary* object, whose fields can
    be referenced by bare tokens (``:name``) in ``path_template``.  Tokens
    rooted at a parameter name (``:repo.owner.login``) descend from that
    parameter instead.

    A single-object interpolation is usually written as a pair::

        Interpolation.of(("repo", "/repos/:owner.login/:name/issues"))
    """

    model_config = ConfigDict(frozen=True)

    params: tuple[str, ...] = Field(min_length=1)
    path_template: str

    @property
    def param_name(self) -> str:
        """The primary object's parameter name."""
        return self.params[0]

    @classmethod
    def of(cls, value: Any) -> Interpolation:
        """Build an :class:`Interpolation` from a model, mapping or ``(params, template)`` pair.

        The first element of a pair may be a single parameter name or a
        sequence of names.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.model_validate(value)
        params, template = value
        if isinstance(params, str):
            params = (params,)
        return cls(params=tuple(params), path_template=template)


class ResourceSpec(BaseModel):
    """Declarative description of one endpoint, expanded into one function.

    ``default_path`` is the endpoint as the API documentation writes it; it
    is what the generated docstring shows and, when no ``interpolation`` is
    given, the literal path sent to the primitive.
    """

    verb: Verb
    default_path: str
    docstring: str = ""
    api_version: int = 3
    doc_fragment: str = ""
    interpolation: Optional[Interpolation] = None
    extra_params: tuple[str, ...] = ()

    @field_validator("verb", mode="before")
    @classmethod
    def _parse_verb(cls, value: Any) -> Verb:
        return Verb.parse(value)

    @field_validator("interpolation", mode="before")
    @classmethod
    def _parse_interpolation(cls, value: Any) -> Optional[Interpolation]:
        if value is None:
            return None
        try:
            return Interpolation.of(value)
        except TypeError as exc:
            raise ValueError(f"invalid interpolation {value!r}: {exc}") from exc

    @model_validator(mode="after")
    def _check_path(self) -> ResourceSpec:
        if not self.default_path:
            raise ValueError("default_path must not be empty")
        return self

    @property
    def effective_path(self) -> str:
        """The template used to build the request path at call time."""
        if self.interpolation is not None:
            return self.interpolation.path_template
        return self.default_path


# --- Client configuration ---


class ClientConfig(BaseModel):
    """Settings for the httpx-backed primitives in :mod:`apiwrap.client`.

    Resolved by :func:`~apiwrap.config.resolve_client_config` from explicit
    arguments, ``APIWRAP_*`` environment variables and ``./apiwrap.json``.
    """

    base_url: str = Field(default="", description="Prepended to every request path")
    token_source: Optional[str] = Field(
        default=None,
        description="Credential source: env:VAR or file:/path",
    )
    auth_scheme: str = Field(default="token", description="Authorization header scheme")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
