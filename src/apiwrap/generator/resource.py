"""Expand a :class:`~apiwrap.models.ResourceSpec` into a callable function.

This is the core algorithm of apiwrap.  Generation happens once, at setup
time; everything the generated function needs at call time is captured in a
small closure, and the resource description itself is dropped.

**Generation**

1. Look up the primitive bound to the resource's verb.
2. Collect the formal parameters: interpolation objects first, then extra
   parameters, then the ``*params`` collector, the keyword-only ``data``
   payload and the ``**options`` collector.
3. Synthesize the docstring from the backend glossary.
4. Compile a real function whose :func:`inspect.signature` matches the
   parameter list, so that ``help()``, IDEs and editors show it.

**Call time**

1. Resolve the request path: the interpolation template against the bound
   objects, or the literal default path.
2. Normalise ``*params`` and ``**options`` into ordered request parameters.
3. Call ``primitive(path, params, data)`` and return whatever it returns.

Nothing reaches the primitive when step 1 or 2 fails, and nothing the
primitive raises is caught.
"""

from __future__ import annotations

import keyword
import logging
import re
from collections import ChainMap
from collections.abc import Mapping
from typing import Any, Callable, Optional, Sequence

from apiwrap.exceptions import ConfigError
from apiwrap.generator.arguments import collect
from apiwrap.generator.docs import DATA_PARAM, REST_PARAM, synthesize
from apiwrap.generator.params import map_parameter, merge_param_names
from apiwrap.generator.paths import resolve_path, template_roots
from apiwrap.models import BackendConfig, ResourceSpec, Verb

logger = logging.getLogger(__name__)

OPTIONS_PARAM = "options"
RESERVED_NAMES = frozenset({DATA_PARAM, REST_PARAM, OPTIONS_PARAM})

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Global the compiled function calls; a function of the same name would replace it.
_INVOKER_NAME = "_invoke"


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def generate(
    backend: BackendConfig,
    spec: ResourceSpec,
    extra_params: Sequence[str] = (),
    *,
    name: Optional[str] = None,
) -> Callable[..., Any]:
    """Generate the function wrapping one endpoint of *backend*.

    Args:
        backend: The registered backend configuration.
        spec: Declarative description of the endpoint.
        extra_params: Additional named parameters, appended after
            ``spec.extra_params``.  Their call-time values can be referenced
            by bare tokens of the interpolation template.
        name: Function name override.  Defaults to
            :func:`function_name` of the backend prefix, verb and path.

    Returns:
        A function with signature
        ``(<objects>, <extras>, *params, data=None, **options)``.

    Raises:
        ConfigError: If the verb has no bound primitive, or the parameter
            list or function name is not valid.

    Example::

        list_issues = generate(
            backend,
            ResourceSpec(
                verb="GET",
                default_path="/repos/:owner/:repo/issues",
                docstring="List issues for a repository.",
                api_version=3,
                doc_fragment="issues/#list-issues-for-a-repository",
                interpolation=("repo", "/repos/:owner.login/:name/issues"),
            ),
        )
        list_issues({"owner": {"login": "octo"}, "name": "hello"}, state="open")
    """
    primitive = backend.primitives.get(spec.verb)
    if primitive is None:
        raise ConfigError(
            f"Backend '{backend.function_prefix}' has no primitive bound to "
            f"{spec.verb.value} (needed by {spec.verb.value} {spec.default_path})"
        )

    interpolation = spec.interpolation
    object_names: tuple[str, ...] = interpolation.params if interpolation else ()
    extra_names = merge_param_names(
        spec.extra_params, tuple(extra_params), exclude=object_names,
    )
    if extra_names and interpolation is None:
        logger.debug(
            "%s %s declares extra parameters %s but no interpolation; "
            "the literal path is used",
            spec.verb.value,
            spec.default_path,
            extra_names,
        )

    descriptors = [map_parameter(p, backend, is_object=True) for p in object_names]
    descriptors += [map_parameter(p, backend) for p in extra_names]
    _check_parameter_names(descriptors, spec)

    func_name = name or function_name(backend.function_prefix, spec.verb, spec.default_path)
    if not _IDENT_RE.fullmatch(func_name) or keyword.iskeyword(func_name):
        raise ConfigError(f"'{func_name}' is not a valid function name")
    if func_name == _INVOKER_NAME:
        raise ConfigError(f"'{func_name}' is reserved for the generated call wrapper")

    doc = synthesize(
        spec.verb,
        spec.default_path,
        spec.docstring,
        backend.doc_url(spec.api_version, spec.doc_fragment),
        [(d["name"], d["help"]) for d in descriptors],
        service_name=backend.service_name,
    )

    invoke = _make_invoker(
        primitive,
        spec.verb,
        spec.default_path,
        interpolation.path_template if interpolation else None,
        object_names[0] if object_names else None,
    )
    fn = _compile_function(func_name, descriptors, invoke)

    fn.__doc__ = doc
    fn.endpoint = f"{spec.verb.value} {spec.default_path}"  # type: ignore[attr-defined]

    logger.debug(
        "Generated %s for %s %s",
        func_name,
        spec.verb.value,
        spec.effective_path,
    )
    return fn


def function_name(prefix: str, verb: Verb | str, path: str) -> str:
    """Derive the generated function name for an endpoint.

    Example::

        >>> function_name("ghubp", Verb.GET, "/repos/:owner/:repo/issues")
        'ghubp_get_repos_owner_repo_issues'
        >>> function_name("ghubp", Verb.GET, "/")
        'ghubp_get'
    """
    verb_text = verb.value if isinstance(verb, Verb) else str(verb)
    parts = [_slugify(prefix), verb_text.lower()]
    path_slug = _slugify(path)
    if path_slug:
        parts.append(path_slug)
    return "_".join(parts)


# ---------------------------------------------------------------------------
# Call-time dispatch
# ---------------------------------------------------------------------------


def _make_invoker(
    primitive: Callable[..., Any],
    verb: Verb,
    literal_path: str,
    template: Optional[str],
    primary: Optional[str],
) -> Callable[..., Any]:
    """Return the closure that performs one call of a generated function.

    Args:
        primitive: The backend primitive for the resource's verb.
        verb: The resource's verb, for logging.
        literal_path: Path used when there is no interpolation.
        template: Interpolation template, or ``None``.
        primary: Name of the primary object parameter, or ``None``.

    Returns:
        A function ``(named, flat, data, options) -> Any`` where *named*
        maps declared parameter symbols to their call-time values.
    """

    def _invoke(
        named: dict[str, Any],
        flat: tuple[Any, ...],
        data: Any,
        options: dict[str, Any],
    ) -> Any:
        if template is None:
            path = literal_path
        else:
            path = resolve_path(template, _bindings(named, primary))
        request_params = collect(flat, options)
        logger.debug("%s %s params=%r", verb.value, path, request_params)
        return primitive(path, request_params, data)

    return _invoke


def _bindings(named: dict[str, Any], primary: Optional[str]) -> Mapping[str, Any]:
    """Layer the named parameters over the fields of the primary object.

    Named parameters shadow object fields, so ``:repo.name`` always means
    the ``repo`` parameter even if the object has a ``repo`` field.
    """
    if primary is None:
        return named
    obj = named.get(primary)
    if isinstance(obj, Mapping):
        return ChainMap(named, obj)
    return named


# ---------------------------------------------------------------------------
# Function construction
# ---------------------------------------------------------------------------


def _compile_function(
    func_name: str,
    descriptors: list[dict[str, Any]],
    invoke: Callable[..., Any],
) -> Callable[..., Any]:
    """Build a real function whose signature lists the declared parameters.

    The source is built as a string, compiled, and executed into a private
    namespace holding only *invoke*.  Parameter names have been checked to
    be identifiers, so the source cannot contain anything else.
    """
    positional = [d["name"] for d in descriptors]
    sig = ", ".join(
        positional + [f"*{REST_PARAM}", f"{DATA_PARAM}=None", f"**{OPTIONS_PARAM}"]
    )
    named = ", ".join(f"{d['original_name']!r}: {d['name']}" for d in descriptors)
    source = (
        f"def {func_name}({sig}):\n"
        f"    return {_INVOKER_NAME}({{{named}}}, {REST_PARAM}, {DATA_PARAM}, {OPTIONS_PARAM})\n"
    )

    namespace: dict[str, Any] = {_INVOKER_NAME: invoke}
    code = compile(source, f"<apiwrap:{func_name}>", "exec")
    exec(code, namespace)  # noqa: S102 -- controlled code generation
    fn = namespace[func_name]
    fn.__qualname__ = func_name
    return fn


def _check_parameter_names(descriptors: list[dict[str, Any]], spec: ResourceSpec) -> None:
    """Reject parameter lists that cannot form a valid signature."""
    seen: dict[str, str] = {}
    for desc in descriptors:
        py_name = desc["name"]
        if py_name in RESERVED_NAMES:
            raise ConfigError(
                f"Parameter '{desc['original_name']}' of {spec.verb.value} "
                f"{spec.default_path} clashes with the reserved name '{py_name}'"
            )
        if py_name in seen:
            raise ConfigError(
                f"Parameters '{seen[py_name]}' and '{desc['original_name']}' of "
                f"{spec.verb.value} {spec.default_path} both map to '{py_name}'"
            )
        seen[py_name] = desc["original_name"]

    if spec.interpolation is not None:
        roots = template_roots(spec.interpolation.path_template)
        declared = set(seen.values())
        unknown = [r for r in roots if r not in declared]
        if unknown:
            logger.debug(
                "Tokens %s of '%s' will be looked up in the '%s' object at call time",
                unknown,
                spec.interpolation.path_template,
                spec.interpolation.param_name,
            )


def _slugify(value: str) -> str:
    """Turn *value* into an identifier fragment (``"/a/:b-c"`` -> ``"a_b_c"``)."""
    result = value.lower()
    result = "".join(c if c.isalnum() or c == "_" else "_" for c in result)
    result = re.sub(r"_+", "_", result)
    return result.strip("_")
