"""Inspect commands -- examine resource tables and generated functions.

Provides the ``apiwrap inspect`` sub-command group with read-only commands:

* ``table FILE`` -- list the resources of a YAML/JSON resource table and the
  function names they would generate.
* ``backend MODULE:ATTR`` -- list the functions generated on a
  :class:`~apiwrap.registry.Backend` (or a mapping of generated functions)
  found in an importable module.
* ``doc MODULE:ATTR NAME`` -- print the docstring of one generated function.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any, Callable

import typer

from apiwrap.exceptions import ApiwrapError
from apiwrap.exit_codes import EXIT_INVALID_USAGE
from apiwrap.generator.docs import parse_args_block
from apiwrap.generator.resource import function_name
from apiwrap.loader import load_resources
from apiwrap.output import get_output
from apiwrap.registry import Backend


inspect_app = typer.Typer(no_args_is_help=True)


@inspect_app.command("table")
def inspect_table(
    source: str = typer.Argument(..., help="Resource table file, URL, or '-' for stdin."),
    prefix: str = typer.Option(
        "api", "--prefix", help="Function prefix used to derive function names."
    ),
) -> None:
    """List the resources of a table.

    Example::

        apiwrap inspect table resources.yaml --prefix ghubp
    """
    try:
        specs = load_resources(source)
    except ApiwrapError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not specs:
        get_output().info("Resource table is empty.")
        return

    rows: list[dict[str, str]] = []
    for spec in specs:
        params = list(spec.interpolation.params) if spec.interpolation else []
        params += [p for p in spec.extra_params if p not in params]
        if spec.extra_params and spec.interpolation is None:
            get_output().warning(
                f"{spec.verb.value} {spec.default_path}: parameters "
                f"{', '.join(spec.extra_params)} are not used in the literal path"
            )
        rows.append({
            "Function": function_name(prefix, spec.verb, spec.default_path),
            "Verb": spec.verb.value,
            "Path": spec.effective_path,
            "Parameters": ", ".join(params) or "-",
            "Link": f"v{spec.api_version} {spec.doc_fragment}".rstrip(),
        })

    get_output().print_listing(rows, title=f"Resources ({len(rows)})")


@inspect_app.command("backend")
def inspect_backend(
    target: str = typer.Argument(..., help="MODULE:ATTR naming a Backend or a dict of functions."),
) -> None:
    """List the functions generated on a backend.

    Example::

        apiwrap inspect backend mypackage.github:backend
    """
    functions = _load_functions(target)
    if not functions:
        get_output().info(f"No generated functions found in {target}.")
        return

    rows = [
        {
            "Function": name,
            "Endpoint": getattr(fn, "endpoint", "-"),
            "Parameters": ", ".join(parse_args_block(fn.__doc__ or "")) or "-",
            "Summary": _summary(fn),
        }
        for name, fn in functions.items()
    ]
    get_output().print_listing(rows, title=f"{target} ({len(rows)})")


@inspect_app.command("doc")
def inspect_doc(
    target: str = typer.Argument(..., help="MODULE:ATTR naming a Backend or a dict of functions."),
    name: str = typer.Argument(..., help="Generated function name."),
) -> None:
    """Print the docstring of one generated function.

    Example::

        apiwrap inspect doc mypackage.github:backend ghubp_get_issues
    """
    functions = _load_functions(target)
    fn = functions.get(name)
    if fn is None:
        get_output().error(f"No function '{name}' in {target}")
        known = ", ".join(sorted(functions)) or "none"
        get_output().info(f"Known functions: {known}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    get_output().print_docstring(name, fn.__doc__ or "")


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _load_functions(target: str) -> dict[str, Callable[..., Any]]:
    """Import ``MODULE:ATTR`` and return its generated functions by name.

    Raises:
        typer.Exit: With code 2 when the target cannot be imported or is
            neither a Backend nor a mapping of callables.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        get_output().error(f"Expected MODULE:ATTR, got '{target}'")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    get_output().debug(f"Importing {module_name}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        get_output().error(f"Cannot import {module_name}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    try:
        value = getattr(module, attr)
    except AttributeError:
        get_output().error(f"Module {module_name} has no attribute '{attr}'")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if isinstance(value, Backend):
        return dict(value.resources)
    if isinstance(value, Mapping) and all(callable(v) for v in value.values()):
        return {str(k): v for k, v in value.items()}

    get_output().error(f"{target} is a {type(value).__name__}, not a Backend or a mapping of functions")
    raise typer.Exit(code=EXIT_INVALID_USAGE)


def _summary(fn: Callable[..., Any]) -> str:
    """First line of a generated docstring, or '-'."""
    doc = (fn.__doc__ or "").strip()
    if not doc:
        return "-"
    first = doc.splitlines()[0]
    # Undocumented resources start straight with the Args block.
    return "-" if first == "Args:" else first
