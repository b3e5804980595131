"""Map declared resource parameters to formal parameters of generated functions.

Resource definitions name their parameters with API-style symbols (``repo``,
``issue``, ``orgName``, ``team-slug``).  Generated functions need valid
Python identifiers, while path templates keep referring to the original
symbols.  :func:`map_parameter` records both, together with the glossary
description used in the generated docstring.
"""

from __future__ import annotations

import keyword
import logging
import re
from typing import Any

from apiwrap.models import BackendConfig

logger = logging.getLogger(__name__)

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert a parameter symbol to a valid Python identifier.

    Applies the following transformations in order:

    1. CamelCase boundaries are split with underscores (``orgName`` becomes
       ``org_name``).
    2. The string is lowercased.
    3. Hyphens and dots are replaced with underscores.
    4. Any remaining non-alphanumeric/non-underscore characters are replaced.
    5. Consecutive and leading/trailing underscores are collapsed.
    6. An empty result defaults to ``"param"``.
    7. A leading digit gets an underscore prefix.
    8. Python keywords get a trailing underscore per PEP 8 convention
       (e.g., ``"from"`` becomes ``"from_"``).

    Example::

        >>> sanitize_param_name("orgName")
        'org_name'
        >>> sanitize_param_name("team-slug")
        'team_slug'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = result.replace("-", "_").replace(".", "_")
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def map_parameter(name: str, backend: BackendConfig, *, is_object: bool = False) -> dict[str, Any]:
    """Describe one named formal parameter of a generated function.

    Args:
        name: The parameter symbol as declared by the resource.
        backend: The backend whose glossary documents the parameter.
        is_object: ``True`` for parameters that receive a domain object
            used by path interpolation.

    Returns:
        A dict with the following keys:

        * ``name`` (``str``) -- Python-safe parameter name.
        * ``original_name`` (``str``) -- The declared symbol, used as the
          binding name during path resolution.
        * ``help`` (``str | None``) -- Glossary description, or ``None``
          when the glossary has no entry.
        * ``is_object`` (``bool``) -- Whether the parameter carries a domain
          object.
    """
    description = backend.describe(name)
    if description is None:
        logger.debug(
            "No description for parameter '%s' in the %s glossary",
            name,
            backend.service_name,
        )
    return {
        "name": sanitize_param_name(name),
        "original_name": name,
        "help": description,
        "is_object": is_object,
    }


def merge_param_names(*groups: tuple[str, ...] | list[str], exclude: tuple[str, ...] = ()) -> list[str]:
    """Concatenate parameter name groups, keeping the first occurrence of each name.

    Names listed in *exclude* are dropped.
    """
    seen = set(exclude)
    merged: list[str] = []
    for group in groups:
        for name in group:
            if name not in seen:
                seen.add(name)
                merged.append(name)
    return merged
