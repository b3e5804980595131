"""Normalise on-the-fly request parameters into ordered key/value pairs.

Generated functions accept extra request parameters in two forms, which can
be mixed in a single call::

    list_issues(":state", "closed", "labels", "bug")   # flat keyword/value sequence
    list_issues(state="closed", labels="bug")          # Python keyword arguments

Both end up as :data:`RequestParams`, a list of ``(key, value)`` tuples in
the order they were given.  Nothing is deduplicated, reordered or coerced:
``[("label", "a"), ("label", "b")]`` reaches the primitive as written, and
deciding what repeated keys mean is the primitive's business.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Any

from apiwrap.exceptions import ArgumentError

RequestParams = list[tuple[str, Any]]
"""Ordered request parameters handed to a primitive."""

KEYWORD_MARKER = ":"


def normalize_key(token: Any) -> str:
    """Return the bare key of a keyword token.

    A leading ``:`` is stripped (``":state"`` becomes ``"state"``), and a
    ``str`` enum member is replaced by its value.

    Raises:
        ArgumentError: If *token* is not a string or is empty once stripped.
    """
    if isinstance(token, enum.Enum) and isinstance(token.value, str):
        token = token.value
    if not isinstance(token, str):
        raise ArgumentError(
            f"Expected a keyword, got {type(token).__name__} {token!r}"
        )
    key = token[len(KEYWORD_MARKER):] if token.startswith(KEYWORD_MARKER) else token
    if not key:
        raise ArgumentError(f"Empty keyword {token!r}")
    return key


def normalize(flat_args: Sequence[Any]) -> RequestParams:
    """Pair up a flat alternating keyword/value sequence.

    Args:
        flat_args: ``[kw1, value1, kw2, value2, ...]``.

    Returns:
        ``[(key1, value1), (key2, value2), ...]`` in input order.

    Raises:
        ArgumentError: If *flat_args* has odd length or a keyword position
            holds something that is not a keyword.

    Example::

        >>> normalize([":state", "closed"])
        [('state', 'closed')]
        >>> normalize([])
        []
    """
    if len(flat_args) % 2:
        raise ArgumentError(
            f"Expected keyword/value pairs, got {len(flat_args)} items: "
            f"{list(flat_args)!r}"
        )
    return [
        (normalize_key(flat_args[index]), flat_args[index + 1])
        for index in range(0, len(flat_args), 2)
    ]


def collect(flat_args: Sequence[Any], options: Mapping[str, Any] | None = None) -> RequestParams:
    """Normalise *flat_args*, then append *options* in insertion order."""
    params = normalize(flat_args)
    if options:
        params.extend(options.items())
    return params
