"""Path templates and their call-time resolution.

A path template mixes literal text with *tokens* introduced by a colon::

    /repos/:owner.login/:name/issues/:number

Each token is a dotted chain of identifiers.  The first identifier names a
binding (a parameter of the generated function, or a field of the primary
domain object); each following identifier is a key to descend into the
nested mapping found so far.  :func:`resolve_path` performs the substitution
left to right, in a single pass, and never returns a partially substituted
string: the first token that cannot be resolved raises
:class:`~apiwrap.exceptions.InterpolationError`.

Example::

    >>> repo = {"owner": {"login": "vermiculus"}, "name": "ghub-plus"}
    >>> resolve_path("/repos/:owner.login/:name/issues", repo)
    '/repos/vermiculus/ghub-plus/issues'
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from typing import Any, NamedTuple

from apiwrap.exceptions import InterpolationError

# A token is ``:`` followed by identifiers joined by dots.  Hyphens are
# allowed after the first character so that ``:repo-name`` stays one token.
_TOKEN_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_-]*(?:\.[A-Za-z_][A-Za-z0-9_-]*)*)")


class TemplatePiece(NamedTuple):
    """One piece of a parsed template: literal text or a token."""

    text: str
    is_token: bool

    @property
    def segments(self) -> list[str]:
        """The dotted segments of a token (``["owner", "login"]``)."""
        return self.text.split(".") if self.is_token else []


def parse_template(template: str) -> list[TemplatePiece]:
    """Split *template* into literal and token pieces, in order.

    Token pieces hold the token text without its leading colon.  Empty
    literal pieces are omitted.

    Example::

        >>> parse_template("/users/:login/repos")
        [TemplatePiece(text='/users/', is_token=False),
         TemplatePiece(text='login', is_token=True),
         TemplatePiece(text='/repos', is_token=False)]
    """
    pieces: list[TemplatePiece] = []
    position = 0
    for match in _TOKEN_RE.finditer(template):
        if match.start() > position:
            pieces.append(TemplatePiece(template[position:match.start()], False))
        pieces.append(TemplatePiece(match.group(1), True))
        position = match.end()
    if position < len(template):
        pieces.append(TemplatePiece(template[position:], False))
    return pieces


def template_tokens(template: str) -> list[str]:
    """Return every token of *template* (without colons), in order of appearance."""
    return [piece.text for piece in parse_template(template) if piece.is_token]


def template_roots(template: str) -> list[str]:
    """Return the distinct first segments of the tokens in *template*."""
    roots: list[str] = []
    for token in template_tokens(template):
        root = token.split(".", 1)[0]
        if root not in roots:
            roots.append(root)
    return roots


def resolve_token(token: str, bindings: Mapping[str, Any], template: str | None = None) -> str:
    """Resolve a single token against *bindings* and return its string form.

    Args:
        token: The token without its leading colon (``"owner.login"``).
        bindings: Mapping from root names to scalars or nested mappings.
        template: The enclosing template, used only in error messages.

    Raises:
        InterpolationError: If a segment is absent, maps to ``None``, or an
            intermediate value is not a mapping.
    """
    segments = token.split(".")
    value: Any = bindings
    walked: list[str] = []
    for segment in segments:
        walked.append(segment)
        key_path = ".".join(walked)
        if not isinstance(value, Mapping):
            parent = ".".join(walked[:-1])
            raise InterpolationError(
                f"Cannot resolve ':{token}'{_where(template)}: "
                f"'{parent}' is a {type(value).__name__}, not an object, "
                f"so it has no key '{segment}'",
                token=token,
                segment=segment,
                key_path=key_path,
                template=template,
            )
        if value.get(segment) is None:
            raise InterpolationError(
                f"Cannot resolve ':{token}'{_where(template)}: "
                f"missing key '{segment}' (at '{key_path}')",
                token=token,
                segment=segment,
                key_path=key_path,
                template=template,
            )
        value = value[segment]

    if isinstance(value, Mapping):
        raise InterpolationError(
            f"Cannot resolve ':{token}'{_where(template)}: "
            f"'{token}' is an object, not a scalar",
            token=token,
            segment=segments[-1],
            key_path=token,
            template=template,
        )
    return _stringify(value)


def resolve_path(template: str, bindings: Mapping[str, Any]) -> str:
    """Substitute every token of *template* with its value from *bindings*.

    Args:
        template: A path template such as ``"/repos/:owner.login/:name"``.
        bindings: Mapping from root names to scalars or nested mappings.
            Usually the primary domain object layered with the generated
            function's named parameters.

    Returns:
        The fully substituted path.  Literal text is copied unchanged.

    Raises:
        InterpolationError: On the first token that cannot be resolved.
    """
    parts: list[str] = []
    for piece in parse_template(template):
        if piece.is_token:
            parts.append(resolve_token(piece.text, bindings, template))
        else:
            parts.append(piece.text)
    return "".join(parts)


def _stringify(value: Any) -> str:
    """Return the path form of a scalar (``True`` becomes ``"true"``)."""
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _where(template: str | None) -> str:
    return f" in '{template}'" if template else ""
