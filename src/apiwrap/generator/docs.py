"""Docstring synthesis for generated resource functions.

:func:`synthesize` renders the ``__doc__`` of a generated function from the
resource's own docstring, the parameter glossary of its backend, and the
endpoint it wraps.  The layout is fixed so that tooling can parse it back::

    List issues for a repository.

    Args:
        repo: A repository object as returned by the API.
        data: Payload sent with the request. It can be omitted when the
            endpoint takes no body.
        params: Extra request parameters, given as alternating
            keyword/value items or as keyword arguments.

    ------------------------------------------------------------------------
    This generated function wraps the GitHub API endpoint

        GET /repos/:owner/:repo/issues

    which is documented at

        https://developer.github.com/v3/issues/#list-issues-for-a-repository

Undocumented parameters get :data:`UNDOCUMENTED` as their description;
documentation is best effort and never a reason to fail.
"""

from __future__ import annotations

import textwrap
from typing import Optional, Sequence

from apiwrap.models import Verb

UNDOCUMENTED = "Undocumented parameter."

DATA_PARAM = "data"
REST_PARAM = "params"

DATA_DESCRIPTION = (
    "Payload sent with the request. It can be omitted when the endpoint "
    "takes no body."
)
REST_DESCRIPTION = (
    "Extra request parameters, given as alternating keyword/value items or "
    "as keyword arguments."
)

SEPARATOR = "-" * 72
_WIDTH = 79
_ENTRY_INDENT = " " * 4
_CONTINUATION_INDENT = " " * 8


def synthesize(
    verb: Verb | str,
    path: str,
    docstring: str,
    doc_url: str,
    param_descriptions: Sequence[tuple[str, Optional[str]]],
    *,
    service_name: Optional[str] = None,
) -> str:
    """Render the docstring of a generated function.

    Args:
        verb: HTTP verb of the endpoint.
        path: The endpoint's documented (literal) path.
        docstring: The resource's own summary text; may be empty.
        doc_url: Fully formatted documentation link.
        param_descriptions: ``(name, description)`` for each named formal
            parameter in declaration order, excluding ``data`` and
            ``params`` which are always appended with canned text.  A
            ``None`` or empty description renders as :data:`UNDOCUMENTED`.
        service_name: Optional API name used in the endpoint sentence.

    Returns:
        The complete docstring.  Pure: the same inputs give the same text.
    """
    verb_text = verb.value if isinstance(verb, Verb) else str(verb).upper()
    sections: list[str] = []

    summary = textwrap.dedent(docstring).strip()
    if summary:
        sections.append(summary)

    entries = list(param_descriptions) + [
        (DATA_PARAM, DATA_DESCRIPTION),
        (REST_PARAM, REST_DESCRIPTION),
    ]
    sections.append(
        "Args:\n" + "\n".join(_format_entry(name, desc) for name, desc in entries)
    )

    service = f"the {service_name} API endpoint" if service_name else "the API endpoint"
    sections.append(
        f"{SEPARATOR}\n"
        f"This generated function wraps {service}\n"
        f"\n"
        f"{_ENTRY_INDENT}{verb_text} {path}\n"
        f"\n"
        f"which is documented at\n"
        f"\n"
        f"{_ENTRY_INDENT}{doc_url}"
    )
    return "\n\n".join(sections)


def _format_entry(name: str, description: Optional[str]) -> str:
    """Format one ``name: description`` entry of the ``Args:`` block."""
    text = " ".join((description or "").split()) or UNDOCUMENTED
    return textwrap.fill(
        f"{name}: {text}",
        width=_WIDTH,
        initial_indent=_ENTRY_INDENT,
        subsequent_indent=_CONTINUATION_INDENT,
        break_on_hyphens=False,
    )


def parse_args_block(doc: str) -> list[str]:
    """Return the parameter names listed in the ``Args:`` block of *doc*.

    The inverse of the entry layout used by :func:`synthesize`; used by the
    command line tool to show a generated function's parameters.  The
    generated block is the last ``Args:`` line before :data:`SEPARATOR`, so
    an ``Args:`` section inside the user's own summary is skipped.
    """
    lines = doc.split(SEPARATOR, 1)[0].splitlines()
    starts = [i for i, line in enumerate(lines) if line == "Args:"]
    if not starts:
        return []
    names: list[str] = []
    for line in lines[starts[-1] + 1:]:
        if not line.strip():
            break
        if line.startswith(_ENTRY_INDENT) and not line.startswith(_CONTINUATION_INDENT):
            names.append(line.strip().split(":", 1)[0])
    return names
