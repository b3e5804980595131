"""Load declarative resource tables from a URL, local file, or stdin.

A resource table lists the endpoints of one backend, one entry per generated
function.  JSON and YAML are both accepted, with automatic format detection::

    api_version: 3          # default for entries without "version"
    resources:
      - verb: GET
        path: /issues
        doc: List all issues assigned to the authenticated user.
        link: issues/#list-issues
      - verb: GET
        path: /repos/:owner/:repo/issues
        doc: List issues for a repository.
        link: issues/#list-issues-for-a-repository
        interpolate: [repo, "/repos/:owner.login/:name/issues"]
      - verb: PATCH
        path: /repos/:owner/:repo/issues/:number
        doc: Edit an issue.
        link: issues/#edit-an-issue
        interpolate:
          params: [repo, issue]
          template: /repos/:repo.owner.login/:repo.name/issues/:issue.number

The two public functions are:

* :func:`load_resources` -- Load and validate a table from any source.
* :func:`parse_resource_table` -- Validate an already-decoded table.

The resulting :class:`~apiwrap.models.ResourceSpec` list is turned into
functions with :meth:`~apiwrap.registry.Backend.define_all`.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from apiwrap.exceptions import DefinitionError
from apiwrap.models import ResourceSpec

_KEY_ALIASES = {
    "path": "default_path",
    "doc": "docstring",
    "version": "api_version",
    "link": "doc_fragment",
    "interpolate": "interpolation",
    "params": "extra_params",
}


def load_resources(source: str) -> list[ResourceSpec]:
    """Load a resource table from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        One :class:`~apiwrap.models.ResourceSpec` per table entry, in order.

    Raises:
        DefinitionError: If the source cannot be loaded, parsed or validated.
    """
    if source == "-":
        raw = _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        raw = _load_from_url(source)
    else:
        raw = _load_from_file(source)
    return parse_resource_table(raw)


def parse_resource_table(table: dict[str, Any]) -> list[ResourceSpec]:
    """Validate a decoded resource table.

    Entry keys may use the short names shown in the module docstring or the
    :class:`~apiwrap.models.ResourceSpec` field names.  An ``interpolate``
    value is either ``[param, template]``, ``[[params...], template]`` or a
    mapping with ``params`` (or ``param``) and ``template``.

    Raises:
        DefinitionError: If the table or any entry is malformed.  The
            message names the offending entry by position.
    """
    entries = table.get("resources")
    if not isinstance(entries, list):
        raise DefinitionError("Resource table must have a 'resources' list")

    default_version = table.get("api_version", 3)
    specs: list[ResourceSpec] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise DefinitionError(
                f"Resource #{index + 1} must be an object (got {type(entry).__name__})"
            )
        fields = {_KEY_ALIASES.get(key, key): value for key, value in entry.items()}
        fields.setdefault("api_version", default_version)
        if "interpolation" in fields:
            fields["interpolation"] = _normalize_interpolation(fields["interpolation"])
        try:
            specs.append(ResourceSpec.model_validate(fields))
        except ValidationError as exc:
            label = f"{entry.get('verb', '?')} {entry.get('path', '?')}"
            raise DefinitionError(
                f"Invalid resource #{index + 1} ({label}): {exc}"
            ) from exc
    return specs


def _normalize_interpolation(value: Any) -> Any:
    """Accept the mapping shorthand ``{param|params, template}``."""
    if not isinstance(value, dict):
        return value
    params = value.get("params", value.get("param"))
    if isinstance(params, str):
        params = [params]
    return {
        "params": params,
        "path_template": value.get("template", value.get("path_template")),
    }


def _load_from_stdin() -> dict[str, Any]:
    """Read a resource table from stdin.

    Raises:
        DefinitionError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DefinitionError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DefinitionError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a resource table from URL. Supports JSON and YAML responses.

    Raises:
        DefinitionError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DefinitionError(
            f"HTTP {exc.response.status_code} fetching resource table from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DefinitionError(f"Failed to fetch resource table from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a resource table from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        DefinitionError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise DefinitionError(f"Resource table not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DefinitionError(f"Failed to read resource table {path}: {exc}") from exc

    if not content.strip():
        raise DefinitionError(f"Resource table is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Raises:
        DefinitionError: If the content cannot be parsed as either format,
            or is not an object.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DefinitionError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_object(result)

    msg = "Failed to parse resource table as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DefinitionError(msg)


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DefinitionError(f"Resource table must be a JSON/YAML object (got {kind})")
    return result
