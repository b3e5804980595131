"""Terminal output for the ``apiwrap`` command line tool.

Everything a command produces (a resolved path, a listing of resources or
generated functions, a docstring) goes to **stdout**, so it can be piped.
Errors, warnings and ``--verbose`` chatter go to **stderr**.

Three renderings are supported:

* ``rich`` -- tables and docstrings styled with Rich; the default on a
  colour-capable terminal.
* ``plain`` -- tab-separated listings and raw text; the default when piped.
* ``json`` -- one JSON document per command, for scripts.

``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` turn colour off.  The
:class:`OutputManager` for a run is built in
:func:`~apiwrap.app.main_callback` and reached through :func:`get_output`.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from apiwrap.generator.docs import SEPARATOR, parse_args_block


class OutputFormat(str, Enum):
    """How command results are rendered; ``AUTO`` picks rich or plain."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# Column values starting with an HTTP verb are coloured by what the verb does.
_VERB_STYLES = {
    "GET": "green",
    "HEAD": "green",
    "POST": "yellow",
    "PUT": "yellow",
    "PATCH": "yellow",
    "DELETE": "red",
}

# level -> (plain prefix, rich style of the prefix, whole-line style)
_DIAGNOSTICS = {
    "error": ("Error: ", "bold red", None),
    "warning": ("Warning: ", "yellow", None),
    "info": ("", None, None),
    "debug": ("[debug] ", None, "dim"),
}


class OutputManager:
    """Renders command results on stdout and diagnostics on stderr.

    Args:
        format: Rendering for command results.  ``AUTO`` resolves to
            ``RICH`` on a TTY with colour enabled, ``PLAIN`` otherwise.
        no_color: Disable colour and styling.
        quiet: Drop ``info`` messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        """Console bound to stderr; ``--verbose`` log records are written here."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # Command results (stdout)
    # ------------------------------------------------------------------ #

    def print_path(self, path: str) -> None:
        """Print a resolved request path."""
        if self._format == OutputFormat.JSON:
            self._write(json.dumps({"path": path}))
        else:
            self._write(path)

    def print_listing(
        self,
        rows: Sequence[Mapping[str, str]],
        title: Optional[str] = None,
    ) -> None:
        """Print one row per resource or generated function.

        All rows share the keys of the first row, which become the column
        headers.  JSON output is the list of rows itself.
        """
        if self._format == OutputFormat.JSON:
            self._write(json.dumps([dict(r) for r in rows], indent=2, ensure_ascii=False))
            return

        if not rows:
            return
        headers = list(rows[0])
        if self._format == OutputFormat.PLAIN:
            self._write("\t".join(headers))
            for row in rows:
                self._write("\t".join(row[h] for h in headers))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header, style="bold" if header == "Function" else None)
        for row in rows:
            table.add_row(*(_styled_cell(row[h]) for h in headers))
        self._stdout.print(table)

    def print_docstring(self, name: str, doc: str) -> None:
        """Print the docstring of the generated function *name*."""
        if self._format == OutputFormat.JSON:
            record = {"function": name, "parameters": parse_args_block(doc), "doc": doc}
            self._write(json.dumps(record, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            self._write(doc)
            return

        head, sep, tail = doc.partition(SEPARATOR)
        self._stdout.print(Text(name, style="bold cyan"))
        for line in head.rstrip("\n").splitlines():
            self._stdout.print(Text(line, style="bold" if line == "Args:" else ""))
        if sep:
            self._stdout.print(Rule(style="dim"))
            for line in tail.strip("\n").splitlines():
                url = line.strip()
                style = f"link {url}" if url.startswith(("http://", "https://")) else "dim"
                self._stdout.print(Text(line, style=style))

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def warning(self, message: str) -> None:
        self._diagnostic("warning", message)

    def info(self, message: str) -> None:
        """Informational message; dropped under ``--quiet``."""
        if not self._quiet:
            self._diagnostic("info", message)

    def debug(self, message: str) -> None:
        """Debug message; shown only under ``--verbose``."""
        if self._verbose:
            self._diagnostic("debug", message)

    def _diagnostic(self, level: str, message: str) -> None:
        prefix, prefix_style, line_style = _DIAGNOSTICS[level]
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        # Text, not markup, so brackets in messages print as-is.
        text = Text(prefix, style=prefix_style or "")
        text.append(message)
        if line_style:
            text.stylize(line_style)
        self._stderr.print(text)

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)


def _styled_cell(value: str) -> Text:
    verb = value.split(" ", 1)[0]
    return Text(value, style=_VERB_STYLES.get(verb, ""))


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to anything) or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the manager for this run, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the current manager; tests call this between cases."""
    global _output
    _output = None
