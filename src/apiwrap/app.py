"""Typer application and CLI entry point for apiwrap.

The command line tool is a companion to the library: it lets a backend author
try path templates against sample objects and look at the functions a
resource table or a backend module generates, without writing a script.

Commands:

* ``apiwrap resolve TEMPLATE OBJECT`` -- resolve a path template.
* ``apiwrap inspect table|backend|doc`` -- see :mod:`apiwrap.commands.inspect`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler, invokes the Typer app, and
turns :class:`~apiwrap.exceptions.ApiwrapError` into its exit code.
Unhandled exceptions are written to a crash log under the data directory.
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from apiwrap import __version__
from apiwrap.commands.inspect import inspect_app
from apiwrap.exceptions import ApiwrapError
from apiwrap.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from apiwrap.generator.paths import resolve_path
from apiwrap.output import OutputFormat, OutputManager, get_output, set_output


app = typer.Typer(
    name="apiwrap",
    help="Inspect generated API wrapper functions and resolve path templates.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(inspect_app, name="inspect", help="Inspect resource tables and backends.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apiwrap {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apiwrap.output.OutputManager` from CLI
    flags.  With ``--verbose`` the library's DEBUG log records (registration,
    generation, dispatch) are shown on stderr through Rich.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)

    if verbose:
        _configure_logging(ctx, output)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _configure_logging(ctx: typer.Context, output: OutputManager) -> None:
    """Route ``apiwrap.*`` log records to stderr at DEBUG level.

    The handler and level last for the invocation only; they are undone when
    *ctx* closes.
    """
    logger = logging.getLogger("apiwrap")
    previous_level = logger.level
    handler = RichHandler(console=output.stderr_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    def _restore() -> None:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)

    ctx.call_on_close(_restore)


@app.command("resolve")
def resolve_command(
    template: str = typer.Argument(..., help="Path template, e.g. /repos/:owner.login/:name"),
    obj: str = typer.Argument(
        ..., metavar="OBJECT", help="JSON object, or @FILE to read it from a file."
    ),
    bind_as: Optional[str] = typer.Option(
        None,
        "--as",
        help="Also bind the object under this parameter name (e.g. repo).",
    ),
) -> None:
    """Resolve TEMPLATE against a JSON object and print the path.

    Tokens resolve against the object's fields.  With ``--as NAME`` the
    object is also reachable as ``:NAME.field``, the way a generated
    function binds its first parameter.

    Example::

        apiwrap resolve '/repos/:owner.login/:name' '{"owner": {"login": "a"}, "name": "b"}'
        apiwrap resolve '/repos/:repo.name/issues' @repo.json --as repo
    """
    try:
        bindings = _load_object(obj)
        if bind_as:
            bindings = {**bindings, bind_as: bindings}
        path = resolve_path(template, bindings)
    except ApiwrapError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    get_output().print_path(path)


def _load_object(value: str) -> dict[str, Any]:
    """Decode the OBJECT argument, reading ``@FILE`` from disk."""
    text = value
    if value.startswith("@"):
        path = Path(value[1:])
        if not path.is_file():
            get_output().error(f"File not found: {path}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        text = path.read_text(encoding="utf-8")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        get_output().error(f"OBJECT is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if not isinstance(data, dict):
        get_output().error(f"OBJECT must be a JSON object (got {type(data).__name__})")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    return data


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from apiwrap.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apiwrap`` console script.

    Unhandled :class:`~apiwrap.exceptions.ApiwrapError` instances cause a
    clean exit with the error's ``exit_code``.  All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ApiwrapError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        get_output().error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
