"""Typer application and CLI entry point for reqcraft.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``check`` and the ``inspect`` group). The root
callback resolves project settings, installs the global
:class:`~reqcraft.output.OutputManager` and routes library logging through a
Rich handler on stderr.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under the
data directory.

See Also:
    :mod:`reqcraft.config`: Settings resolution.
    :mod:`reqcraft.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from reqcraft import __version__
from reqcraft.commands.check import check_command
from reqcraft.commands.inspect import inspect_app
from reqcraft.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="reqcraft",
    help="Load .rqc API descriptions and inspect the merged configuration.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("check")(check_command)
app.add_typer(inspect_app, name="inspect", help="Inspect the resolved configuration.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"reqcraft {__version__}")
        raise typer.Exit()


def _configure_logging(level: str, quiet: bool) -> None:
    """Send library log records to the diagnostics console."""
    from reqcraft.output import get_output

    handler = RichHandler(
        console=get_output().stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=logging.ERROR if quiet else level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


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
    root: Optional[str] = typer.Option(
        None, "--root", "-r", help="Root .rqc document (default: .rqc)."
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

    Initialises the global :class:`~reqcraft.output.OutputManager` from CLI
    flags, resolves the project settings and stores them in ``ctx.obj`` so
    that sub-commands can read them.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        root: Root document override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from reqcraft.config import resolve_config
    from reqcraft.exceptions import ConfigError
    from reqcraft.output import OutputFormat, OutputManager, error, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    try:
        settings = resolve_config(
            cli_root=root,
            cli_log_level="DEBUG" if verbose else None,
        )
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    _configure_logging(settings.log_level, quiet)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from reqcraft.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``reqcraft`` console script.

    Unhandled :class:`~reqcraft.exceptions.ReqcraftError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
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
    except Exception as exc:
        from reqcraft.exceptions import ReqcraftError
        from reqcraft.output import error

        if isinstance(exc, ReqcraftError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
