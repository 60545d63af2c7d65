"""Helpers shared by the CLI sub-commands."""

from __future__ import annotations

import typer

from reqcraft.exceptions import ReqcraftError
from reqcraft.models import ProjectConfig
from reqcraft.output import debug, error
from reqcraft.store import ConfigSnapshot, ConfigStore


def get_settings(ctx: typer.Context) -> ProjectConfig:
    """Return the settings resolved by the root callback."""
    obj = ctx.obj or {}
    return obj.get("settings") or ProjectConfig()


def load_snapshot(ctx: typer.Context) -> ConfigSnapshot:
    """Resolve the root document named by the settings.

    Raises:
        typer.Exit: With the error's exit code when the root document cannot
            be read or parsed.
    """
    settings = get_settings(ctx)
    debug(f"Loading root document: {settings.root_file}")

    store = ConfigStore(settings.root_file, settings)
    try:
        return store.load()
    except ReqcraftError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
