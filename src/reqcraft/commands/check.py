"""Check command -- resolve the root document and report what was loaded.

``reqcraft check`` is the quickest way to validate a configuration: it parses
the root ``.rqc`` file, follows every import, prints one row per resolution
step and summarises the endpoint and category counts on stderr.

A broken root document exits with the error's exit code (3 for an
unreadable file, 4 for a syntax error). Skipped imports only produce
warnings unless ``--strict`` is given.
"""

from __future__ import annotations

import typer

from reqcraft.commands.common import load_snapshot
from reqcraft.exit_codes import EXIT_GENERIC_FAILURE
from reqcraft.imports import ImportStatus
from reqcraft.output import get_output, success, warning


def check_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Exit non-zero when any import was skipped."
    ),
) -> None:
    """Resolve the root document and report every import outcome.

    Example::

        reqcraft check
        reqcraft --root api/main.rqc check --strict
    """
    snapshot = load_snapshot(ctx)

    rows = [
        [
            outcome.source,
            outcome.status.value,
            outcome.reason.value,
            outcome.message or "-",
        ]
        for outcome in snapshot.outcomes
    ]
    get_output().print_table(
        ["Source", "Status", "Reason", "Message"], rows, title="Import outcomes"
    )

    endpoints = snapshot.endpoints()
    categories = snapshot.categories()
    success(f"Loaded {len(endpoints)} endpoint(s) in {len(categories)} top-level category(ies)")

    skipped = [o for o in snapshot.outcomes if o.status is ImportStatus.SKIPPED]
    if skipped:
        warning(f"{len(skipped)} import(s) skipped")
        if strict:
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
