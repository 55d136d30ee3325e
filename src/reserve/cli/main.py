"""CLI entry point and top-level commands."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from reserve.core.demo import DEMO_PASSWORD, demo_records, demo_users
from reserve.storage.fs import RESERVE_DIR, ensure_reserve_dirs
from reserve.storage.operations import DEFAULT_ADMIN, Repository
from reserve.storage.store import FileStore


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log sync activity to stderr.")
def cli(verbose: bool) -> None:
    """Reserve: payroll-acquisition lead tracker with cloud sync."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# reserve init
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--path",
    "target_path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Directory to initialize in (defaults to current directory).",
)
@click.option(
    "--demo",
    is_flag=True,
    help="Seed a demo branch with staff and sample leads instead of a lone admin.",
)
def init(target_path: str, demo: bool) -> None:
    """Initialize a local reserve store with a default admin account."""
    root = Path(target_path)
    reserve_dir = root / RESERVE_DIR

    if reserve_dir.exists() and not reserve_dir.is_dir():
        raise click.ClickException(
            f"Cannot initialize: '{RESERVE_DIR}' exists but is not a directory. "
            "Remove it and try again."
        )

    try:
        ensure_reserve_dirs(root)
        if demo:
            seeded = Repository(FileStore(reserve_dir)).init(demo_users(), demo_records())
        else:
            seeded = Repository(FileStore(reserve_dir)).init()
    except PermissionError:
        raise click.ClickException(f"Permission denied: cannot create {RESERVE_DIR}/ in {root}")
    except OSError as e:
        raise click.ClickException(f"Failed to initialize: {e}")

    if not seeded:
        click.echo(f"Reserve already initialized in {RESERVE_DIR}/")
        return

    click.echo(f"Reserve initialized in {RESERVE_DIR}/")
    click.echo(
        f"Default admin: {DEFAULT_ADMIN['employeeId']} (password {DEFAULT_ADMIN['password']})"
    )
    if demo:
        click.echo(f"Demo accounts use password {DEMO_PASSWORD}, e.g. A001 (branch president).")


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from reserve.cli import session_cmds as _session_cmds  # noqa: E402, F401
from reserve.cli import record_cmds as _record_cmds  # noqa: E402, F401
from reserve.cli import user_cmds as _user_cmds  # noqa: E402, F401
from reserve.cli import stats_cmds as _stats_cmds  # noqa: E402, F401
from reserve.cli import sync_cmds as _sync_cmds  # noqa: E402, F401

if __name__ == "__main__":
    cli()
