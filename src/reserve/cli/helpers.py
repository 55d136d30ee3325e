"""Shared CLI helpers, decorators, and output utilities."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import NoReturn

import click

from reserve.core.access import can_edit
from reserve.core.models import MANAGEMENT_ROLES, ROLE_ADMIN, PayrollRecord, User
from reserve.storage.bus import OutcomeBus
from reserve.storage.fs import RESERVE_DIR, ReserveRootError, find_root
from reserve.storage.operations import Repository
from reserve.storage.store import FileStore
from reserve.sync.config import transport_timeout
from reserve.sync.engine import SyncOutcome, Synchronizer
from reserve.sync.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Root & store
# ---------------------------------------------------------------------------


def require_root(is_json: bool = False) -> Path:
    """Find the .reserve/ directory or exit with error."""
    try:
        root = find_root()
    except ReserveRootError as e:
        output_error(str(e), "NOT_INITIALIZED", is_json)
    if root is None:
        output_error(
            "Not a reserve project (no .reserve/ found). Run 'reserve init' first.",
            "NOT_INITIALIZED",
            is_json,
        )
    return root / RESERVE_DIR


def open_store(is_json: bool = False) -> FileStore:
    return FileStore(require_root(is_json))


def _report_background_outcome(outcome: SyncOutcome) -> None:
    """Bus listener: surface drift, stay quiet about everything else."""
    if outcome.diverged:
        click.echo(
            f"Warning: saved locally, but the cloud copy was not updated ({outcome.message})",
            err=True,
        )


def open_repository(is_json: bool = False) -> Repository:
    """Repository wired to a background sync scheduler.

    The scheduler is drained when the Click context closes so a short-lived
    command does not exit before its background sync finishes.  The
    mutation's own output is already printed by then.
    """
    store = open_store(is_json)
    bus = OutcomeBus()
    bus.register(_report_background_outcome)
    scheduler = SyncScheduler(Synchronizer(store), bus)

    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.call_on_close(lambda: _drain(scheduler))
    return Repository(store, scheduler)


def _drain(scheduler: SyncScheduler) -> None:
    # Fetch + push, each bounded by the transport timeout.
    if not scheduler.wait(timeout=transport_timeout() * 2 + 5):
        logger.warning("reserve: background sync still running at exit")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(
    *,
    data: object,
    human_message: str,
    quiet_value: str,
    is_json: bool,
    is_quiet: bool,
) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    elif is_quiet:
        click.echo(quiet_value)
    else:
        click.echo(human_message)


# ---------------------------------------------------------------------------
# Session & permissions
# ---------------------------------------------------------------------------


def require_user(repo: Repository, is_json: bool) -> User:
    """Return the logged-in user, or exit when nobody is logged in.

    The session copy is refreshed from the user list so role changes made
    by an admin (or pulled in by a sync) take effect immediately.
    """
    session = repo.current_user()
    if session is None:
        output_error("Not logged in. Run 'reserve login' first.", "NOT_LOGGED_IN", is_json)
    return repo.get_user(session.get("id", "")) or session


def require_admin(repo: Repository, is_json: bool) -> User:
    user = require_user(repo, is_json)
    if user.get("role") != ROLE_ADMIN:
        output_error("Only an admin can manage users.", "FORBIDDEN", is_json)
    return user


def require_management(repo: Repository, is_json: bool) -> User:
    user = require_user(repo, is_json)
    if user.get("role") not in MANAGEMENT_ROLES:
        output_error("Statistics are limited to management roles.", "FORBIDDEN", is_json)
    return user


def read_record_or_exit(
    repo: Repository, record_id: str, user: User, is_json: bool
) -> PayrollRecord:
    """Look up a record the user may edit; NOT_FOUND hides out-of-scope ids."""
    record = repo.get_record(record_id)
    if record is None or not can_edit(user, record):
        output_error(f"Record {record_id} not found.", "NOT_FOUND", is_json)
    return record


def load_json_array(path: str, is_json: bool) -> list[dict]:
    """Read a file holding a JSON array of objects, or exit."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        output_error(f"Cannot read {path}: {exc}", "INVALID_FILE", is_json)
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        output_error(f"{path} must contain a JSON array of objects.", "INVALID_FILE", is_json)
    return data


# ---------------------------------------------------------------------------
# Click decorator
# ---------------------------------------------------------------------------


def common_options(f):  # noqa: ANN001, ANN201
    """Decorator adding the output-format options shared by write commands."""
    f = click.option("--quiet", is_flag=True, help="Print only the primary ID.")(f)
    f = click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")(f)
    return f
