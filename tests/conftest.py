"""Shared test fixtures."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from click.testing import CliRunner

from reserve.sync.errors import TransportError


class FakeRemote:
    """In-memory stand-in for the shared cloud document.

    Counts calls and can be told to fail either half of a sync.
    """

    def __init__(self, document: dict | None = None) -> None:
        self.document: dict = copy.deepcopy(document) if document is not None else {}
        self.fetch_calls = 0
        self.push_calls = 0
        self.fail_fetch: TransportError | None = None
        self.fail_push: TransportError | None = None
        self.configs: list[dict] = []

    def factory(self, config: dict) -> FakeRemote:
        self.configs.append(dict(config))
        return self

    def fetch(self) -> dict:
        self.fetch_calls += 1
        if self.fail_fetch is not None:
            raise self.fail_fetch
        return copy.deepcopy(self.document)

    def push(self, document: dict) -> None:
        self.push_calls += 1
        if self.fail_push is not None:
            raise self.fail_push
        self.document = copy.deepcopy(document)

    @property
    def calls(self) -> int:
        return self.fetch_calls + self.push_calls


ENABLED_CONFIG = {"enabled": True, "apiKey": "$2b$10$secret", "binId": "671abc"}


def make_user(uid: str, role: str = "STAFF", **extra) -> dict:
    user = {
        "id": uid,
        "employeeId": extra.pop("employeeId", uid.upper()),
        "name": extra.pop("name", f"user-{uid}"),
        "password": "123",
        "role": role,
        "title": "",
        "department": extra.pop("department", "公司业务一部"),
        "line": extra.pop("line", "公司"),
        "yearlyTarget": extra.pop("yearlyTarget", 100),
    }
    user.update(extra)
    return user


def make_record(rid: str, updated_at: str = "2024-01-01T00:00:00.000Z", **extra) -> dict:
    record = {
        "id": rid,
        "companyName": f"company-{rid}",
        "totalEmployees": 100,
        "estimatedNewPayroll": 50,
        "estimatedLandingDate": "2024-06-01",
        "cardsIssued": 0,
        "cardSchedule": "",
        "lastVisitDate": "",
        "probability": 50,
        "progressNotes": "",
        "updatedAt": updated_at,
        "updatedByUserId": "s1",
        "updatedByName": "user-s1",
        "department": "公司业务一部",
        "line": "公司",
        "status": "跟进中",
        "history": [],
    }
    record.update(extra)
    return record


@pytest.fixture()
def fake_remote() -> FakeRemote:
    return FakeRemote({"records": [], "users": [], "lastSync": ""})


@pytest.fixture()
def memory_store():
    from reserve.storage.store import MemoryStore

    return MemoryStore()


@pytest.fixture()
def configured_store(memory_store):
    """A MemoryStore with cloud sync enabled."""
    from reserve.storage.store import CLOUD_CONFIG_KEY

    memory_store.save(CLOUD_CONFIG_KEY, ENABLED_CONFIG)
    return memory_store


@pytest.fixture()
def reserve_root(tmp_path: Path) -> Path:
    """Return a temporary directory with .reserve/ initialized and seeded."""
    from reserve.storage.fs import ensure_reserve_dirs
    from reserve.storage.operations import Repository
    from reserve.storage.store import FileStore

    reserve_dir = ensure_reserve_dirs(tmp_path)
    Repository(FileStore(reserve_dir)).init()
    return tmp_path


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def cli_env(reserve_root: Path) -> dict[str, str]:
    """Return env dict with RESERVE_ROOT pointing to reserve_root."""
    return {"RESERVE_ROOT": str(reserve_root)}


@pytest.fixture()
def invoke(cli_runner: CliRunner, cli_env: dict[str, str]):
    """Return a helper that invokes CLI commands with the right environment.

    Usage::

        result = invoke("record", "add", "Acme", "--new-payroll", "40")
    """
    from reserve.cli.main import cli

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=cli_env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.output)
        return parsed, result.exit_code

    return _invoke_json


@pytest.fixture()
def login(invoke):
    """Log in as an employee code (default: the seeded admin)."""

    def _login(employee_id: str = "admin001", password: str = "123") -> None:
        result = invoke("login", employee_id, "--password", password)
        assert result.exit_code == 0, result.output

    return _login


@pytest.fixture()
def remote_for_cli(monkeypatch: pytest.MonkeyPatch, fake_remote: FakeRemote) -> FakeRemote:
    """Route every Synchronizer built by the CLI to the fake remote."""
    monkeypatch.setattr(
        "reserve.sync.engine.JsonBinClient", SimpleNamespace(from_config=fake_remote.factory)
    )
    return fake_remote


@pytest.fixture(name="make_record")
def make_record_fixture():
    """Return the record builder: ``make_record(id, updated_at, **fields)``."""
    return make_record


@pytest.fixture(name="make_user")
def make_user_fixture():
    """Return the user builder: ``make_user(id, role, **fields)``."""
    return make_user


@pytest.fixture()
def create_record(invoke):
    """Create a record via the CLI and return its parsed JSON data."""

    def _create(company: str, *extra_args: str) -> dict:
        result = invoke("record", "add", company, *extra_args, "--json")
        assert result.exit_code == 0, f"record add failed: {result.output}"
        return json.loads(result.output)["data"]

    return _create


@pytest.fixture()
def create_staff(invoke):
    """Create a user via the CLI (caller must be logged in as admin)."""

    def _create(employee_id: str, *extra_args: str) -> dict:
        result = invoke("user", "add", employee_id, *extra_args, "--json")
        assert result.exit_code == 0, f"user add failed: {result.output}"
        return json.loads(result.output)["data"]

    return _create
