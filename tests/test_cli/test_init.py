"""Tests for the `reserve init` CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from reserve.cli.main import cli


class TestInit:
    """reserve init creates the .reserve/ tree and seeds the admin."""

    def test_creates_layout(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code == 0
        assert "Reserve initialized in .reserve/" in result.output
        assert "admin001" in result.output
        reserve = tmp_path / ".reserve"
        assert (reserve / "data").is_dir()
        assert (reserve / "locks").is_dir()

    def test_seeds_admin_and_empty_records(self, tmp_path: Path) -> None:
        CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])

        data = tmp_path / ".reserve" / "data"
        users = json.loads((data / "app_users_v3.json").read_text(encoding="utf-8"))
        assert [u["employeeId"] for u in users] == ["admin001"]
        assert json.loads((data / "app_records_v3.json").read_text()) == []

    def test_second_init_is_a_no_op(self, tmp_path: Path) -> None:
        runner = CliRunner()
        runner.invoke(cli, ["init", "--path", str(tmp_path)])
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code == 0
        assert "already initialized" in result.output

    def test_demo_seeds_branch_and_leads(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path), "--demo"])

        assert result.exit_code == 0
        assert "Demo accounts" in result.output

        env = {"RESERVE_ROOT": str(tmp_path)}
        login = runner.invoke(cli, ["login", "R102", "--password", "123"], env=env)
        assert login.exit_code == 0, login.output
        listed = runner.invoke(cli, ["record", "list", "--json"], env=env)
        parsed = json.loads(listed.output)
        assert [r["companyName"] for r in parsed["data"]] == ["象山海鲜加工厂"]

    def test_demo_does_not_overwrite_existing_store(self, tmp_path: Path) -> None:
        runner = CliRunner()
        runner.invoke(cli, ["init", "--path", str(tmp_path)])
        result = runner.invoke(cli, ["init", "--path", str(tmp_path), "--demo"])

        assert "already initialized" in result.output
        data = tmp_path / ".reserve" / "data"
        assert json.loads((data / "app_records_v3.json").read_text()) == []

    def test_file_in_the_way(self, tmp_path: Path) -> None:
        (tmp_path / ".reserve").write_text("")
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code != 0
        assert "not a directory" in result.output


class TestNotInitialized:
    def test_commands_need_a_store(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["whoami", "--json"], env={"RESERVE_ROOT": str(tmp_path)}
        )

        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["error"]["code"] == "NOT_INITIALIZED"
