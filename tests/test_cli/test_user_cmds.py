"""Tests for the `reserve user` command group."""

from __future__ import annotations

import json
from pathlib import Path


class TestUserAdd:
    def test_defaults(self, create_staff, login) -> None:
        login()
        user = create_staff("S001")
        assert user["id"].startswith("usr_")
        assert user["role"] == "STAFF"
        assert user["name"] == "S001"
        assert user["line"] == "公司"
        assert "password" not in user

    def test_fields(self, create_staff, login, invoke) -> None:
        login()
        user = create_staff(
            "M001", "--name", "王经理", "--role", "department_manager",
            "--line", "零售", "--department", "零售业务一部", "--target", "800",
            "--password", "pw",
        )
        assert user["role"] == "DEPARTMENT_MANAGER"
        assert user["yearlyTarget"] == 800
        assert invoke("login", "M001", "--password", "pw").exit_code == 0

    def test_duplicate_employee_id(self, invoke_json, login, create_staff) -> None:
        login()
        create_staff("S001")
        parsed, code = invoke_json("user", "add", "S001")
        assert code == 1
        assert parsed["error"]["code"] == "CONFLICT"

    def test_invalid_role(self, invoke_json, login) -> None:
        login()
        parsed, code = invoke_json("user", "add", "X1", "--role", "boss")
        assert code == 1
        assert parsed["error"]["code"] == "VALIDATION_ERROR"

    def test_invalid_line(self, invoke_json, login) -> None:
        login()
        parsed, code = invoke_json("user", "add", "X1", "--line", "wholesale")
        assert parsed["error"]["code"] == "VALIDATION_ERROR"

    def test_staff_forbidden(self, invoke_json, login, create_staff) -> None:
        login()
        create_staff("S001")
        login("S001")
        parsed, code = invoke_json("user", "add", "S002")
        assert code == 1
        assert parsed["error"]["code"] == "FORBIDDEN"


class TestUserUpdate:
    def test_update(self, invoke_json, login, create_staff) -> None:
        login()
        user = create_staff("S001")
        parsed, code = invoke_json("user", "update", user["id"], "--target", "250")
        assert code == 0
        assert parsed["data"]["yearlyTarget"] == 250
        assert parsed["data"]["employeeId"] == "S001"

    def test_unknown(self, invoke_json, login) -> None:
        login()
        parsed, code = invoke_json("user", "update", "usr_missing", "--name", "x")
        assert parsed["error"]["code"] == "NOT_FOUND"


class TestUserDelete:
    def test_delete(self, invoke, login, create_staff) -> None:
        login()
        user = create_staff("S001")
        result = invoke("user", "delete", user["id"])
        assert result.exit_code == 0
        assert invoke("login", "S001", "--password", "123").exit_code == 1

    def test_cannot_delete_self(self, invoke_json, login) -> None:
        login()
        parsed, code = invoke_json("user", "delete", "u0")
        assert code == 1
        assert parsed["error"]["code"] == "CONFLICT"


class TestUserListImport:
    def test_import_and_list(self, invoke, invoke_json, login, tmp_path: Path) -> None:
        login()
        path = tmp_path / "users.json"
        path.write_text(
            json.dumps(
                [
                    {"employeeId": "S010", "name": "赵六", "role": "staff", "line": "personal"},
                    {"id": "s_c1", "employeeId": "S011", "name": "钱七", "role": "STAFF"},
                ],
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

        result = invoke("user", "import", str(path))
        assert result.exit_code == 0
        assert "Imported 2 users." in result.output

        parsed, _ = invoke_json("user", "list")
        by_code = {u["employeeId"]: u for u in parsed["data"]}
        assert set(by_code) == {"admin001", "S010", "S011"}
        assert by_code["S010"]["role"] == "STAFF"
        assert by_code["S010"]["line"] == "个人"
        assert by_code["S011"]["id"] == "s_c1"
        assert all("password" not in u for u in parsed["data"])
