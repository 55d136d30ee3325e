"""User management commands (admin only): add, update, delete, list, import."""

from __future__ import annotations

import click

from reserve.cli.helpers import (
    common_options,
    load_json_array,
    open_repository,
    output_error,
    output_result,
    require_admin,
)
from reserve.cli.main import cli
from reserve.core.models import VALID_LINES, VALID_ROLES, normalize_line, validate_role


def _validate_user_fields(fields: dict, is_json: bool) -> dict:
    if "target" in fields:
        fields["yearlyTarget"] = fields.pop("target")
    if "role" in fields:
        fields["role"] = fields["role"].upper()
        if not validate_role(fields["role"]):
            valid = ", ".join(VALID_ROLES)
            output_error(
                f"Invalid role: '{fields['role']}'. Valid roles: {valid}.",
                "VALIDATION_ERROR",
                is_json,
            )
    if "line" in fields:
        line = normalize_line(fields["line"])
        if line is None:
            valid = ", ".join(VALID_LINES)
            output_error(
                f"Invalid line: '{fields['line']}'. Valid lines: {valid}.",
                "VALIDATION_ERROR",
                is_json,
            )
        fields["line"] = line
    return fields


def user_field_options(f):  # noqa: ANN001, ANN201
    """Decorator adding one option per editable user attribute."""
    f = click.option(
        "--target", type=click.IntRange(min=0), default=None, help="Yearly payroll target."
    )(f)
    f = click.option("--line", default=None, help="公司/零售/个人 or corporate/retail/personal.")(f)
    f = click.option("--department", default=None, help="Department name.")(f)
    f = click.option("--title", default=None, help="Job title (display only).")(f)
    f = click.option("--role", default=None, help="Role, e.g. STAFF or DEPARTMENT_MANAGER.")(f)
    f = click.option("--password", default=None, help="Login password.")(f)
    f = click.option("--name", default=None, help="Display name.")(f)
    return f


def _public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password"}


@cli.group()
def user() -> None:
    """User administration."""


@user.command("add")
@click.argument("employee_id")
@user_field_options
@common_options
def user_add(employee_id: str, output_json: bool, quiet: bool, **options) -> None:
    """Create a user with an employee code."""
    repo = open_repository(output_json)
    require_admin(repo, output_json)

    if repo.find_user_by_employee_id(employee_id) is not None:
        output_error(f"Employee code '{employee_id}' is taken.", "CONFLICT", output_json)

    fields = {k: v for k, v in options.items() if v is not None}
    fields.setdefault("role", "STAFF")
    fields = _validate_user_fields(fields, output_json)

    new_user = {
        "employeeId": employee_id,
        "name": fields.get("name", employee_id),
        "password": fields.get("password", "123"),
        "role": fields["role"],
        "title": fields.get("title", ""),
        "department": fields.get("department", ""),
        "line": fields.get("line", VALID_LINES[0]),
        "yearlyTarget": fields.get("yearlyTarget", 0),
    }
    saved = repo.save_user(new_user)
    output_result(
        data=_public(saved),
        human_message=f"Created user {saved['id']} ({employee_id} {saved['name']})",
        quiet_value=saved["id"],
        is_json=output_json,
        is_quiet=quiet,
    )


@user.command("update")
@click.argument("user_id")
@user_field_options
@common_options
def user_update(user_id: str, output_json: bool, quiet: bool, **options) -> None:
    """Change a user's attributes."""
    repo = open_repository(output_json)
    require_admin(repo, output_json)

    existing = repo.get_user(user_id)
    if existing is None:
        output_error(f"User {user_id} not found.", "NOT_FOUND", output_json)

    fields = _validate_user_fields(
        {k: v for k, v in options.items() if v is not None}, output_json
    )
    saved = repo.save_user({**existing, **fields})
    output_result(
        data=_public(saved),
        human_message=f"Updated user {user_id}",
        quiet_value=user_id,
        is_json=output_json,
        is_quiet=quiet,
    )


@user.command("delete")
@click.argument("user_id")
@common_options
def user_delete(user_id: str, output_json: bool, quiet: bool) -> None:
    """Delete a user.  Their records are not reassigned."""
    repo = open_repository(output_json)
    admin = require_admin(repo, output_json)
    if admin.get("id") == user_id:
        output_error("You cannot delete your own account.", "CONFLICT", output_json)

    if not repo.delete_user(user_id):
        output_error(f"User {user_id} not found.", "NOT_FOUND", output_json)
    output_result(
        data={"id": user_id, "deleted": True},
        human_message=f"Deleted user {user_id}",
        quiet_value=user_id,
        is_json=output_json,
        is_quiet=quiet,
    )


@user.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@common_options
def user_import(path: str, output_json: bool, quiet: bool) -> None:
    """Bulk-add users from a JSON array file."""
    repo = open_repository(output_json)
    require_admin(repo, output_json)
    items = load_json_array(path, output_json)
    for item in items:
        _validate_user_fields(item, output_json)

    added = repo.batch_add_users(items)
    output_result(
        data={"imported": len(added), "ids": [u["id"] for u in added]},
        human_message=f"Imported {len(added)} users.",
        quiet_value=str(len(added)),
        is_json=output_json,
        is_quiet=quiet,
    )


@user.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def user_list(output_json: bool) -> None:
    """List all users."""
    repo = open_repository(output_json)
    require_admin(repo, output_json)
    users = [_public(u) for u in repo.all_users()]

    if output_json:
        output_result(data=users, human_message="", quiet_value="", is_json=True, is_quiet=False)
        return
    for u in users:
        click.echo(
            f"{u.get('id')}  {u.get('employeeId')}  {u.get('name')}  {u.get('role')}  "
            f"{u.get('department')}  target={u.get('yearlyTarget', 0)}"
        )
