"""Session commands: login, logout, whoami."""

from __future__ import annotations

import click

from reserve.cli.helpers import open_store, output_error, output_result, require_user
from reserve.cli.main import cli
from reserve.storage.operations import Repository


def _public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password"}


@cli.command()
@click.argument("employee_id")
@click.option("--password", prompt=True, hide_input=True, help="Account password.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def login(employee_id: str, password: str, output_json: bool) -> None:
    """Log in with an employee code."""
    repo = Repository(open_store(output_json))
    user = repo.login(employee_id, password)
    if user is None:
        output_error("Wrong employee code or password.", "LOGIN_FAILED", output_json)
    output_result(
        data=_public(user),
        human_message=f"Logged in as {user['name']} ({user['role']}).",
        quiet_value=user["id"],
        is_json=output_json,
        is_quiet=False,
    )


@cli.command()
def logout() -> None:
    """End the current session."""
    Repository(open_store()).logout()
    click.echo("Logged out.")


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def whoami(output_json: bool) -> None:
    """Show the logged-in user."""
    repo = Repository(open_store(output_json))
    user = require_user(repo, output_json)
    output_result(
        data=_public(user),
        human_message=(
            f"{user.get('name')} [{user.get('employeeId')}] {user.get('title', '')}\n"
            f"Role: {user.get('role')}  Department: {user.get('department')}  "
            f"Line: {user.get('line')}"
        ),
        quiet_value=user.get("id", ""),
        is_json=output_json,
        is_quiet=False,
    )
