"""Record commands: add, update, delete, list, show, import."""

from __future__ import annotations

import click

from reserve.cli.helpers import (
    common_options,
    load_json_array,
    open_repository,
    output_error,
    output_result,
    read_record_or_exit,
    require_user,
)
from reserve.cli.main import cli
from reserve.core.models import (
    MANAGEMENT_ROLES,
    VALID_STATUSES,
    normalize_status,
    validate_probability,
)
from reserve.core.records import compact_record, new_record

# option dest -> record field
_FIELD_OPTIONS: tuple[tuple[str, str], ...] = (
    ("total_employees", "totalEmployees"),
    ("new_payroll", "estimatedNewPayroll"),
    ("landing_date", "estimatedLandingDate"),
    ("cards_issued", "cardsIssued"),
    ("card_schedule", "cardSchedule"),
    ("last_visit", "lastVisitDate"),
    ("probability", "probability"),
    ("notes", "progressNotes"),
    ("status", "status"),
)


def record_field_options(f):  # noqa: ANN001, ANN201
    """Decorator adding one option per editable record field."""
    count = click.IntRange(min=0)
    f = click.option(
        "--status", default=None, help="跟进中/已落地/无法落地 or following/completed/failed."
    )(f)
    f = click.option("--notes", default=None, help="Marketing progress notes.")(f)
    f = click.option("--probability", type=int, default=None, help="Landing probability 0-100.")(f)
    f = click.option("--last-visit", default=None, help="Most recent visit date (ISO).")(f)
    f = click.option("--card-schedule", default=None, help="Upcoming card-issuing date (ISO).")(f)
    f = click.option("--cards-issued", type=count, default=None, help="Cards already issued.")(f)
    f = click.option("--landing-date", default=None, help="Target landing date (ISO).")(f)
    f = click.option(
        "--new-payroll", type=count, default=None, help="Projected new payroll headcount."
    )(f)
    f = click.option("--total-employees", type=count, default=None, help="Company headcount.")(f)
    return f


def _collect_fields(options: dict, is_json: bool) -> dict:
    """Map provided options to record fields, validating as we go."""
    fields: dict = {}
    for dest, field in _FIELD_OPTIONS:
        value = options.get(dest)
        if value is not None:
            fields[field] = value

    if "status" in fields:
        status = normalize_status(fields["status"])
        if status is None:
            valid = ", ".join(VALID_STATUSES)
            output_error(
                f"Invalid status: '{fields['status']}'. Valid statuses: {valid}.",
                "VALIDATION_ERROR",
                is_json,
            )
        fields["status"] = status

    if "probability" in fields and not validate_probability(fields["probability"]):
        output_error(
            f"Invalid probability: {fields['probability']}. Must be between 0 and 100.",
            "VALIDATION_ERROR",
            is_json,
        )
    return fields


# ---------------------------------------------------------------------------
# reserve record
# ---------------------------------------------------------------------------


@cli.group()
def record() -> None:
    """Payroll reserve records."""


@record.command("add")
@click.argument("company")
@record_field_options
@common_options
def record_add(company: str, output_json: bool, quiet: bool, **options) -> None:
    """Record a new prospective payroll deal owned by you."""
    repo = open_repository(output_json)
    user = require_user(repo, output_json)

    fields = _collect_fields(options, output_json)
    fields["companyName"] = company

    rec = repo.add_record(new_record(fields, user))
    output_result(
        data=rec,
        human_message=f"Created record {rec['id']} \"{company}\"",
        quiet_value=rec["id"],
        is_json=output_json,
        is_quiet=quiet,
    )


@record.command("update")
@click.argument("record_id")
@click.option("--company", default=None, help="Company name.")
@click.option("--owner", default=None, help="Reassign to this employee code (management only).")
@record_field_options
@common_options
def record_update(
    record_id: str,
    company: str | None,
    owner: str | None,
    output_json: bool,
    quiet: bool,
    **options,
) -> None:
    """Update a record; the change is summarized into its history."""
    repo = open_repository(output_json)
    user = require_user(repo, output_json)
    read_record_or_exit(repo, record_id, user, output_json)

    fields = _collect_fields(options, output_json)
    if company is not None:
        fields["companyName"] = company

    new_owner = None
    if owner is not None:
        if user.get("role") not in MANAGEMENT_ROLES:
            output_error("Only management can reassign records.", "FORBIDDEN", output_json)
        new_owner = repo.find_user_by_employee_id(owner)
        if new_owner is None:
            output_error(f"No user with employee code '{owner}'.", "NOT_FOUND", output_json)

    rec = repo.update_record(record_id, fields, user, new_owner=new_owner)
    if rec is None:
        output_error(f"Record {record_id} not found.", "NOT_FOUND", output_json)
    output_result(
        data=rec,
        human_message=f"Updated record {record_id}: {rec['history'][0]['changeSummary']}",
        quiet_value=record_id,
        is_json=output_json,
        is_quiet=quiet,
    )


@record.command("delete")
@click.argument("record_id")
@common_options
def record_delete(record_id: str, output_json: bool, quiet: bool) -> None:
    """Permanently delete a record."""
    repo = open_repository(output_json)
    user = require_user(repo, output_json)
    read_record_or_exit(repo, record_id, user, output_json)

    if not repo.delete_record(record_id):
        output_error(f"Record {record_id} not found.", "NOT_FOUND", output_json)
    output_result(
        data={"id": record_id, "deleted": True},
        human_message=f"Deleted record {record_id}",
        quiet_value=record_id,
        is_json=output_json,
        is_quiet=quiet,
    )


@record.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@common_options
def record_import(path: str, output_json: bool, quiet: bool) -> None:
    """Bulk-add records from a JSON array file.

    Records lacking an owner are attributed to you.
    """
    repo = open_repository(output_json)
    user = require_user(repo, output_json)
    items = load_json_array(path, output_json)

    for item in items:
        if not item.get("updatedByUserId"):
            item["updatedByUserId"] = user["id"]
            item["updatedByName"] = user["name"]
            item.setdefault("department", user.get("department", ""))
            item.setdefault("line", user.get("line", ""))

    added = repo.batch_add_records(items)
    output_result(
        data={"imported": len(added), "ids": [r["id"] for r in added]},
        human_message=f"Imported {len(added)} records.",
        quiet_value=str(len(added)),
        is_json=output_json,
        is_quiet=quiet,
    )


@record.command("list")
@click.option("--status", default=None, help="Only records with this status.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def record_list(status: str | None, output_json: bool) -> None:
    """List the records visible to you."""
    repo = open_repository(output_json)
    user = require_user(repo, output_json)
    records = repo.visible_records(user)

    if status is not None:
        wanted = normalize_status(status)
        if wanted is None:
            output_error(f"Invalid status: '{status}'.", "VALIDATION_ERROR", output_json)
        records = [r for r in records if r.get("status") == wanted]

    rows = [compact_record(r) for r in records]
    if output_json:
        output_result(data=rows, human_message="", quiet_value="", is_json=True, is_quiet=False)
        return

    if not rows:
        click.echo("No records.")
        return
    for row in rows:
        click.echo(
            f"{row['id']}  {row['companyName']}  {row['estimatedNewPayroll']}人  "
            f"{row['probability']}%  {row['status']}  {row['updatedByName']}"
        )


@record.command("show")
@click.argument("record_id")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def record_show(record_id: str, output_json: bool) -> None:
    """Show one record with its change history."""
    repo = open_repository(output_json)
    user = require_user(repo, output_json)
    rec = read_record_or_exit(repo, record_id, user, output_json)

    if output_json:
        output_result(data=rec, human_message="", quiet_value="", is_json=True, is_quiet=False)
        return

    click.echo(f"{rec['id']}  {rec.get('companyName', '')}")
    click.echo(f"  Status: {rec.get('status')}  Probability: {rec.get('probability', 0)}%")
    click.echo(
        f"  Employees: {rec.get('totalEmployees', 0)}  "
        f"New payroll: {rec.get('estimatedNewPayroll', 0)}  "
        f"Cards issued: {rec.get('cardsIssued', 0)}"
    )
    click.echo(f"  Landing: {rec.get('estimatedLandingDate') or '-'}")
    click.echo(
        f"  Owner: {rec.get('updatedByName')}  {rec.get('department')} / {rec.get('line')}"
    )
    if rec.get("progressNotes"):
        click.echo(f"  Notes: {rec['progressNotes']}")
    history = rec.get("history") or []
    if history:
        click.echo("  History:")
        for entry in history:
            click.echo(
                f"    {entry.get('date')}  {entry.get('updatedByName')}: "
                f"{entry.get('changeSummary')}"
            )
