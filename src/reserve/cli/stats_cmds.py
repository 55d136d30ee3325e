"""Pipeline statistics for the logged-in user's scope."""

from __future__ import annotations

import click

from reserve.cli.helpers import open_repository, output_result, require_management
from reserve.cli.main import cli
from reserve.core.stats import group_reserve, pipeline_metrics, stale_staff


@cli.command()
@click.option("--stale-days", type=int, default=7, help="Staff idle longer than this are listed.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def stats(stale_days: int, output_json: bool) -> None:
    """Landed / projected headcount against the scoped yearly target."""
    repo = open_repository(output_json)
    user = require_management(repo, output_json)

    records = repo.visible_records(user)
    users = repo.all_users()
    metrics = pipeline_metrics(records, user, users)
    idle = stale_staff(repo.all_records(), user, users, days=stale_days)

    data = {
        "summary": metrics,
        "by_status": group_reserve(records, "status"),
        "by_line": group_reserve(records, "line"),
        "by_department": group_reserve(records, "department"),
        "by_owner": group_reserve(records, "updatedByName"),
        "stale_staff": [u.get("name") for u in idle],
    }

    if output_json:
        output_result(data=data, human_message="", quiet_value="", is_json=True, is_quiet=False)
        return

    click.echo(f"Records: {metrics['record_count']}  Total reserve: {metrics['total_reserve']}")
    click.echo(
        f"This month: {metrics['month_landed']} landed, "
        f"{metrics['month_projected']} more projected"
    )
    click.echo(
        f"This year: {metrics['year_landed']} / {metrics['target']} "
        f"({metrics['progress']}%), gap {metrics['gap']}"
    )
    for title, key in (("status", "by_status"), ("department", "by_department")):
        rows = data[key]
        if rows:
            click.echo(f"By {title}:")
            for name, total in rows:
                click.echo(f"  {name or '-'}: {total}")
    if idle:
        click.echo(f"Not updated in {stale_days} days: " + ", ".join(data["stale_staff"]))
