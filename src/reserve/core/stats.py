"""Pipeline metrics shared by the CLI ``stats`` command."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone

from reserve.core.access import staff_in_scope, users_in_scope
from reserve.core.models import (
    ROLE_STAFF,
    STATUS_COMPLETED,
    STATUS_FOLLOWING,
    PayrollRecord,
    User,
    parse_ts,
)


def scoped_target(user: User, users: list[User]) -> int:
    """Yearly target for *user*'s scope.

    Staff carry their own target; every other role sums the targets of
    the users in their scope.
    """
    if user.get("role") == ROLE_STAFF:
        return int(user.get("yearlyTarget", 0) or 0)
    return sum(int(u.get("yearlyTarget", 0) or 0) for u in users_in_scope(user, users))


def pipeline_metrics(
    records: list[PayrollRecord],
    user: User,
    users: list[User],
    now: datetime | None = None,
) -> dict:
    """Compute landed / projected headcount against the scoped target.

    *records* must already be filtered to what *user* can see.  Records
    whose landing date does not parse count towards nothing time-bound.
    """
    now = now or datetime.now(timezone.utc)

    month_landed = 0
    month_projected = 0
    year_landed = 0

    for rec in records:
        landing = parse_ts(rec.get("estimatedLandingDate"))
        if landing is None:
            continue
        this_year = landing.year == now.year
        this_month = this_year and landing.month == now.month
        amount = int(rec.get("estimatedNewPayroll", 0) or 0)

        status = rec.get("status")
        if status == STATUS_COMPLETED:
            if this_year:
                year_landed += amount
            if this_month:
                month_landed += amount
        elif status == STATUS_FOLLOWING and this_month:
            month_projected += amount

    target = scoped_target(user, users)
    gap = max(0, target - year_landed)
    progress = (year_landed / target) * 100 if target > 0 else 0.0

    return {
        "month_landed": month_landed,
        "month_projected": month_projected,
        "year_landed": year_landed,
        "target": target,
        "gap": gap,
        "progress": round(progress, 1),
        "total_reserve": sum(int(r.get("estimatedNewPayroll", 0) or 0) for r in records),
        "record_count": len(records),
    }


def group_reserve(records: list[PayrollRecord], key: str) -> list[tuple[str, int]]:
    """Sum ``estimatedNewPayroll`` per value of *key*, largest first."""
    totals: Counter = Counter()
    for rec in records:
        totals[str(rec.get(key, ""))] += int(rec.get("estimatedNewPayroll", 0) or 0)
    return sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))


def stale_staff(
    records: list[PayrollRecord],
    user: User,
    users: list[User],
    now: datetime | None = None,
    *,
    days: int = 7,
) -> list[User]:
    """Staff in scope whose newest record update is older than *days*.

    Staff with no records at all are included.
    """
    now = now or datetime.now(timezone.utc)
    latest: dict[str, datetime] = {}
    for rec in records:
        ts = parse_ts(rec.get("updatedAt"))
        owner = rec.get("updatedByUserId")
        if ts is None or owner is None:
            continue
        if owner not in latest or ts > latest[owner]:
            latest[owner] = ts

    result = []
    for staff in staff_in_scope(user, users):
        ts = latest.get(staff.get("id"))
        if ts is None or (now - ts).total_seconds() > days * 86400:
            result.append(staff)
    return result
