"""Role-based visibility of records and users.

Every check here is a pure function of ``(user, item)``; nothing reads or
writes storage.
"""

from __future__ import annotations

from reserve.core.models import (
    ROLE_ADMIN,
    ROLE_BRANCH_PRESIDENT,
    ROLE_DEPARTMENT_MANAGER,
    ROLE_STAFF,
    VP_LINES,
    PayrollRecord,
    User,
)

_SEE_ALL_ROLES = frozenset({ROLE_ADMIN, ROLE_BRANCH_PRESIDENT})


def can_view(user: User, record: PayrollRecord) -> bool:
    """Return True when *user* may see *record*."""
    role = user.get("role")
    if role in _SEE_ALL_ROLES:
        return True
    if role in VP_LINES:
        return record.get("line") == VP_LINES[role]
    if role == ROLE_DEPARTMENT_MANAGER:
        return record.get("department") == user.get("department")
    if role == ROLE_STAFF:
        return record.get("updatedByUserId") == user.get("id")
    return False


def can_edit(user: User, record: PayrollRecord) -> bool:
    """Editing follows visibility: anyone who can see a record may update it."""
    return can_view(user, record)


def filter_records(user: User, records: list[PayrollRecord]) -> list[PayrollRecord]:
    return [r for r in records if can_view(user, r)]


def users_in_scope(user: User, users: list[User]) -> list[User]:
    """Users whose targets roll up into *user*'s dashboard.

    Staff see only themselves; managers their department; vice-presidents
    their line; the president and admin everyone.
    """
    role = user.get("role")
    if role == ROLE_STAFF:
        return [u for u in users if u.get("id") == user.get("id")] or [user]
    if role == ROLE_DEPARTMENT_MANAGER:
        return [u for u in users if u.get("department") == user.get("department")]
    if role in VP_LINES:
        return [u for u in users if u.get("line") == VP_LINES[role]]
    if role in _SEE_ALL_ROLES:
        return list(users)
    return []


def staff_in_scope(user: User, users: list[User]) -> list[User]:
    """Staff members a manager-level *user* is responsible for."""
    return [u for u in users_in_scope(user, users) if u.get("role") == ROLE_STAFF]
