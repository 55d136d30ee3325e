"""Record, user and cloud-config shapes plus the enumerated vocabularies.

Records and users are stored as plain JSON dicts with camelCase keys so the
local files and the shared cloud document stay byte-compatible with every
other device that reads them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TypedDict


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

ROLE_ADMIN = "ADMIN"
ROLE_BRANCH_PRESIDENT = "BRANCH_PRESIDENT"
ROLE_VP_CORPORATE = "VP_CORPORATE"
ROLE_VP_RETAIL = "VP_RETAIL"
ROLE_VP_PERSONAL = "VP_PERSONAL"
ROLE_DEPARTMENT_MANAGER = "DEPARTMENT_MANAGER"
ROLE_STAFF = "STAFF"

# Highest rank first.
VALID_ROLES: tuple[str, ...] = (
    ROLE_ADMIN,
    ROLE_BRANCH_PRESIDENT,
    ROLE_VP_CORPORATE,
    ROLE_VP_RETAIL,
    ROLE_VP_PERSONAL,
    ROLE_DEPARTMENT_MANAGER,
    ROLE_STAFF,
)

MANAGEMENT_ROLES: frozenset[str] = frozenset(VALID_ROLES) - {ROLE_STAFF}

LINE_CORPORATE = "公司"
LINE_RETAIL = "零售"
LINE_PERSONAL = "个人"

VALID_LINES: tuple[str, ...] = (LINE_CORPORATE, LINE_RETAIL, LINE_PERSONAL)

# English aliases accepted on the command line.
LINE_ALIASES: dict[str, str] = {
    "corporate": LINE_CORPORATE,
    "retail": LINE_RETAIL,
    "personal": LINE_PERSONAL,
}

STATUS_FOLLOWING = "跟进中"
STATUS_COMPLETED = "已落地"
STATUS_FAILED = "无法落地"

VALID_STATUSES: tuple[str, ...] = (STATUS_FOLLOWING, STATUS_COMPLETED, STATUS_FAILED)

STATUS_ALIASES: dict[str, str] = {
    "following": STATUS_FOLLOWING,
    "completed": STATUS_COMPLETED,
    "failed": STATUS_FAILED,
}

# Role → line for the three vice-presidents.
VP_LINES: dict[str, str] = {
    ROLE_VP_CORPORATE: LINE_CORPORATE,
    ROLE_VP_RETAIL: LINE_RETAIL,
    ROLE_VP_PERSONAL: LINE_PERSONAL,
}


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


class HistoryEntry(TypedDict):
    date: str
    updatedByName: str
    changeSummary: str


class PayrollRecord(TypedDict, total=False):
    id: str
    companyName: str
    totalEmployees: int
    estimatedNewPayroll: int
    estimatedLandingDate: str
    cardsIssued: int
    cardSchedule: str
    lastVisitDate: str
    probability: int
    progressNotes: str
    updatedAt: str
    updatedByUserId: str
    updatedByName: str
    department: str
    line: str
    status: str
    history: list[HistoryEntry]


class User(TypedDict, total=False):
    id: str
    employeeId: str
    name: str
    password: str
    role: str
    title: str
    department: str
    line: str
    yearlyTarget: int


class CloudConfig(TypedDict):
    enabled: bool
    apiKey: str
    binId: str


class RemoteDocument(TypedDict, total=False):
    records: list[PayrollRecord]
    users: list[User]
    lastSync: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_ts(ts_str: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not ts_str:
        return None
    try:
        dt = datetime.fromisoformat(ts_str.replace("Z", "+00:00"))
    except (ValueError, AttributeError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_line(value: str) -> str | None:
    """Map a line name or English alias to its stored value."""
    if value in VALID_LINES:
        return value
    return LINE_ALIASES.get(value.lower())


def normalize_status(value: str) -> str | None:
    """Map a status or English alias to its stored value."""
    if value in VALID_STATUSES:
        return value
    return STATUS_ALIASES.get(value.lower())


def validate_role(role: str) -> bool:
    return role in VALID_ROLES


def validate_probability(value: int) -> bool:
    return isinstance(value, int) and 0 <= value <= 100
