"""Record construction, import preparation and history-diff updates."""

from __future__ import annotations

import copy
from collections.abc import Callable

from reserve.core.ids import generate_record_id
from reserve.core.models import (
    STATUS_FOLLOWING,
    HistoryEntry,
    PayrollRecord,
    User,
    utc_now,
)

SUMMARY_CREATED = "创建记录"
SUMMARY_IMPORTED = "批量导入"
SUMMARY_MANUAL = "手动更新"

# Fields the caller may never overwrite through an update payload.
PROTECTED_FIELDS: frozenset[str] = frozenset({"id", "history", "updatedAt"})

_RECORD_DEFAULTS: dict = {
    "companyName": "",
    "totalEmployees": 0,
    "estimatedNewPayroll": 0,
    "estimatedLandingDate": "",
    "cardsIssued": 0,
    "cardSchedule": "",
    "lastVisitDate": "",
    "probability": 0,
    "progressNotes": "",
    "status": STATUS_FOLLOWING,
}


# ---------------------------------------------------------------------------
# Change summaries
# ---------------------------------------------------------------------------

# (field, formatter(old, new)) in the order they appear in a summary.
_TRACKED_FIELDS: tuple[tuple[str, Callable[[object, object], str]], ...] = (
    ("estimatedNewPayroll", lambda a, b: f"预计新增代发: {a} -> {b}"),
    ("cardsIssued", lambda a, b: f"已开卡: {a} -> {b}"),
    ("estimatedLandingDate", lambda a, b: "预计落地时间变更"),
    ("probability", lambda a, b: f"落地概率: {a}% -> {b}%"),
    ("progressNotes", lambda a, b: "更新备注"),
    ("status", lambda a, b: f"状态: {a} -> {b}"),
    ("totalEmployees", lambda a, b: f"企业人数: {a} -> {b}"),
)


def summarize_changes(old: PayrollRecord, new: PayrollRecord) -> list[str]:
    """Return one human-readable fragment per tracked field that differs."""
    changes: list[str] = []
    for field, fmt in _TRACKED_FIELDS:
        before = old.get(field)
        after = new.get(field)
        if before != after:
            changes.append(fmt(before, after))
    return changes


def history_entry(actor_name: str, summary: str, *, date: str | None = None) -> HistoryEntry:
    return {
        "date": date or utc_now(),
        "updatedByName": actor_name,
        "changeSummary": summary,
    }


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def new_record(fields: dict, owner: User, *, record_id: str | None = None) -> PayrollRecord:
    """Build a complete record owned by *owner* from a partial field dict.

    Ownership attribution (user, department, line) is copied from the owner
    unless *fields* names a department or line explicitly. The history is
    left empty; :func:`seed_created_history` fills it on insert.
    """
    record: dict = dict(_RECORD_DEFAULTS)
    record.update({k: v for k, v in fields.items() if k not in PROTECTED_FIELDS})
    record["id"] = record_id or fields.get("id") or generate_record_id()
    record["updatedByUserId"] = owner["id"]
    record["updatedByName"] = owner["name"]
    record.setdefault("department", owner.get("department", ""))
    record.setdefault("line", owner.get("line", ""))
    record["updatedAt"] = utc_now()
    return record


def seed_created_history(record: PayrollRecord) -> PayrollRecord:
    """Give *record* a ``created`` history entry unless it already has history."""
    if not record.get("history"):
        record["history"] = [history_entry(record.get("updatedByName", ""), SUMMARY_CREATED)]
    return record


def prepare_import(records: list[PayrollRecord]) -> list[PayrollRecord]:
    """Return copies of *records* whose history is replaced by an import entry.

    Records without an id get a fresh one so the identity invariant holds
    for everything that reaches the store.
    """
    prepared: list[PayrollRecord] = []
    for rec in records:
        item = copy.deepcopy(rec)
        if not item.get("id"):
            item["id"] = generate_record_id()
        item.setdefault("updatedAt", utc_now())
        item["history"] = [history_entry(item.get("updatedByName", ""), SUMMARY_IMPORTED)]
        prepared.append(item)
    return prepared


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def apply_update(
    old: PayrollRecord,
    changes: dict,
    actor: User,
    *,
    new_owner: User | None = None,
) -> PayrollRecord:
    """Return the successor of *old* after *actor* applies *changes*.

    The acting user becomes the attributed editor.  When *new_owner* is
    given and differs from the current owner, ownership moves to them and
    the move is written into the history entry.  ``id``, ``history`` and
    ``updatedAt`` in *changes* are ignored.
    """
    updated = copy.deepcopy(old)
    updated.update({k: v for k, v in changes.items() if k not in PROTECTED_FIELDS})

    summary = summarize_changes(old, updated)

    owner = new_owner or actor
    if new_owner is not None and new_owner["id"] != old.get("updatedByUserId"):
        summary.append(f"储备人员: {old.get('updatedByName', '')} -> {new_owner['name']}")
        updated["department"] = changes.get("department", new_owner.get("department", ""))
        updated["line"] = changes.get("line", new_owner.get("line", ""))

    entry = history_entry(actor["name"], "; ".join(summary) if summary else SUMMARY_MANUAL)
    updated["updatedAt"] = entry["date"]
    updated["updatedByUserId"] = owner["id"]
    updated["updatedByName"] = owner["name"]
    updated["history"] = [entry, *(old.get("history") or [])]
    return updated


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def compact_record(record: PayrollRecord) -> dict:
    """Return a compact view suitable for list output."""
    return {
        "id": record.get("id"),
        "companyName": record.get("companyName"),
        "estimatedNewPayroll": record.get("estimatedNewPayroll", 0),
        "probability": record.get("probability", 0),
        "status": record.get("status"),
        "updatedByName": record.get("updatedByName"),
        "department": record.get("department"),
        "updatedAt": record.get("updatedAt"),
        "history_count": len(record.get("history") or []),
    }
