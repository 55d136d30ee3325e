"""Shared write-path operations for records, users and the login session.

This is the canonical write path: every mutation commits to the local store
first and only then asks the sync scheduler for a background run.  A sync
failure can never fail or roll back the mutation that triggered it.
"""

from __future__ import annotations

import logging
from typing import Protocol

from reserve.core.access import filter_records
from reserve.core.ids import generate_user_id
from reserve.core.models import LINE_CORPORATE, ROLE_ADMIN, PayrollRecord, User
from reserve.core.records import apply_update, prepare_import, seed_created_history
from reserve.storage.store import CURRENT_USER_KEY, RECORDS_KEY, USERS_KEY, Store

logger = logging.getLogger(__name__)

DEFAULT_ADMIN: User = {
    "id": "u0",
    "employeeId": "admin001",
    "name": "系统管理员",
    "password": "123",
    "role": ROLE_ADMIN,
    "title": "管理员",
    "department": "科技部",
    "line": LINE_CORPORATE,
    "yearlyTarget": 0,
}


class SyncRequester(Protocol):
    def request(self) -> None: ...


class Repository:
    """Record and user CRUD over a :class:`~reserve.storage.store.Store`."""

    def __init__(self, store: Store, scheduler: SyncRequester | None = None) -> None:
        self.store = store
        self.scheduler = scheduler

    # -- bootstrap ---------------------------------------------------------

    def init(
        self,
        seed_users: list[User] | None = None,
        seed_records: list[PayrollRecord] | None = None,
    ) -> bool:
        """Seed users (default: one admin) and records (default: none) if absent.

        Each collection is seeded only when its key does not exist yet, so
        re-running never overwrites data.  Returns True when anything was
        written.
        """
        wrote = False
        if not self.store.has(USERS_KEY):
            self.store.save(USERS_KEY, seed_users if seed_users is not None else [DEFAULT_ADMIN])
            wrote = True
        if not self.store.has(RECORDS_KEY):
            self.store.save(RECORDS_KEY, seed_records or [])
            wrote = True
        return wrote

    # -- records -----------------------------------------------------------

    def all_records(self) -> list[PayrollRecord]:
        return self.store.load(RECORDS_KEY, [])

    def visible_records(self, user: User) -> list[PayrollRecord]:
        return filter_records(user, self.all_records())

    def get_record(self, record_id: str) -> PayrollRecord | None:
        for rec in self.all_records():
            if rec.get("id") == record_id:
                return rec
        return None

    def add_record(self, record: PayrollRecord) -> PayrollRecord:
        seed_created_history(record)

        def _append(records: list) -> list:
            records.append(record)
            return records

        self.store.update(RECORDS_KEY, _append, [])
        self._after_write("add_record")
        return record

    def update_record(
        self,
        record_id: str,
        changes: dict,
        actor: User,
        *,
        new_owner: User | None = None,
    ) -> PayrollRecord | None:
        """Apply *changes* as *actor*; returns None for an unknown id."""
        result: list[PayrollRecord] = []

        def _replace(records: list) -> list:
            for index, rec in enumerate(records):
                if rec.get("id") == record_id:
                    updated = apply_update(rec, changes, actor, new_owner=new_owner)
                    records[index] = updated
                    result.append(updated)
                    break
            return records

        self.store.update(RECORDS_KEY, _replace, [])
        if not result:
            return None
        self._after_write("update_record")
        return result[0]

    def delete_record(self, record_id: str) -> bool:
        """Hard delete; no tombstone is kept.  Returns False if absent."""
        removed: list[bool] = []

        def _filter(records: list) -> list:
            kept = [r for r in records if r.get("id") != record_id]
            removed.append(len(kept) != len(records))
            return kept

        self.store.update(RECORDS_KEY, _filter, [])
        if not removed[0]:
            return False
        self._after_write("delete_record")
        return True

    def batch_add_records(self, records: list[PayrollRecord]) -> list[PayrollRecord]:
        prepared = prepare_import(records)
        self.store.update(RECORDS_KEY, lambda existing: [*existing, *prepared], [])
        self._after_write("batch_add_records")
        return prepared

    # -- users -------------------------------------------------------------

    def all_users(self) -> list[User]:
        return self.store.load(USERS_KEY, [])

    def get_user(self, user_id: str) -> User | None:
        for user in self.all_users():
            if user.get("id") == user_id:
                return user
        return None

    def find_user_by_employee_id(self, employee_id: str) -> User | None:
        for user in self.all_users():
            if user.get("employeeId") == employee_id:
                return user
        return None

    def save_user(self, user: User) -> User:
        """Insert or replace by id."""
        if not user.get("id"):
            user["id"] = generate_user_id()

        def _upsert(users: list) -> list:
            for index, existing in enumerate(users):
                if existing.get("id") == user["id"]:
                    users[index] = user
                    break
            else:
                users.append(user)
            return users

        self.store.update(USERS_KEY, _upsert, [])
        self._after_write("save_user")
        return user

    def delete_user(self, user_id: str) -> bool:
        """Remove a user.  Their records keep pointing at the old id."""
        removed: list[bool] = []

        def _filter(users: list) -> list:
            kept = [u for u in users if u.get("id") != user_id]
            removed.append(len(kept) != len(users))
            return kept

        self.store.update(USERS_KEY, _filter, [])
        if not removed[0]:
            return False
        self._after_write("delete_user")
        return True

    def batch_add_users(self, users: list[User]) -> list[User]:
        for user in users:
            if not user.get("id"):
                user["id"] = generate_user_id()
        self.store.update(USERS_KEY, lambda existing: [*existing, *users], [])
        self._after_write("batch_add_users")
        return users

    # -- session -----------------------------------------------------------

    def login(self, employee_id: str, password: str) -> User | None:
        """Flat equality check.  A user without a password accepts any."""
        for user in self.all_users():
            if user.get("employeeId") != employee_id:
                continue
            stored = user.get("password")
            if stored is None or stored == password:
                self.store.save(CURRENT_USER_KEY, user)
                return user
        return None

    def logout(self) -> None:
        self.store.remove(CURRENT_USER_KEY)

    def current_user(self) -> User | None:
        return self.store.load(CURRENT_USER_KEY)

    # -- internal ----------------------------------------------------------

    def _after_write(self, op: str) -> None:
        if self.scheduler is None:
            return
        try:
            self.scheduler.request()
        except Exception:
            logger.exception("reserve: could not schedule sync after %s", op)
