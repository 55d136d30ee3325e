"""Demo data: a small branch with its full reporting chain and a few leads.

Used by ``reserve init --demo`` to give a fresh store something to look at.
Every demo account has the password ``123``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from reserve.core.models import (
    LINE_CORPORATE,
    LINE_PERSONAL,
    LINE_RETAIL,
    ROLE_ADMIN,
    ROLE_BRANCH_PRESIDENT,
    ROLE_DEPARTMENT_MANAGER,
    ROLE_STAFF,
    ROLE_VP_CORPORATE,
    ROLE_VP_PERSONAL,
    ROLE_VP_RETAIL,
    STATUS_COMPLETED,
    STATUS_FOLLOWING,
    PayrollRecord,
    User,
)
from reserve.core.records import SUMMARY_CREATED, history_entry

DEMO_PASSWORD = "123"

# id, employeeId, name, role, title, department, line, yearlyTarget
_USERS = (
    ("u0", "admin001", "系统管理员", ROLE_ADMIN, "管理员", "科技部", LINE_CORPORATE, 0),
    ("u1", "A001", "张行长", ROLE_BRANCH_PRESIDENT, "支行行长", "行长室", LINE_CORPORATE, 10000),
    ("u2", "B001", "李行长", ROLE_VP_CORPORATE, "公司分管行长", "行长室", LINE_CORPORATE, 5000),
    ("u3", "B002", "王行长", ROLE_VP_RETAIL, "零售分管行长", "行长室", LINE_RETAIL, 3000),
    ("u4", "B003", "赵行长", ROLE_VP_PERSONAL, "个人分管行长", "行长室", LINE_PERSONAL, 2000),
    ("m_c1", "C101", "陈经理", ROLE_DEPARTMENT_MANAGER, "公司业务一部经理", "公司业务一部", LINE_CORPORATE, 2000),
    ("s_c1", "C102", "小刘", ROLE_STAFF, "公司客户经理", "公司业务一部", LINE_CORPORATE, 1000),
    ("s_c2", "C103", "小吴", ROLE_STAFF, "公司客户经理", "公司业务一部", LINE_CORPORATE, 1000),
    ("m_c2", "C201", "周经理", ROLE_DEPARTMENT_MANAGER, "公司业务二部经理", "公司业务二部", LINE_CORPORATE, 1500),
    ("s_c3", "C202", "小郑", ROLE_STAFF, "公司客户经理", "公司业务二部", LINE_CORPORATE, 1500),
    ("m_r1", "R101", "吴经理", ROLE_DEPARTMENT_MANAGER, "零售业务一部经理", "零售业务一部", LINE_RETAIL, 1500),
    ("s_r1", "R102", "小杨", ROLE_STAFF, "零售客户经理", "零售业务一部", LINE_RETAIL, 800),
    ("m_p1", "P101", "孙经理", ROLE_DEPARTMENT_MANAGER, "营业部经理", "营业部", LINE_PERSONAL, 1000),
    ("s_p1", "P102", "小钱", ROLE_STAFF, "理财经理", "营业部", LINE_PERSONAL, 1000),
    ("m_p2", "P201", "李行长", ROLE_DEPARTMENT_MANAGER, "石浦支行行长", "石浦支行", LINE_PERSONAL, 800),
    ("s_p2", "P202", "小周", ROLE_STAFF, "理财经理", "石浦支行", LINE_PERSONAL, 800),
    ("m_p3", "P301", "钱经理", ROLE_DEPARTMENT_MANAGER, "私银部经理", "私银部", LINE_PERSONAL, 500),
    ("s_p3", "P302", "小赵", ROLE_STAFF, "私银经理", "私银部", LINE_PERSONAL, 500),
)


def demo_users() -> list[User]:
    return [
        {
            "id": uid,
            "employeeId": employee_id,
            "name": name,
            "password": DEMO_PASSWORD,
            "role": role,
            "title": title,
            "department": department,
            "line": line,
            "yearlyTarget": target,
        }
        for uid, employee_id, name, role, title, department, line, target in _USERS
    ]


def _record(rid: str, owner_id: str, **fields) -> PayrollRecord:
    owner = next(u for u in demo_users() if u["id"] == owner_id)
    record: PayrollRecord = {
        "id": rid,
        "cardSchedule": "",
        "history": [],
        "updatedByUserId": owner["id"],
        "updatedByName": owner["name"],
        "department": owner["department"],
        "line": owner["line"],
        "status": STATUS_FOLLOWING,
    }
    record.update(fields)
    return record


def demo_records(now: datetime | None = None) -> list[PayrollRecord]:
    """Five leads spread over three lines.

    Two of them landed on *now* (default: the current time), so the month
    and year metrics are non-zero right after seeding.  One has not been
    visited for a long time and shows up as stale.
    """
    now = now or datetime.now(timezone.utc)
    today = now.strftime("%Y-%m-%d")
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    return [
        _record(
            "r1", "s_r1",
            companyName="象山海鲜加工厂",
            totalEmployees=200,
            estimatedNewPayroll=180,
            estimatedLandingDate=today,
            cardsIssued=150,
            cardSchedule="2023-11-20",
            lastVisitDate=today,
            probability=100,
            progressNotes="已完成大部分开卡，剩余人员下周补录。",
            updatedAt=stamp,
            status=STATUS_COMPLETED,
            history=[history_entry("小杨", SUMMARY_CREATED, date="2023-10-01")],
        ),
        _record(
            "r2", "s_c1",
            companyName="宁波东部科技园",
            totalEmployees=500,
            estimatedNewPayroll=450,
            estimatedLandingDate="2024-06-01",
            cardsIssued=0,
            cardSchedule="2023-11-25",
            lastVisitDate="2023-10-20",
            probability=60,
            progressNotes="高层已对接，等待协议签署。",
            updatedAt="2023-10-20T10:00:00.000Z",
        ),
        _record(
            "r3", "s_p3",
            companyName="豪车俱乐部",
            totalEmployees=50,
            estimatedNewPayroll=50,
            estimatedLandingDate="2023-10-10",
            cardsIssued=10,
            cardSchedule="2023-12-05",
            lastVisitDate="2023-11-01",
            probability=30,
            progressNotes="私银客户转介，重点跟进高管。",
            updatedAt="2023-11-01T14:30:00.000Z",
        ),
        _record(
            "r4", "s_c1",
            companyName="象山渔业总公司",
            totalEmployees=1000,
            estimatedNewPayroll=900,
            estimatedLandingDate=today,
            cardsIssued=200,
            cardSchedule="2023-11-25",
            lastVisitDate="2023-11-10",
            probability=90,
            progressNotes="首批款项已发，二批卡下周开。",
            updatedAt=stamp,
            status=STATUS_COMPLETED,
        ),
        _record(
            "r5", "s_c1",
            companyName="陈旧企业示例",
            totalEmployees=300,
            estimatedNewPayroll=100,
            estimatedLandingDate="2024-12-01",
            cardsIssued=0,
            lastVisitDate="2023-01-01",
            probability=20,
            progressNotes="很久没去了",
            updatedAt="2023-01-01T00:00:00.000Z",
        ),
    ]
