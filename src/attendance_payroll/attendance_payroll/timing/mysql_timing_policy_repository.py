from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, to_bool
from .model import TimingPolicy
from .repository import TimingPolicyRepository

_COLUMNS = """
    department, check_in_time, check_out_time, working_hours_per_day,
    late_threshold_minutes, overtime_threshold_minutes, weekly_off_days,
    is_flexible_timing, flexible_window_minutes, half_day_minutes,
    allow_remote_work, allow_field_work, is_active
"""


def _parse_off_days(value) -> frozenset:
    # Stored as a comma separated list of weekday indexes, e.g. "5,6".
    if not value:
        return frozenset()
    return frozenset(int(p) for p in str(value).split(",") if p.strip())


def _row_to_policy(r: dict) -> TimingPolicy:
    return TimingPolicy(
        department=r["department"],
        check_in_time=normalize_mysql_time(r["check_in_time"]),
        check_out_time=normalize_mysql_time(r["check_out_time"]),
        working_hours_per_day=float(r["working_hours_per_day"]),
        late_threshold_minutes=int(r["late_threshold_minutes"]),
        overtime_threshold_minutes=int(r["overtime_threshold_minutes"]),
        weekly_off_days=_parse_off_days(r.get("weekly_off_days")),
        is_flexible_timing=to_bool(r.get("is_flexible_timing")),
        flexible_window_minutes=int(r.get("flexible_window_minutes") or 0),
        half_day_minutes=int(r.get("half_day_minutes") or 0),
        allow_remote_work=to_bool(r.get("allow_remote_work", 1)),
        allow_field_work=to_bool(r.get("allow_field_work", 1)),
        is_active=to_bool(r.get("is_active", 1)),
    )


class MySQLTimingPolicyRepository(TimingPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_department(self, department: str) -> TimingPolicy | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timing_policies WHERE department=%s AND is_active=1",
                (department.strip().lower(),),
            )
            r = fetchone(cur)
            return _row_to_policy(r) if r else None

    def list_all(self) -> Sequence[TimingPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM timing_policies ORDER BY department")
            return [_row_to_policy(r) for r in fetchall(cur)]

    def upsert(self, policy: TimingPolicy) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timing_policies(
                    department, check_in_time, check_out_time, working_hours_per_day,
                    late_threshold_minutes, overtime_threshold_minutes, weekly_off_days,
                    is_flexible_timing, flexible_window_minutes, half_day_minutes,
                    allow_remote_work, allow_field_work, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    working_hours_per_day=VALUES(working_hours_per_day),
                    late_threshold_minutes=VALUES(late_threshold_minutes),
                    overtime_threshold_minutes=VALUES(overtime_threshold_minutes),
                    weekly_off_days=VALUES(weekly_off_days),
                    is_flexible_timing=VALUES(is_flexible_timing),
                    flexible_window_minutes=VALUES(flexible_window_minutes),
                    half_day_minutes=VALUES(half_day_minutes),
                    allow_remote_work=VALUES(allow_remote_work),
                    allow_field_work=VALUES(allow_field_work),
                    is_active=VALUES(is_active)
                """,
                (
                    policy.department,
                    policy.check_in_time,
                    policy.check_out_time,
                    policy.working_hours_per_day,
                    policy.late_threshold_minutes,
                    policy.overtime_threshold_minutes,
                    ",".join(str(d) for d in sorted(policy.weekly_off_days)),
                    int(policy.is_flexible_timing),
                    policy.flexible_window_minutes,
                    policy.half_day_minutes,
                    int(policy.allow_remote_work),
                    int(policy.allow_field_work),
                    int(policy.is_active),
                ),
            )
