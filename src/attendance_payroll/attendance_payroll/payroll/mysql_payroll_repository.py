from __future__ import annotations

from typing import Sequence

from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json_map, fetchall, fetchone, load_json_map, to_bool
from .model import DeductionBreakdown, EarningsBreakdown, PayrollRecord
from .repository import PayrollRepository

_SELECT = """
    SELECT p.payroll_id, p.user_id, p.month, p.year, p.month_days, p.present_days,
           p.paid_leave_days, p.weekly_off_days, p.overtime_hours, p.per_day_salary, p.earned_basic,
           p.earned_hra, p.earned_conveyance, p.custom_earnings, p.overtime_pay,
           p.gross_salary, p.epf_deduction, p.esi_deduction, p.vpt_deduction,
           p.tds_deduction, p.custom_deductions, p.fine_deduction, p.salary_advance,
           p.credit_adjustment, p.other_deductions, p.esi_eligible, p.total_earnings,
           p.total_deductions, p.net_salary, p.status, p.processed_by, p.processed_at,
           u.employee_code
    FROM payroll_records p
    LEFT JOIN users u ON u.user_id = p.user_id
"""

_REPLACEABLE = (PayrollStatus.DRAFT.value, PayrollStatus.PROCESSED.value)


def _columns(record: PayrollRecord) -> list[tuple[str, object]]:
    e, d = record.earnings, record.deductions
    return [
        ("user_id", record.user_id),
        ("month", record.month),
        ("year", record.year),
        ("month_days", record.month_days),
        ("present_days", record.present_days),
        ("paid_leave_days", record.paid_leave_days),
        ("weekly_off_days", record.weekly_off_days),
        ("overtime_hours", record.overtime_hours),
        ("per_day_salary", e.per_day_salary),
        ("earned_basic", e.earned_basic),
        ("earned_hra", e.earned_hra),
        ("earned_conveyance", e.earned_conveyance),
        ("custom_earnings", dump_json_map(e.custom_earnings)),
        ("overtime_pay", e.overtime_pay),
        ("gross_salary", e.gross_salary),
        ("epf_deduction", d.epf),
        ("esi_deduction", d.esi),
        ("vpt_deduction", d.vpt),
        ("tds_deduction", d.tds),
        ("custom_deductions", dump_json_map(d.custom_deductions)),
        ("fine_deduction", d.fine),
        ("salary_advance", d.salary_advance),
        ("credit_adjustment", d.credit_adjustment),
        ("other_deductions", d.other),
        ("esi_eligible", int(d.esi_eligible)),
        ("total_earnings", record.total_earnings),
        ("total_deductions", record.total_deductions),
        ("net_salary", record.net_salary),
        ("status", record.status.value),
        ("processed_by", record.processed_by),
        ("processed_at", record.processed_at),
    ]


def _as_int_map(value) -> dict:
    return {k: int(round(v)) for k, v in load_json_map(value).items()}


def _row_to_record(r: dict) -> PayrollRecord:
    earnings = EarningsBreakdown(
        per_day_salary=int(r["per_day_salary"]),
        earned_basic=int(r["earned_basic"]),
        earned_hra=int(r["earned_hra"]),
        earned_conveyance=int(r["earned_conveyance"]),
        custom_earnings=_as_int_map(r.get("custom_earnings")),
        overtime_pay=int(r["overtime_pay"]),
        gross_salary=int(r["gross_salary"]),
    )
    deductions = DeductionBreakdown(
        epf=int(r["epf_deduction"]),
        esi=int(r["esi_deduction"]),
        vpt=int(r["vpt_deduction"]),
        tds=int(r["tds_deduction"]),
        custom_deductions=_as_int_map(r.get("custom_deductions")),
        fine=int(r["fine_deduction"]),
        salary_advance=int(r["salary_advance"]),
        credit_adjustment=int(r["credit_adjustment"]),
        other=int(r["other_deductions"]),
        total=int(r["total_deductions"]),
        esi_eligible=to_bool(r["esi_eligible"]),
    )
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        user_id=int(r["user_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        month_days=int(r["month_days"]),
        present_days=float(r["present_days"]),
        paid_leave_days=float(r["paid_leave_days"]),
        weekly_off_days=int(r.get("weekly_off_days") or 0),
        overtime_hours=float(r["overtime_hours"]),
        earnings=earnings,
        deductions=deductions,
        total_earnings=int(r["total_earnings"]),
        total_deductions=int(r["total_deductions"]),
        net_salary=int(r["net_salary"]),
        status=PayrollStatus(r["status"]),
        employee_code=r.get("employee_code"),
        processed_by=r.get("processed_by"),
        processed_at=r.get("processed_at"),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> PayrollRecord | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.payroll_id=%s", (payroll_id,))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_month(self, user_id: int, month: int, year: int) -> PayrollRecord | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.user_id=%s AND p.month=%s AND p.year=%s", (user_id, month, year))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def upsert(self, record: PayrollRecord) -> int | None:
        values = _columns(record)
        names = [name for name, _ in values]
        params = [value for _, value in values]

        with db_cursor(self._conn_factory) as (_, cur):
            # the row lock keeps a concurrent status change out until commit
            cur.execute(
                """
                SELECT payroll_id, status FROM payroll_records
                WHERE user_id=%s AND month=%s AND year=%s
                FOR UPDATE
                """,
                (record.user_id, record.month, record.year),
            )
            existing = fetchone(cur)

            if existing is None:
                cur.execute(
                    f"INSERT INTO payroll_records({', '.join(names)}) VALUES({', '.join(['%s'] * len(names))})",
                    tuple(params),
                )
                return int(cur.lastrowid)

            if existing["status"] not in _REPLACEABLE:
                return None

            assignments = ", ".join(f"{name}=%s" for name in names)
            cur.execute(
                f"UPDATE payroll_records SET {assignments} WHERE payroll_id=%s",
                tuple(params) + (existing["payroll_id"],),
            )
            return int(existing["payroll_id"])

    def list_for_month(
        self,
        month: int,
        year: int,
        *,
        user_ids: Sequence[int] | None = None,
        status: PayrollStatus | None = None,
    ) -> Sequence[PayrollRecord]:
        sql = _SELECT + " WHERE p.month=%s AND p.year=%s"
        params: list = [month, year]
        if user_ids is not None:
            if not user_ids:
                return []
            sql += " AND p.user_id IN (" + ",".join(["%s"] * len(user_ids)) + ")"
            params.extend(int(u) for u in user_ids)
        if status is not None:
            sql += " AND p.status=%s"
            params.append(status.value)
        sql += " ORDER BY p.user_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def update_status(
        self,
        payroll_id: int,
        *,
        expected: PayrollStatus,
        new_status: PayrollStatus,
        actor_id: int | None = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET status=%s, status_changed_by=%s, status_changed_at=NOW()
                WHERE payroll_id=%s AND status=%s
                """,
                (new_status.value, actor_id, payroll_id, expected.value),
            )
            return cur.rowcount == 1
