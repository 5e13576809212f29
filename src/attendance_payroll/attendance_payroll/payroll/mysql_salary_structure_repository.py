from __future__ import annotations

from datetime import date
from typing import Sequence

from ..core.enums import PerDaySalaryBase
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, load_json_map, to_bool
from .model import SalaryStructure
from .repository import SalaryStructureRepository


def _row_to_structure(r: dict) -> SalaryStructure:
    return SalaryStructure(
        structure_id=int(r["structure_id"]),
        user_id=int(r["user_id"]),
        fixed_basic=float(r["fixed_basic"]),
        fixed_hra=float(r["fixed_hra"] or 0),
        fixed_conveyance=float(r["fixed_conveyance"] or 0),
        custom_earnings=load_json_map(r.get("custom_earnings")),
        custom_deductions=load_json_map(r.get("custom_deductions")),
        per_day_salary_base=PerDaySalaryBase(r["per_day_salary_base"]),
        overtime_rate=float(r["overtime_rate"]),
        epf_applicable=to_bool(r["epf_applicable"]),
        esi_applicable=to_bool(r["esi_applicable"]),
        vpt_amount=float(r["vpt_amount"] or 0),
        effective_from=r["effective_from"],
        effective_to=r.get("effective_to"),
        is_active=to_bool(r["is_active"]),
    )


class MySQLSalaryStructureRepository(SalaryStructureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, user_id: int) -> Sequence[SalaryStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT structure_id, user_id, fixed_basic, fixed_hra, fixed_conveyance,
                       custom_earnings, custom_deductions, per_day_salary_base, overtime_rate,
                       epf_applicable, esi_applicable, vpt_amount, effective_from, effective_to, is_active
                FROM salary_structures
                WHERE user_id=%s
                ORDER BY effective_from DESC
                """,
                (user_id,),
            )
            return [_row_to_structure(r) for r in fetchall(cur)]

    def list_user_ids_active_between(self, start: date, end: date) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT user_id
                FROM salary_structures
                WHERE is_active=1
                  AND effective_from <= %s
                  AND (effective_to IS NULL OR effective_to > %s)
                ORDER BY user_id
                """,
                (end, start),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
