from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, AttendanceType, AutoCheckoutReason
from ..core.exceptions import InvalidStateTransition
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_bool, to_float
from ..geofence.model import GeoPoint
from .model import AttendanceRecord, CheckInEntry, CheckOutEntry
from .repository import AttendanceRepository, SweepWatermarkRepository

_COLUMNS = """
    attendance_id, user_id, work_date, check_in_time, check_out_time, status, attendance_type,
    check_in_latitude, check_in_longitude, check_in_accuracy, check_in_photo_ref,
    check_out_latitude, check_out_longitude, check_out_accuracy, check_out_photo_ref,
    is_late, late_minutes, early_check_in_minutes, reason,
    early_checkout_minutes, checkout_reason, overtime_requested, ot_reason,
    overtime_hours, working_hours, is_within_office_radius, distance_from_office,
    location_confidence, office_location_id, is_auto_checkout, auto_checkout_reason
"""


def _point(r: dict, prefix: str) -> GeoPoint | None:
    lat = r.get(f"{prefix}_latitude")
    lon = r.get(f"{prefix}_longitude")
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=float(lat), longitude=float(lon), accuracy=to_float(r.get(f"{prefix}_accuracy")))


def _coords(point: GeoPoint | None) -> tuple:
    if point is None:
        return (None, None, None)
    return (point.latitude, point.longitude, point.accuracy)


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        attendance_type=AttendanceType(r.get("attendance_type") or AttendanceType.OFFICE.value),
        check_in_location=_point(r, "check_in"),
        check_in_photo_ref=r.get("check_in_photo_ref"),
        check_out_location=_point(r, "check_out"),
        check_out_photo_ref=r.get("check_out_photo_ref"),
        is_late=to_bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        early_check_in_minutes=int(r.get("early_check_in_minutes") or 0),
        reason=r.get("reason"),
        early_checkout_minutes=int(r.get("early_checkout_minutes") or 0),
        checkout_reason=r.get("checkout_reason"),
        overtime_requested=to_bool(r.get("overtime_requested")),
        ot_reason=r.get("ot_reason"),
        overtime_hours=float(r.get("overtime_hours") or 0),
        working_hours=float(r.get("working_hours") or 0),
        is_within_office_radius=to_bool(r.get("is_within_office_radius")),
        distance_from_office=to_float(r.get("distance_from_office")),
        location_confidence=r.get("location_confidence"),
        office_location_id=r.get("office_location_id"),
        is_auto_checkout=to_bool(r.get("is_auto_checkout")),
        auto_checkout_reason=AutoCheckoutReason(r["auto_checkout_reason"]) if r.get("auto_checkout_reason") else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> AttendanceRecord | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create_checkin(self, entry: CheckInEntry) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, check_in_time, status, attendance_type,
                        check_in_latitude, check_in_longitude, check_in_accuracy, check_in_photo_ref,
                        is_late, late_minutes, early_check_in_minutes, reason,
                        is_within_office_radius, distance_from_office, location_confidence,
                        office_location_id
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        entry.user_id,
                        entry.work_date,
                        entry.check_in_time,
                        entry.status.value,
                        entry.attendance_type.value,
                        *_coords(entry.location),
                        entry.photo_ref,
                        int(entry.is_late),
                        entry.late_minutes,
                        entry.early_check_in_minutes,
                        entry.reason,
                        int(entry.is_within_office_radius),
                        entry.distance_from_office,
                        entry.location_confidence,
                        entry.office_location_id,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            # uq_attendance_user_date
            raise InvalidStateTransition("Attendance for this day has already been recorded") from exc

    def close(self, attendance_id: int, entry: CheckOutEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, status=%s, working_hours=%s, overtime_hours=%s,
                    check_out_latitude=%s, check_out_longitude=%s, check_out_accuracy=%s,
                    check_out_photo_ref=%s, early_checkout_minutes=%s, checkout_reason=%s,
                    overtime_requested=%s, ot_reason=%s,
                    is_auto_checkout=%s, auto_checkout_reason=%s
                WHERE attendance_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (
                    entry.check_out_time,
                    entry.status.value,
                    entry.working_hours,
                    entry.overtime_hours,
                    *_coords(entry.location),
                    entry.photo_ref,
                    entry.early_checkout_minutes,
                    entry.checkout_reason,
                    int(entry.overtime_requested),
                    entry.ot_reason,
                    int(entry.is_auto_checkout),
                    entry.auto_checkout_reason.value if entry.auto_checkout_reason else None,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def mark_overtime_requested(self, attendance_id: int, *, ot_reason: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET overtime_requested=1, ot_reason=%s
                WHERE attendance_id=%s AND check_out_time IS NULL AND overtime_requested=0
                """,
                (ot_reason, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_open(self, *, up_to: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE check_in_time IS NOT NULL AND check_out_time IS NULL AND work_date <= %s
                ORDER BY work_date, attendance_id
                """,
                (up_to,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (int(user_id), start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]


class MySQLSweepWatermarkRepository(SweepWatermarkRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_last_swept_at(self, job_name: str) -> datetime | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT last_swept_at FROM scheduler_watermarks WHERE job_name=%s", (job_name,))
            r = fetchone(cur)
            return r["last_swept_at"] if r else None

    def set_last_swept_at(self, job_name: str, swept_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scheduler_watermarks(job_name, last_swept_at)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE last_swept_at=GREATEST(last_swept_at, VALUES(last_swept_at))
                """,
                (job_name, swept_at),
            )
