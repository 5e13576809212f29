from datetime import datetime, time

from src.attendance_payroll.attendance_payroll.attendance.working_hours import (
    closing_status,
    compute_auto_closed_time,
    compute_worked_time,
)
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus
from src.attendance_payroll.attendance_payroll.timing.model import TimingPolicy

POLICY = TimingPolicy(
    department="technical",
    check_in_time=time(9, 0),
    check_out_time=time(18, 0),
    working_hours_per_day=8,
    overtime_threshold_minutes=30,
)
CHECK_IN = datetime(2025, 1, 6, 9, 0)


def test_regular_hours_are_capped_at_standard():
    worked = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 17, 20), POLICY)
    assert worked.total_minutes == 500
    assert worked.working_hours == 8.0
    assert worked.overtime_hours == 0.0


def test_excess_below_threshold_yields_no_overtime():
    # 8h standard + 29 min excess
    worked = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 17, 29), POLICY)
    assert worked.overtime_hours == 0.0


def test_excess_at_threshold_counts_whole_excess():
    worked = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 17, 30), POLICY)
    assert worked.overtime_hours == 0.5

    worked = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 19, 0), POLICY)
    assert worked.working_hours == 8.0
    assert worked.overtime_hours == 2.0


def test_overtime_can_be_disabled():
    worked = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 21, 0), POLICY, count_overtime=False)
    assert worked.overtime_hours == 0.0


def test_auto_closed_time_counts_only_up_to_department_checkout():
    worked = compute_auto_closed_time(CHECK_IN, datetime(2025, 1, 6, 18, 0), datetime(2025, 1, 6, 20, 0), POLICY)
    assert worked.total_minutes == 540
    assert worked.overtime_hours == 0.0


def test_auto_closed_time_never_exceeds_a_manual_checkout():
    auto = compute_auto_closed_time(CHECK_IN, datetime(2025, 1, 6, 18, 0), datetime(2025, 1, 6, 20, 0), POLICY)
    manual = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 18, 0), POLICY)

    assert auto.working_hours == manual.working_hours == 8.0

    partial = compute_auto_closed_time(
        datetime(2025, 1, 6, 14, 0), datetime(2025, 1, 6, 18, 0), datetime(2025, 1, 6, 20, 0), POLICY
    )
    assert partial.working_hours == 4.0


def test_short_day_becomes_half_day():
    short = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 12, 59), POLICY)
    full = compute_worked_time(CHECK_IN, datetime(2025, 1, 6, 13, 0), POLICY)

    assert closing_status(AttendanceStatus.LATE, short, POLICY) == AttendanceStatus.HALF_DAY
    assert closing_status(AttendanceStatus.LATE, full, POLICY) == AttendanceStatus.LATE
