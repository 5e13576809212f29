from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

from src.attendance_payroll.attendance_payroll.attendance.auto_checkout import AutoCheckoutService
from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceRecord, CheckOutEntry
from src.attendance_payroll.attendance_payroll.attendance.overtime import OvertimeNegotiator
from src.attendance_payroll.attendance_payroll.attendance.scheduler import AutoCheckoutScheduler
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus, AutoCheckoutReason
from src.attendance_payroll.attendance_payroll.timing.model import TimingPolicy
from src.attendance_payroll.attendance_payroll.timing.service import TimingPolicyResolver
from src.attendance_payroll.attendance_payroll.users.model import User


POLICY = TimingPolicy(department="technical", check_in_time=time(9, 0), check_out_time=time(18, 0))


class InMemoryPolicies:
    def get_for_department(self, department: str) -> TimingPolicy | None:
        return POLICY if department == "technical" else None


class InMemoryUsers:
    def get_by_id(self, user_id: int) -> User | None:
        return User(user_id=user_id, full_name=f"user-{user_id}", department="technical")


class InMemoryAttendance:
    def __init__(self, *records: AttendanceRecord):
        self.by_id = {r.attendance_id: r for r in records}
        self.close_calls = 0

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        return self.by_id.get(attendance_id)

    def list_open(self, *, up_to: date):
        return [r for r in self.by_id.values() if r.is_open and r.work_date <= up_to]

    def close(self, attendance_id: int, entry: CheckOutEntry) -> bool:
        self.close_calls += 1
        r = self.by_id[attendance_id]
        if not r.is_open:
            return False
        self.by_id[attendance_id] = replace(
            r,
            check_out_time=entry.check_out_time,
            status=entry.status,
            working_hours=entry.working_hours,
            overtime_hours=entry.overtime_hours,
            overtime_requested=entry.overtime_requested,
            ot_reason=entry.ot_reason,
            is_auto_checkout=entry.is_auto_checkout,
            auto_checkout_reason=entry.auto_checkout_reason,
        )
        return True


class InMemoryWatermarks:
    def __init__(self):
        self.values = {}

    def get_last_swept_at(self, job_name: str) -> datetime | None:
        return self.values.get(job_name)

    def set_last_swept_at(self, job_name: str, swept_at: datetime) -> None:
        self.values[job_name] = swept_at


def _open(attendance_id: int, *, check_in: datetime, overtime_requested: bool = False) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=attendance_id,
        user_id=attendance_id,
        work_date=check_in.date(),
        check_in_time=check_in,
        check_out_time=None,
        status=AttendanceStatus.PRESENT,
        overtime_requested=overtime_requested,
        ot_reason="release" if overtime_requested else None,
    )


def _service(attendance, watermarks=None) -> AutoCheckoutService:
    return AutoCheckoutService(
        attendance,
        InMemoryUsers(),
        TimingPolicyResolver(InMemoryPolicies()),
        OvertimeNegotiator(),
        watermarks,
    )


def test_record_without_overtime_closes_two_hours_after_schedule():
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 6, 9, 0)))
    svc = _service(attendance)

    assert svc.run_sweep(datetime(2025, 1, 6, 19, 59)) == []

    closed = svc.run_sweep(datetime(2025, 1, 6, 20, 1))

    assert len(closed) == 1
    rec = closed[0]
    assert rec.check_out_time == datetime(2025, 1, 6, 20, 0)
    assert rec.is_auto_checkout is True
    assert rec.auto_checkout_reason == AutoCheckoutReason.TWO_HOUR_GRACE
    assert rec.working_hours == 8.0
    assert rec.overtime_hours == 0.0


def test_overtime_record_stays_open_until_emergency_cutoff():
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 6, 9, 0), overtime_requested=True))
    svc = _service(attendance)

    assert svc.run_sweep(datetime(2025, 1, 6, 23, 54)) == []

    closed = svc.run_sweep(datetime(2025, 1, 6, 23, 56))

    rec = closed[0]
    assert rec.check_out_time == datetime(2025, 1, 6, 23, 55)
    assert rec.auto_checkout_reason == AutoCheckoutReason.EMERGENCY_CUTOFF
    assert rec.overtime_requested is True
    assert rec.working_hours == 8.0
    assert rec.overtime_hours == 6.92


def test_stale_record_from_previous_day_is_closed_at_its_cutoff():
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 5, 9, 0)))

    rec = _service(attendance).run_sweep(datetime(2025, 1, 6, 8, 0))[0]

    assert rec.check_out_time == datetime(2025, 1, 5, 23, 55)
    assert rec.auto_checkout_reason == AutoCheckoutReason.EMERGENCY_CUTOFF
    assert rec.working_hours == 8.0


def test_late_check_in_without_overtime_still_closes_at_emergency_cutoff():
    # checked in after the 20:00 grace deadline, so only the cutoff applies
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 6, 20, 30)))
    svc = _service(attendance)

    assert svc.run_sweep(datetime(2025, 1, 6, 21, 0)) == []
    assert svc.run_sweep(datetime(2025, 1, 6, 23, 54)) == []

    closed = svc.run_sweep(datetime(2025, 1, 6, 23, 56))

    rec = closed[0]
    assert rec.check_out_time == datetime(2025, 1, 6, 23, 55)
    assert rec.auto_checkout_reason == AutoCheckoutReason.EMERGENCY_CUTOFF
    assert rec.overtime_requested is False
    assert rec.working_hours == 0.0
    assert rec.overtime_hours == 0.0
    assert rec.status == AttendanceStatus.HALF_DAY
    assert attendance.list_open(up_to=date(2025, 1, 6)) == []


def test_second_sweep_is_idempotent():
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 6, 9, 0)))
    svc = _service(attendance)

    first = svc.run_sweep(datetime(2025, 1, 6, 20, 30))
    second = svc.run_sweep(datetime(2025, 1, 6, 20, 35))

    assert len(first) == 1
    assert second == []
    assert attendance.get_by_id(1).check_out_time == datetime(2025, 1, 6, 20, 0)


def test_record_closed_manually_during_sweep_is_skipped():
    record = _open(1, check_in=datetime(2025, 1, 6, 9, 0))

    class RacingAttendance(InMemoryAttendance):
        def list_open(self, *, up_to: date):
            stale = super().list_open(up_to=up_to)
            # the user checks out between the read and the write
            self.by_id[1] = replace(record, check_out_time=datetime(2025, 1, 6, 19, 0))
            return stale

    attendance = RacingAttendance(record)

    assert _service(attendance).run_sweep(datetime(2025, 1, 6, 20, 30)) == []
    assert attendance.close_calls == 1
    assert attendance.get_by_id(1).check_out_time == datetime(2025, 1, 6, 19, 0)
    assert attendance.get_by_id(1).is_auto_checkout is False


def test_failure_on_one_record_does_not_stop_the_sweep():
    good = _open(1, check_in=datetime(2025, 1, 6, 9, 0))
    bad = _open(2, check_in=datetime(2025, 1, 6, 9, 0))

    class FlakyAttendance(InMemoryAttendance):
        def close(self, attendance_id: int, entry: CheckOutEntry) -> bool:
            if attendance_id == 2:
                raise RuntimeError("lock wait timeout")
            return super().close(attendance_id, entry)

    attendance = FlakyAttendance(good, bad)

    closed = _service(attendance).run_sweep(datetime(2025, 1, 6, 20, 30))

    assert [r.attendance_id for r in closed] == [1]
    assert attendance.get_by_id(2).is_open


def test_sweep_records_watermark():
    watermarks = InMemoryWatermarks()
    svc = _service(InMemoryAttendance(), watermarks)

    assert svc.last_swept_at() is None
    svc.run_sweep(datetime(2025, 1, 6, 20, 30))

    assert svc.last_swept_at() == datetime(2025, 1, 6, 20, 30)


def test_scheduler_tick_uses_injected_clock_and_swallows_errors():
    attendance = InMemoryAttendance(_open(1, check_in=datetime(2025, 1, 6, 9, 0)))
    watermarks = InMemoryWatermarks()
    scheduler = AutoCheckoutScheduler(
        _service(attendance, watermarks),
        interval_seconds=60,
        clock=lambda: datetime(2025, 1, 6, 21, 0),
    )

    closed = scheduler.tick()

    assert [r.attendance_id for r in closed] == [1]
    assert scheduler.last_swept_at == datetime(2025, 1, 6, 21, 0)
    assert scheduler.is_running is False

    class BrokenService:
        def run_sweep(self, now):
            raise RuntimeError("db down")

    broken = AutoCheckoutScheduler(BrokenService(), clock=lambda: datetime(2025, 1, 6, 21, 0))
    assert broken.tick() == []


def test_scheduler_start_and_stop():
    scheduler = AutoCheckoutScheduler(
        _service(InMemoryAttendance()),
        interval_seconds=3600,
        clock=lambda: datetime(2025, 1, 6, 21, 0),
    )

    scheduler.start()
    assert scheduler.is_running is True
    scheduler.stop(timeout=5)
    assert scheduler.is_running is False
