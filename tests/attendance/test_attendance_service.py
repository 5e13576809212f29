from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time

import pytest

from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceRecord, CheckInEntry, CheckOutEntry
from src.attendance_payroll.attendance_payroll.attendance.service import AttendanceService
from src.attendance_payroll.attendance_payroll.core.enums import (
    AttendanceState,
    AttendanceStatus,
    AttendanceType,
    Detection,
    Role,
)
from src.attendance_payroll.attendance_payroll.core.exceptions import (
    AuthorizationError,
    InvalidStateTransition,
    LocationRequired,
    NoOpenAttendance,
    NotFound,
    ReasonRequired,
    ValidationError,
)
from src.attendance_payroll.attendance_payroll.geofence.model import GeoPoint, OfficeLocation
from src.attendance_payroll.attendance_payroll.timing.model import TimingPolicy
from src.attendance_payroll.attendance_payroll.timing.service import TimingPolicyResolver
from src.attendance_payroll.attendance_payroll.users.model import User


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, User]

    def get_by_id(self, user_id: int) -> User | None:
        return self.users_by_id.get(user_id)


@dataclass
class InMemoryPolicies:
    by_department: dict[str, TimingPolicy]

    def get_for_department(self, department: str) -> TimingPolicy | None:
        return self.by_department.get(department)


@dataclass
class InMemoryOffices:
    offices: list[OfficeLocation]

    def list_active(self):
        return [o for o in self.offices if o.is_active]


class InMemoryAttendance:
    def __init__(self):
        self.by_id: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        return self.by_id.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> AttendanceRecord | None:
        for r in self.by_id.values():
            if r.user_id == user_id and r.work_date == work_date:
                return r
        return None

    def create_checkin(self, entry: CheckInEntry) -> int:
        if self.get_for_user_and_date(entry.user_id, entry.work_date):
            raise InvalidStateTransition("duplicate")
        self._id += 1
        self.by_id[self._id] = AttendanceRecord(
            attendance_id=self._id,
            user_id=entry.user_id,
            work_date=entry.work_date,
            check_in_time=entry.check_in_time,
            check_out_time=None,
            status=entry.status,
            attendance_type=entry.attendance_type,
            check_in_location=entry.location,
            check_in_photo_ref=entry.photo_ref,
            is_late=entry.is_late,
            late_minutes=entry.late_minutes,
            early_check_in_minutes=entry.early_check_in_minutes,
            reason=entry.reason,
            is_within_office_radius=entry.is_within_office_radius,
            distance_from_office=entry.distance_from_office,
            location_confidence=entry.location_confidence,
            office_location_id=entry.office_location_id,
        )
        return self._id

    def close(self, attendance_id: int, entry: CheckOutEntry) -> bool:
        r = self.by_id.get(attendance_id)
        if r is None or not r.is_open:
            return False
        self.by_id[attendance_id] = replace(
            r,
            check_out_time=entry.check_out_time,
            status=entry.status,
            working_hours=entry.working_hours,
            overtime_hours=entry.overtime_hours,
            check_out_location=entry.location,
            check_out_photo_ref=entry.photo_ref,
            early_checkout_minutes=entry.early_checkout_minutes,
            checkout_reason=entry.checkout_reason,
            overtime_requested=entry.overtime_requested,
            ot_reason=entry.ot_reason,
            is_auto_checkout=entry.is_auto_checkout,
            auto_checkout_reason=entry.auto_checkout_reason,
        )
        return True

    def mark_overtime_requested(self, attendance_id: int, *, ot_reason: str) -> bool:
        r = self.by_id.get(attendance_id)
        if r is None or not r.is_open or r.overtime_requested:
            return False
        self.by_id[attendance_id] = replace(r, overtime_requested=True, ot_reason=ot_reason)
        return True


OFFICE = OfficeLocation(location_id=7, name="HQ", latitude=12.9716, longitude=77.5946, radius_meters=100)
AT_OFFICE = GeoPoint(latitude=12.9716, longitude=77.5946, accuracy=10)
FAR_AWAY = GeoPoint(latitude=13.0827, longitude=80.2707, accuracy=10)


def _build(*, require_photo=True, policy: TimingPolicy | None = None):
    policy = policy or TimingPolicy(
        department="technical",
        check_in_time=time(9, 0),
        check_out_time=time(18, 0),
        late_threshold_minutes=15,
        overtime_threshold_minutes=30,
        allow_field_work=False,
    )
    users = InMemoryUsers({1: User(user_id=1, full_name="A", department="technical")})
    attendance = InMemoryAttendance()
    resolver = TimingPolicyResolver(InMemoryPolicies({policy.department: policy}))
    svc = AttendanceService(attendance, users, resolver, InMemoryOffices([OFFICE]), require_photo=require_photo)
    return svc, attendance


def _check_in(svc, now, **kwargs):
    kwargs.setdefault("location", AT_OFFICE)
    kwargs.setdefault("photo_ref", "photos/in.jpg")
    return svc.check_in(1, now=now, **kwargs)


def _check_out(svc, now, **kwargs):
    kwargs.setdefault("location", AT_OFFICE)
    kwargs.setdefault("photo_ref", "photos/out.jpg")
    return svc.check_out(1, now=now, **kwargs)


def test_late_check_in_records_late_minutes():
    svc, _ = _build()

    rec = _check_in(svc, datetime(2025, 1, 6, 9, 40), reason="traffic")

    assert rec.status == AttendanceStatus.LATE
    assert rec.is_late is True
    assert rec.late_minutes == 25
    assert rec.reason == "traffic"


def test_late_check_in_without_reason_fails():
    svc, attendance = _build()

    with pytest.raises(ReasonRequired):
        _check_in(svc, datetime(2025, 1, 6, 9, 40))
    assert attendance.by_id == {}


def test_early_check_in_requires_reason_and_records_minutes():
    svc, _ = _build()

    with pytest.raises(ReasonRequired):
        _check_in(svc, datetime(2025, 1, 6, 8, 30), reason="  ")

    rec = _check_in(svc, datetime(2025, 1, 6, 8, 30), reason="early meeting")
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.is_late is False
    assert rec.early_check_in_minutes == 30


def test_on_time_check_in_needs_no_reason_and_stores_geofence_audit():
    svc, _ = _build()

    rec = _check_in(svc, datetime(2025, 1, 6, 9, 10))

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.state == AttendanceState.CHECKED_IN
    assert rec.is_within_office_radius is True
    assert rec.distance_from_office == 0.0
    assert rec.office_location_id == 7
    assert rec.location_confidence == "high"


def test_outside_radius_is_recorded_but_not_rejected():
    svc, _ = _build()

    rec = _check_in(svc, datetime(2025, 1, 6, 9, 0), location=FAR_AWAY)

    assert rec.is_within_office_radius is False
    assert rec.distance_from_office > 100

    vague = GeoPoint(latitude=13.0827, longitude=80.2707, accuracy=350)
    svc, _ = _build()
    assert _check_in(svc, datetime(2025, 1, 6, 9, 0), location=vague).location_confidence == "low"


def test_second_check_in_same_day_is_invalid_transition():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    with pytest.raises(InvalidStateTransition):
        _check_in(svc, datetime(2025, 1, 6, 9, 5))

    _check_out(svc, datetime(2025, 1, 6, 18, 0))
    with pytest.raises(InvalidStateTransition):
        _check_in(svc, datetime(2025, 1, 6, 18, 30))


def test_missing_location_is_a_hard_failure():
    svc, _ = _build()
    with pytest.raises(LocationRequired):
        _check_in(svc, datetime(2025, 1, 6, 9, 0), location=None)


def test_missing_photo_is_rejected_when_required():
    svc, _ = _build()
    with pytest.raises(ValidationError):
        _check_in(svc, datetime(2025, 1, 6, 9, 0), photo_ref=None)

    svc, _ = _build(require_photo=False)
    assert _check_in(svc, datetime(2025, 1, 6, 9, 0), photo_ref=None).check_in_photo_ref is None


def test_disallowed_attendance_type_is_rejected():
    svc, _ = _build()
    with pytest.raises(ValidationError):
        _check_in(svc, datetime(2025, 1, 6, 9, 0), attendance_type=AttendanceType.FIELD_WORK)


def test_unknown_user_is_not_found():
    svc, _ = _build()
    with pytest.raises(NotFound):
        svc.check_in(99, location=AT_OFFICE, photo_ref="p", now=datetime(2025, 1, 6, 9, 0))


def test_check_out_without_check_in_fails():
    svc, _ = _build()
    with pytest.raises(NoOpenAttendance):
        _check_out(svc, datetime(2025, 1, 6, 18, 0))


def test_double_check_out_is_invalid_transition():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))
    _check_out(svc, datetime(2025, 1, 6, 18, 0))

    with pytest.raises(InvalidStateTransition):
        _check_out(svc, datetime(2025, 1, 6, 18, 5))


def test_early_checkout_requires_reason():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    with pytest.raises(ReasonRequired):
        _check_out(svc, datetime(2025, 1, 6, 17, 0))

    rec = _check_out(svc, datetime(2025, 1, 6, 17, 0), reason="doctor")
    assert rec.early_checkout_minutes == 60
    assert rec.checkout_reason == "doctor"
    assert rec.working_hours == 8.0
    assert rec.overtime_hours == 0.0


def test_overtime_cannot_be_confirmed_before_schedule():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    with pytest.raises(InvalidStateTransition):
        _check_out(svc, datetime(2025, 1, 6, 17, 0), reason="x", confirm_overtime=True, ot_reason="y")


def test_regular_checkout_after_schedule_counts_overtime_past_threshold():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    rec = _check_out(svc, datetime(2025, 1, 6, 19, 0))

    assert rec.state == AttendanceState.CHECKED_OUT
    assert rec.overtime_requested is False
    assert rec.working_hours == 8.0
    assert rec.overtime_hours == 2.0


def test_checkout_with_overtime_confirmation_needs_reason():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    with pytest.raises(ReasonRequired):
        _check_out(svc, datetime(2025, 1, 6, 20, 0), confirm_overtime=True)

    rec = _check_out(svc, datetime(2025, 1, 6, 20, 0), confirm_overtime=True, ot_reason="deployment")
    assert rec.overtime_requested is True
    assert rec.ot_reason == "deployment"
    assert rec.overtime_hours == 3.0


def test_short_day_checks_out_as_half_day():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    rec = _check_out(svc, datetime(2025, 1, 6, 12, 0), reason="sick")

    assert rec.status == AttendanceStatus.HALF_DAY


def test_request_overtime_while_checked_in():
    svc, attendance = _build()
    rec = _check_in(svc, datetime(2025, 1, 6, 9, 0))

    with pytest.raises(InvalidStateTransition):
        svc.request_overtime(1, ot_reason="late release", now=datetime(2025, 1, 6, 17, 59))

    updated = svc.request_overtime(1, ot_reason="late release", now=datetime(2025, 1, 6, 18, 5))
    assert updated.overtime_requested is True

    with pytest.raises(InvalidStateTransition):
        svc.request_overtime(1, ot_reason="again", now=datetime(2025, 1, 6, 18, 10))

    # the confirmation survives a plain checkout
    closed = _check_out(svc, datetime(2025, 1, 6, 21, 0))
    assert closed.overtime_requested is True
    assert closed.ot_reason == "late release"
    assert attendance.get_by_id(rec.attendance_id).overtime_hours == 4.0


def test_overtime_eligibility_follows_scheduled_checkout():
    svc, _ = _build()
    rec = _check_in(svc, datetime(2025, 1, 6, 9, 0))

    assert svc.get_overtime_eligibility(rec.attendance_id, now=datetime(2025, 1, 6, 17, 59)) is False
    assert svc.get_overtime_eligibility(rec.attendance_id, now=datetime(2025, 1, 6, 18, 0)) is True
    assert svc.get_overtime_eligibility(12345, now=datetime(2025, 1, 6, 18, 0)) is False

    _check_out(svc, datetime(2025, 1, 6, 18, 30))
    assert svc.get_overtime_eligibility(rec.attendance_id, now=datetime(2025, 1, 6, 19, 0)) is False


def test_overtime_eligibility_is_limited_to_owner_or_admin():
    svc, _ = _build()
    rec = _check_in(svc, datetime(2025, 1, 6, 9, 0))
    at = datetime(2025, 1, 6, 18, 0)

    assert svc.get_overtime_eligibility(rec.attendance_id, requester_id=1, now=at) is True
    assert svc.get_overtime_eligibility(rec.attendance_id, requester_id=7, requester_role=Role.ADMIN, now=at) is True
    with pytest.raises(AuthorizationError):
        svc.get_overtime_eligibility(rec.attendance_id, requester_id=7, now=at)


def test_today_status_without_record_is_not_an_error():
    svc, _ = _build()

    status = svc.get_today_status(1, now=datetime(2025, 1, 6, 9, 30))

    assert status.state == AttendanceState.NOT_STARTED
    assert status.can_check_in is True
    assert status.can_check_out is False
    assert status.record is None
    assert status.detection == Detection.LATE
    assert status.overtime is None


def test_today_status_offers_overtime_after_schedule():
    svc, _ = _build()
    _check_in(svc, datetime(2025, 1, 6, 9, 0))

    status = svc.get_today_status(1, now=datetime(2025, 1, 6, 18, 30))

    assert status.state == AttendanceState.CHECKED_IN
    assert status.can_check_out is True
    assert status.detection == Detection.OVERTIME_ELIGIBLE
    assert status.overtime.eligible is True
    assert status.overtime.auto_checkout_deadline == datetime(2025, 1, 6, 20, 0)
    assert status.overtime.emergency_cutoff == datetime(2025, 1, 6, 23, 55)


def test_overnight_shift_checks_out_on_the_next_day():
    night = TimingPolicy(department="technical", check_in_time=time(22, 0), check_out_time=time(6, 0))
    svc, _ = _build(policy=night)
    _check_in(svc, datetime(2025, 1, 6, 22, 0))

    rec = _check_out(svc, datetime(2025, 1, 7, 6, 0))

    assert rec.work_date == date(2025, 1, 6)
    assert rec.working_hours == 8.0
