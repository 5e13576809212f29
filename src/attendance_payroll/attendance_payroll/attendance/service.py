from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..common.validators import require_reason
from ..core.enums import AttendanceState, AttendanceType, Detection, Role
from ..core.exceptions import (
    AuthorizationError,
    InvalidStateTransition,
    LocationRequired,
    NotFound,
    ValidationError,
)
from ..geofence.model import GeoPoint
from ..geofence.repository import OfficeLocationRepository
from ..geofence.validator import GeofenceValidator
from ..timing.model import TimingPolicy
from ..timing.service import TimingPolicyResolver
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, CheckInEntry, CheckOutEntry
from .overtime import OvertimeNegotiator, OvertimeOffer
from .repository import AttendanceRepository
from .state_machine import AttendanceStateMachine
from .working_hours import closing_status, compute_worked_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TodayStatus:
    state: AttendanceState
    can_check_in: bool
    can_check_out: bool
    record: AttendanceRecord | None
    detection: Detection
    overtime: OvertimeOffer | None = None


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        resolver: TimingPolicyResolver,
        offices: OfficeLocationRepository,
        *,
        geofence: GeofenceValidator | None = None,
        negotiator: OvertimeNegotiator | None = None,
        state_machine: AttendanceStateMachine | None = None,
        require_photo: bool = True,
    ):
        self._attendance = attendance
        self._users = users
        self._resolver = resolver
        self._offices = offices
        self._geofence = geofence or GeofenceValidator()
        self._negotiator = negotiator or OvertimeNegotiator()
        self._machine = state_machine or AttendanceStateMachine()
        self._require_photo = bool(require_photo)

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFound("User does not exist")
        return user

    def _require_capture(self, location: GeoPoint | None, photo_ref: str | None) -> None:
        if location is None:
            raise LocationRequired("Location is required")
        if self._require_photo and not (photo_ref or "").strip():
            raise ValidationError("Photo is required")

    def _find_open_record(self, user_id: int, now: datetime, policy: TimingPolicy) -> AttendanceRecord | None:
        """Today's record, or yesterday's when an overnight shift is still open."""
        record = self._attendance.get_for_user_and_date(user_id, now.date())
        if record is None and policy.is_overnight:
            previous = self._attendance.get_for_user_and_date(user_id, now.date() - timedelta(days=1))
            if previous is not None and previous.is_open:
                return previous
        return record

    def check_in(
        self,
        user_id: int,
        *,
        location: GeoPoint | None,
        photo_ref: str | None,
        attendance_type: AttendanceType = AttendanceType.OFFICE,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or datetime.now()
        today = now.date()

        user = self._get_user(user_id)
        self._machine.ensure_can_check_in(self._attendance.get_for_user_and_date(user_id, today))
        self._require_capture(location, photo_ref)

        policy = self._resolver.resolve(user.department)
        if not policy.allows(attendance_type):
            raise ValidationError(f"{attendance_type.value} attendance is not allowed for this department")

        decision = self._machine.detect_check_in(now=now, policy=policy)
        if decision.reason_required:
            message = "Reason is required for early check-in"
            if decision.detection == Detection.LATE:
                message = "Reason is required for late check-in"
            reason = require_reason(reason, message)

        geo = self._geofence.closest(location, self._offices.list_active())

        entry = CheckInEntry(
            user_id=user_id,
            work_date=today,
            check_in_time=now,
            status=decision.status,
            attendance_type=attendance_type,
            location=location,
            photo_ref=photo_ref,
            is_late=decision.detection == Detection.LATE,
            late_minutes=decision.minutes if decision.detection == Detection.LATE else 0,
            early_check_in_minutes=decision.minutes if decision.detection == Detection.EARLY else 0,
            reason=(reason or "").strip() or None,
            is_within_office_radius=geo.is_within_radius,
            distance_from_office=geo.distance_meters,
            location_confidence=geo.confidence,
            office_location_id=geo.office.location_id if geo.office else None,
        )
        attendance_id = self._attendance.create_checkin(entry)

        logger.info(
            "Check-in: user_id=%s detection=%s minutes=%s within_radius=%s distance=%s",
            user_id,
            decision.detection.value,
            decision.minutes,
            geo.is_within_radius,
            geo.distance_meters,
        )
        return self._attendance.get_by_id(attendance_id)

    def check_out(
        self,
        user_id: int,
        *,
        location: GeoPoint | None,
        photo_ref: str | None,
        reason: str | None = None,
        confirm_overtime: bool = False,
        ot_reason: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or datetime.now()

        user = self._get_user(user_id)
        policy = self._resolver.resolve(user.department)
        record = self._find_open_record(user_id, now, policy)
        self._machine.ensure_can_check_out(record)
        self._require_capture(location, photo_ref)

        decision = self._machine.detect_check_out(now=now, record=record, policy=policy)

        early_minutes = 0
        checkout_reason = (reason or "").strip() or None
        if decision.detection == Detection.EARLY:
            if confirm_overtime:
                raise InvalidStateTransition("Overtime cannot be confirmed before scheduled checkout")
            checkout_reason = require_reason(reason, "Reason is required for early checkout")
            early_minutes = decision.minutes

        choice = self._negotiator.resolve_at_checkout(
            record,
            policy,
            confirm_overtime=confirm_overtime,
            ot_reason=ot_reason,
            now=now,
        )

        worked = compute_worked_time(record.check_in_time, now, policy)
        entry = CheckOutEntry(
            check_out_time=now,
            status=closing_status(record.status, worked, policy),
            working_hours=worked.working_hours,
            overtime_hours=worked.overtime_hours,
            location=location,
            photo_ref=photo_ref,
            early_checkout_minutes=early_minutes,
            checkout_reason=checkout_reason,
            overtime_requested=choice.overtime_requested,
            ot_reason=choice.ot_reason,
        )
        if not self._attendance.close(record.attendance_id, entry):
            raise InvalidStateTransition("Attendance was already checked out")

        logger.info(
            "Check-out: user_id=%s detection=%s working_hours=%s overtime_hours=%s overtime_requested=%s",
            user_id,
            decision.detection.value,
            worked.working_hours,
            worked.overtime_hours,
            choice.overtime_requested,
        )
        return self._attendance.get_by_id(record.attendance_id)

    def request_overtime(self, user_id: int, *, ot_reason: str | None, now: datetime | None = None) -> AttendanceRecord:
        """Confirm overtime while still checked in; the 2-hour auto-checkout no longer applies."""
        now = now or datetime.now()

        user = self._get_user(user_id)
        policy = self._resolver.resolve(user.department)
        record = self._find_open_record(user_id, now, policy)

        choice = self._negotiator.confirm(record, policy, ot_reason=ot_reason, now=now)
        if not self._attendance.mark_overtime_requested(record.attendance_id, ot_reason=choice.ot_reason):
            raise InvalidStateTransition("Overtime could not be recorded; the record changed meanwhile")
        return self._attendance.get_by_id(record.attendance_id)

    def get_overtime_eligibility(
        self,
        attendance_id: int,
        *,
        requester_id: int | None = None,
        requester_role: Role = Role.STAFF,
        now: datetime | None = None,
    ) -> bool:
        """Only the record's owner or an admin may ask; ``requester_id=None`` skips the check."""
        now = now or datetime.now()

        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            return False
        if requester_id is not None and requester_id != record.user_id and requester_role != Role.ADMIN:
            raise AuthorizationError("You can only check overtime eligibility for your own attendance")
        user = self._users.get_by_id(record.user_id)
        policy = self._resolver.resolve(user.department if user else None)
        return self._negotiator.is_eligible(record, policy, now=now)

    def get_today_status(self, user_id: int, *, now: datetime | None = None) -> TodayStatus:
        now = now or datetime.now()

        user = self._get_user(user_id)
        policy = self._resolver.resolve(user.department)
        record = self._find_open_record(user_id, now, policy)

        offer = None
        if record is not None and record.is_open:
            offer = self._negotiator.offer(record, policy, now=now)

        return TodayStatus(
            state=self._machine.state_of(record),
            can_check_in=self._machine.can_check_in(record),
            can_check_out=self._machine.can_check_out(record),
            record=record,
            detection=self._machine.preview(now=now, record=record, policy=policy),
            overtime=offer,
        )
