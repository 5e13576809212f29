from __future__ import annotations

from datetime import datetime

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_clock
from ..common.http import admin_required, current_role, current_user_id, error_response, login_required, to_json
from ..core.enums import AttendanceType
from ..core.exceptions import ValidationError
from ..container import Container
from ..geofence.model import GeoPoint
from ..timing.model import TimingPolicy


def _parse_location(data: dict) -> GeoPoint | None:
    raw = data.get("location")
    if raw is None:
        return None
    try:
        accuracy = raw.get("accuracy")
        return GeoPoint(
            latitude=float(raw["latitude"]),
            longitude=float(raw["longitude"]),
            accuracy=float(accuracy) if accuracy is not None else None,
        )
    except (KeyError, TypeError, ValueError, AttributeError):
        raise ValidationError("Location must carry numeric latitude and longitude")


def _parse_attendance_type(value: str | None) -> AttendanceType:
    try:
        return AttendanceType(value or AttendanceType.OFFICE.value)
    except ValueError:
        raise ValidationError(f"Unknown attendance type: {value!r}")


def _parse_policy(data: dict) -> TimingPolicy:
    try:
        return TimingPolicy(
            department=str(data.get("department") or ""),
            check_in_time=parse_clock(data["check_in_time"]),
            check_out_time=parse_clock(data["check_out_time"]),
            working_hours_per_day=float(data.get("working_hours_per_day", 8)),
            late_threshold_minutes=int(data.get("late_threshold_minutes", 15)),
            overtime_threshold_minutes=int(data.get("overtime_threshold_minutes", 30)),
            weekly_off_days=frozenset(int(d) for d in data.get("weekly_off_days", [6])),
            is_flexible_timing=bool(data.get("is_flexible_timing", False)),
            flexible_window_minutes=int(data.get("flexible_window_minutes", 0)),
            half_day_minutes=int(data.get("half_day_minutes", 240)),
            allow_remote_work=bool(data.get("allow_remote_work", True)),
            allow_field_work=bool(data.get("allow_field_work", True)),
            is_active=bool(data.get("is_active", True)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid timing policy: {e}")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        try:
            status = container.attendance_service.get_today_status(current_user_id())
            return jsonify({"success": True, "data": to_json(status)}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def attendance_check_in():
        try:
            data = request.get_json(silent=True) or {}
            record = container.attendance_service.check_in(
                current_user_id(),
                location=_parse_location(data),
                photo_ref=data.get("photo_ref"),
                attendance_type=_parse_attendance_type(data.get("attendance_type")),
                reason=data.get("reason"),
            )
            return jsonify({"success": True, "data": to_json(record)}), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def attendance_check_out():
        try:
            data = request.get_json(silent=True) or {}
            record = container.attendance_service.check_out(
                current_user_id(),
                location=_parse_location(data),
                photo_ref=data.get("photo_ref"),
                reason=data.get("reason"),
                confirm_overtime=bool(data.get("confirm_overtime", False)),
                ot_reason=data.get("ot_reason"),
            )
            return jsonify({"success": True, "data": to_json(record)}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/overtime", methods=["POST"], endpoint="attendance_request_overtime")
    @login_required
    def attendance_request_overtime():
        try:
            data = request.get_json(silent=True) or {}
            record = container.attendance_service.request_overtime(current_user_id(), ot_reason=data.get("ot_reason"))
            return jsonify({"success": True, "data": to_json(record)}), 200
        except Exception as e:
            return error_response(e)

    @app.route(
        "/api/attendance/<int:attendance_id>/overtime-eligibility",
        methods=["GET"],
        endpoint="attendance_overtime_eligibility",
    )
    @login_required
    def attendance_overtime_eligibility(attendance_id: int):
        try:
            eligible = container.attendance_service.get_overtime_eligibility(
                attendance_id,
                requester_id=current_user_id(),
                requester_role=current_role(),
            )
            return jsonify({"success": True, "data": {"attendance_id": attendance_id, "eligible": eligible}}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/attendance/auto-checkout/sweep", methods=["POST"], endpoint="admin_auto_checkout_sweep")
    @admin_required
    def admin_auto_checkout_sweep():
        try:
            closed = container.auto_checkout_service.run_sweep(datetime.now())
            return jsonify({"success": True, "data": {"closed": to_json(closed), "count": len(closed)}}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/timing-policies", methods=["GET"], endpoint="admin_timing_policies")
    @admin_required
    def admin_timing_policies():
        try:
            policies = container.timing_policy_service.list_all()
            return jsonify({"success": True, "data": to_json(list(policies))}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/timing-policies", methods=["PUT"], endpoint="admin_timing_policies_upsert")
    @admin_required
    def admin_timing_policies_upsert():
        try:
            policy = _parse_policy(request.get_json(silent=True) or {})
            saved = container.timing_policy_service.upsert(current_role=current_role(), policy=policy)
            return jsonify({"success": True, "data": to_json(saved)}), 200
        except Exception as e:
            return error_response(e)
