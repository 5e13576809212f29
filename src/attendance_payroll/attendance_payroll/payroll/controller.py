from __future__ import annotations

import io
from typing import Dict

from flask import Flask, jsonify, request, send_file

from ..common.http import admin_required, current_user_id, error_response, to_json
from ..core.enums import PayrollStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import PayrollAdjustments, PayrollRecord


def _parse_period(source) -> tuple[int, int]:
    try:
        return int(source["month"]), int(source["year"])
    except (KeyError, TypeError, ValueError):
        raise ValidationError("month and year are required integers")


def _parse_status(value: str | None) -> PayrollStatus | None:
    if not value:
        return None
    try:
        return PayrollStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown payroll status: {value!r}")


def _parse_adjustments(raw: dict | None) -> Dict[int, PayrollAdjustments]:
    out: Dict[int, PayrollAdjustments] = {}
    for user_id, values in (raw or {}).items():
        try:
            tds = values.get("tds")
            out[int(user_id)] = PayrollAdjustments(
                tds=float(tds) if tds is not None else None,
                fine=float(values.get("fine", 0)),
                salary_advance=float(values.get("salary_advance", 0)),
                credit_adjustment=float(values.get("credit_adjustment", 0)),
                other_deductions=float(values.get("other_deductions", 0)),
            )
        except (AttributeError, TypeError, ValueError):
            raise ValidationError(f"Invalid adjustments for user {user_id}")
    return out


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/payroll/process", methods=["POST"], endpoint="admin_payroll_process")
    @admin_required
    def admin_payroll_process():
        try:
            data = request.get_json(silent=True) or {}
            month, year = _parse_period(data)
            user_ids = data.get("user_ids")
            results = container.payroll_service.process_payroll(
                month,
                year,
                [int(u) for u in user_ids] if isinstance(user_ids, list) else None,
                processed_by=current_user_id(),
                adjustments=_parse_adjustments(data.get("adjustments")),
            )
            processed = [r for r in results if isinstance(r, PayrollRecord)]
            failed = [r for r in results if not isinstance(r, PayrollRecord)]
            return (
                jsonify(
                    {
                        "success": True,
                        "data": {
                            "processed": to_json(processed),
                            "errors": to_json(failed),
                            "processed_count": len(processed),
                            "error_count": len(failed),
                        },
                    }
                ),
                200,
            )
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/payroll", methods=["GET"], endpoint="admin_payroll_list")
    @admin_required
    def admin_payroll_list():
        try:
            month, year = _parse_period(request.args)
            user_id = request.args.get("user_id")
            records = container.payroll_service.get_payroll(
                month,
                year,
                user_id=int(user_id) if user_id and user_id.isdigit() else None,
                status=_parse_status(request.args.get("status")),
                department=request.args.get("department") or None,
            )
            return jsonify({"success": True, "data": to_json(records)}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/payroll/<int:payroll_id>/status", methods=["POST"], endpoint="admin_payroll_status")
    @admin_required
    def admin_payroll_status(payroll_id: int):
        try:
            data = request.get_json(silent=True) or {}
            new_status = _parse_status(data.get("status"))
            if new_status is None:
                raise ValidationError("status is required")
            record = container.payroll_service.advance_status(payroll_id, new_status, actor_id=current_user_id())
            return jsonify({"success": True, "data": to_json(record)}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/payroll/export", methods=["GET"], endpoint="admin_payroll_export")
    @admin_required
    def admin_payroll_export():
        try:
            month, year = _parse_period(request.args)
            content = container.payroll_service.export_register(month, year)
        except Exception as e:
            return error_response(e)

        return send_file(
            io.BytesIO(content),
            download_name=f"payroll_{year}_{month:02d}.xlsx",
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
