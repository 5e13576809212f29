from __future__ import annotations

from dataclasses import dataclass

from .attendance.auto_checkout import AutoCheckoutService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLSweepWatermarkRepository
from .attendance.overtime import OvertimeNegotiator
from .attendance.scheduler import AutoCheckoutScheduler
from .attendance.service import AttendanceService
from .attendance.state_machine import AttendanceStateMachine
from .common.datetime_utils import parse_clock
from .core.constants import (
    AUTO_CHECKOUT_GRACE_HOURS,
    DEFAULT_POLICY_CACHE_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .geofence.mysql_office_location_repository import MySQLOfficeLocationRepository
from .geofence.validator import GeofenceValidator
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.deductions import StatutoryDeductionEngine
from .payroll.model import PayrollSettings
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.mysql_salary_structure_repository import MySQLSalaryStructureRepository
from .payroll.service import PayrollService
from .timing.mysql_timing_policy_repository import MySQLTimingPolicyRepository
from .timing.service import TimingPolicyResolver, TimingPolicyService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    timing_repo: MySQLTimingPolicyRepository
    offices_repo: MySQLOfficeLocationRepository
    attendance_repo: MySQLAttendanceRepository
    watermarks_repo: MySQLSweepWatermarkRepository
    salary_structures_repo: MySQLSalaryStructureRepository
    payroll_repo: MySQLPayrollRepository

    timing_resolver: TimingPolicyResolver
    timing_policy_service: TimingPolicyService
    attendance_service: AttendanceService
    auto_checkout_service: AutoCheckoutService
    auto_checkout_scheduler: AutoCheckoutScheduler
    payroll_service: PayrollService


def build_container(*, db_config: dict, attendance: dict | None = None, payroll: dict | None = None) -> Container:
    attendance = dict(attendance or {})
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    cache_seconds = float(attendance.get("policy_cache_seconds", DEFAULT_POLICY_CACHE_SECONDS))

    users_repo = MySQLUserRepository(conn)
    timing_repo = MySQLTimingPolicyRepository(conn)
    offices_repo = MySQLOfficeLocationRepository(conn, cache_seconds=cache_seconds)
    attendance_repo = MySQLAttendanceRepository(conn)
    watermarks_repo = MySQLSweepWatermarkRepository(conn)
    salary_structures_repo = MySQLSalaryStructureRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    timing_resolver = TimingPolicyResolver(timing_repo, cache_seconds=cache_seconds)
    timing_policy_service = TimingPolicyService(timing_repo, timing_resolver)

    negotiator = OvertimeNegotiator(
        grace_hours=float(attendance.get("auto_checkout_grace_hours", AUTO_CHECKOUT_GRACE_HOURS)),
        emergency_cutoff=parse_clock(str(attendance.get("emergency_cutoff", "23:55"))),
    )
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        timing_resolver,
        offices_repo,
        geofence=GeofenceValidator(),
        negotiator=negotiator,
        state_machine=AttendanceStateMachine(AttendanceStrategyFactory()),
        require_photo=bool(attendance.get("require_photo", True)),
    )
    auto_checkout_service = AutoCheckoutService(
        attendance_repo,
        users_repo,
        timing_resolver,
        negotiator,
        watermarks_repo,
    )
    auto_checkout_scheduler = AutoCheckoutScheduler(
        auto_checkout_service,
        interval_seconds=float(attendance.get("sweep_interval_seconds", DEFAULT_SWEEP_INTERVAL_SECONDS)),
    )

    settings = PayrollSettings.from_dict(payroll)
    payroll_service = PayrollService(
        payroll_repo,
        salary_structures_repo,
        attendance_repo,
        users_repo,
        resolver=timing_resolver,
        calculator=StandardPayrollCalculator(standard_working_hours=settings.standard_working_hours),
        deductions=StatutoryDeductionEngine(settings),
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        timing_repo=timing_repo,
        offices_repo=offices_repo,
        attendance_repo=attendance_repo,
        watermarks_repo=watermarks_repo,
        salary_structures_repo=salary_structures_repo,
        payroll_repo=payroll_repo,
        timing_resolver=timing_resolver,
        timing_policy_service=timing_policy_service,
        attendance_service=attendance_service,
        auto_checkout_service=auto_checkout_service,
        auto_checkout_scheduler=auto_checkout_scheduler,
        payroll_service=payroll_service,
    )
