"""Defaults shared by every settings module.

Each value can be overridden through environment variables (a ``.env``
file is loaded by ``create_app``).
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return bool(int(os.getenv(name, default)))


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_payroll"),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ATTENDANCE = {
    # Timing policy / office location reads are cached this long
    "policy_cache_seconds": _env_float("POLICY_CACHE_SECONDS", "300"),
    "sweep_interval_seconds": _env_float("AUTO_CHECKOUT_INTERVAL_SECONDS", "300"),
    "auto_checkout_grace_hours": _env_float("AUTO_CHECKOUT_GRACE_HOURS", "2"),
    "emergency_cutoff": os.getenv("AUTO_CHECKOUT_EMERGENCY_CUTOFF", "23:55"),
    "require_photo": _env_bool("ATTENDANCE_REQUIRE_PHOTO", "1"),
    "start_scheduler": _env_bool("AUTO_CHECKOUT_SCHEDULER", "0"),
}

PAYROLL = {
    "epf_rate": _env_float("PAYROLL_EPF_RATE", "0.12"),
    "epf_ceiling": _env_float("PAYROLL_EPF_CEILING", "1800"),
    "epf_wage_ceiling": _env_float("PAYROLL_EPF_WAGE_CEILING", "15000"),
    "exempt_epf_above_wage_ceiling": _env_bool("PAYROLL_EXEMPT_EPF_ABOVE_CEILING", "0"),
    "esi_rate": _env_float("PAYROLL_ESI_RATE", "0.0075"),
    "esi_threshold": _env_float("PAYROLL_ESI_THRESHOLD", "21000"),
    "tds_rate": _env_float("PAYROLL_TDS_RATE", "0"),
    "tds_annual_threshold": _env_float("PAYROLL_TDS_ANNUAL_THRESHOLD", "250000"),
    "standard_working_hours": _env_float("PAYROLL_STANDARD_WORKING_HOURS", "8"),
}
