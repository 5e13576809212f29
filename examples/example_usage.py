"""Example: drive the services directly (no Flask).

Controllers stay thin; the attendance and payroll rules live in the services.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        attendance=settings.ATTENDANCE,
        payroll=settings.PAYROLL,
    )

    status = container.attendance_service.get_today_status(user_id=1)
    print(status.state.value, status.detection.value, status.can_check_in, status.can_check_out)

    today = date.today()
    print(container.payroll_service.summarize_attendance(1, today.month, today.year))


if __name__ == "__main__":
    main()
