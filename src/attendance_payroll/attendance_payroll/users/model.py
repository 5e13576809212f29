from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Employee as seen by the attendance/payroll core.

    Credentials and profile data belong to the external user provider; only
    the identity, department and role are read here.
    """

    user_id: int
    full_name: str
    department: str | None
    role: Role = Role.STAFF
    employee_code: str | None = None
    is_active: bool = True
