class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class LocationRequired(ValidationError):
    """Raised when a check-in/out arrives without coordinates."""


class ReasonRequired(ValidationError):
    """Raised when an early/late/overtime action has no explanation."""


class AuthenticationError(DomainError):
    """Raised when the session carries no valid user."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidStateTransition(DomainError):
    """Raised on double check-in/out or any backwards workflow move."""


class NoOpenAttendance(InvalidStateTransition):
    """Raised on checkout when there is no open record for the day."""


class PolicyNotFound(DomainError):
    """Raised when a department has no timing policy."""


class NoActiveSalaryStructure(DomainError):
    """Raised when a user has no salary structure for the payroll month."""


class FuturePeriodRejected(DomainError):
    """Raised when payroll is requested for a month that has not started.

    The running month is accepted: "not yet elapsed" could also mean it must
    be over, but payroll is commonly run before month end with attendance
    so far, and a later run replaces the processed record.
    """


class PresentDaysExceedMonthDays(DomainError):
    """Raised when attendance reports more present days than the month has."""


class NegativeNetSalary(DomainError):
    """Raised when deductions exceed earnings.

    The computed record is attached so callers can show it for correction.
    """

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class NotFound(DomainError):
    """Raised when a referenced user, record or payroll entry does not exist."""
