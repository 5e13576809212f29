from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import AttendanceSummary, EarningsBreakdown, SalaryStructure


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, structure: SalaryStructure, summary: AttendanceSummary) -> EarningsBreakdown:
        raise NotImplementedError
