from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceReportRow
from ..model import PayBreakdown, PayInputs


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def worked_minutes(self, row: AttendanceReportRow) -> int:
        raise NotImplementedError

    @abstractmethod
    def calculate(self, inputs: PayInputs) -> PayBreakdown:
        raise NotImplementedError
