from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .rules import WorkRules
from .strategies.base import PunctualityStrategy
from .strategies.early_strategy import EarlyLeaveStrategy, LateEarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_day(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityStrategy:
        late = rules.is_late(check_in)
        early = rules.is_early_leave(check_out)
        if late and early:
            return LateEarlyLeaveStrategy()
        if late:
            return LateStrategy()
        if early:
            return EarlyLeaveStrategy()
        return NormalStrategy()
