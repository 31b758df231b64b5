from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import minutes_between
from ...core.enums import Punctuality
from ..rules import WorkRules
from .base import PunctualityDecision, PunctualityStrategy


class EarlyLeaveStrategy(PunctualityStrategy):
    """Check-out before the end of the working day."""

    def decide(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityDecision:
        early = minutes_between(check_out, rules.end_on(check_out.date())) if check_out else 0
        return PunctualityDecision(punctuality=Punctuality.EARLY_LEAVE, note=f"早退 {early}分")


class LateEarlyLeaveStrategy(PunctualityStrategy):
    """Both late in and early out on the same day."""

    def decide(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityDecision:
        return PunctualityDecision(punctuality=Punctuality.LATE_EARLY_LEAVE, note="遅刻・早退")
