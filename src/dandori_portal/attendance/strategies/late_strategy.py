from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import minutes_between
from ...core.enums import Punctuality
from ..rules import WorkRules
from .base import PunctualityDecision, PunctualityStrategy


class LateStrategy(PunctualityStrategy):
    """Late check-in."""

    def decide(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityDecision:
        late = minutes_between(rules.start_on(check_in.date()), check_in) if check_in else 0
        return PunctualityDecision(punctuality=Punctuality.LATE, note=f"遅刻 {late}分")
