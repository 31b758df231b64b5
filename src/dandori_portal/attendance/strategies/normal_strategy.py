from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import Punctuality
from ..rules import WorkRules
from .base import PunctualityDecision, PunctualityStrategy


class NormalStrategy(PunctualityStrategy):
    """On-time check-in, normal check-out."""

    def decide(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityDecision:
        return PunctualityDecision(punctuality=Punctuality.ON_TIME)
