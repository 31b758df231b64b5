from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import Punctuality
from ..rules import WorkRules


@dataclass(frozen=True)
class PunctualityDecision:
    punctuality: Punctuality
    note: Optional[str] = None


class PunctualityStrategy(ABC):
    """Strategy Pattern: encapsulate how we classify a working day."""

    @abstractmethod
    def decide(self, *, check_in: Optional[datetime], check_out: Optional[datetime], rules: WorkRules) -> PunctualityDecision:
        raise NotImplementedError
