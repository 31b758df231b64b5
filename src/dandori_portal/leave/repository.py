from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import LeaveStatus
from .model import LeaveBalance, LeaveRequest


class LeaveRepository(Protocol):
    def get(self, tenant_id: int, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        request: PageRequest,
    ) -> Page[LeaveRequest]:
        raise NotImplementedError

    def list_for_year(self, tenant_id: int, year: Optional[int]) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> LeaveRequest:
        raise NotImplementedError

    def update(self, tenant_id: int, request_id: int, values: Mapping[str, Any]) -> LeaveRequest:
        raise NotImplementedError

    def get_balance(self, tenant_id: int, user_id: int, year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def create_balance(self, tenant_id: int, user_id: int, year: int, granted: float) -> LeaveBalance:
        raise NotImplementedError

    def add_used(self, tenant_id: int, user_id: int, year: int, delta: float) -> LeaveBalance:
        """Add ``delta`` (negative to restore) to the used days of the year."""
        raise NotImplementedError
