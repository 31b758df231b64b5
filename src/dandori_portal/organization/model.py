from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class OrgUnit:
    id: int
    tenant_id: int
    name: str
    code: str
    parent_id: Optional[int]
    manager_id: Optional[int]
    level: int
    sort_order: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OrgMember:
    id: int
    name: str
    email: str
    role: str
    position: Optional[str]


@dataclass(frozen=True)
class OrgTreeNode:
    """One unit in the rendered organization tree."""

    id: int
    name: str
    code: str
    level: int
    manager_id: Optional[int]
    sort_order: int
    members: list[OrgMember] = field(default_factory=list)
    children: list["OrgTreeNode"] = field(default_factory=list)


@dataclass(frozen=True)
class TransferRecord:
    id: int
    tenant_id: int
    user_id: int
    from_unit_id: Optional[int]
    to_unit_id: int
    effective_date: date
    reason: Optional[str]
    created_by: Optional[int]
    created_at: Optional[datetime] = None
