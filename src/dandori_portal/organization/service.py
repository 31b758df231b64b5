from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..common.auth import CurrentUser
from ..common.datetime_utils import to_date
from ..common.validators import require_non_empty, to_int
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import OrgMember, OrgTreeNode, OrgUnit, TransferRecord
from .repository import OrganizationRepository

logger = logging.getLogger(__name__)


def _children_map(units: Sequence[OrgUnit]) -> dict[Optional[int], list[OrgUnit]]:
    known = {u.id for u in units}
    out: dict[Optional[int], list[OrgUnit]] = {}
    for u in units:
        parent = u.parent_id if u.parent_id in known else None
        out.setdefault(parent, []).append(u)
    for siblings in out.values():
        siblings.sort(key=lambda u: (u.sort_order, u.name))
    return out


def descendant_ids(units: Sequence[OrgUnit], root_id: int) -> set[int]:
    """Ids of every unit below root_id (root excluded)."""
    children = _children_map(units)
    found: set[int] = set()
    stack = [root_id]
    while stack:
        current = stack.pop()
        for child in children.get(current, []):
            if child.id not in found:
                found.add(child.id)
                stack.append(child.id)
    return found


def compute_levels(units: Sequence[OrgUnit]) -> dict[int, int]:
    """Root = 1, child = parent + 1; units with a missing parent count as roots."""
    children = _children_map(units)
    levels: dict[int, int] = {}
    stack = [(u, 1) for u in children.get(None, [])]
    while stack:
        unit, level = stack.pop()
        levels[unit.id] = level
        stack.extend((c, level + 1) for c in children.get(unit.id, []))
    return levels


class OrganizationService:
    def __init__(self, units: OrganizationRepository, users: UserRepository):
        self._units = units
        self._users = users

    def list_units(self, tenant_id: int) -> Sequence[OrgUnit]:
        return self._units.list_units(tenant_id)

    def get_unit(self, tenant_id: int, unit_id: int) -> OrgUnit:
        unit = self._units.get_unit(tenant_id, unit_id)
        if not unit:
            raise NotFoundError("組織が見つかりません")
        return unit

    def create_unit(
        self,
        tenant_id: int,
        *,
        name: str,
        code: str,
        parent_id: Any = None,
        manager_id: Any = None,
        sort_order: Any = 0,
    ) -> OrgUnit:
        name = require_non_empty(name, "name")
        code = require_non_empty(code, "code")
        if self._units.get_unit_by_code(tenant_id, code):
            raise ConflictError("この組織コードは既に使用されています")

        parent_id = to_int(parent_id, "parent_id", default=0) or None
        level = 1
        if parent_id:
            parent = self._units.get_unit(tenant_id, parent_id)
            if not parent:
                raise ValidationError("親組織が見つかりません")
            level = parent.level + 1

        unit = self._units.create_unit(
            tenant_id,
            {
                "name": name,
                "code": code,
                "parent_id": parent_id,
                "manager_id": self._check_manager(tenant_id, manager_id),
                "level": level,
                "sort_order": to_int(sort_order, "sort_order", default=0),
            },
        )
        logger.info("Org unit created id=%s code=%s", unit.id, unit.code)
        return unit

    def update_unit(self, tenant_id: int, unit_id: int, fields: Mapping[str, Any]) -> OrgUnit:
        unit = self.get_unit(tenant_id, unit_id)
        values: dict[str, Any] = {}

        if "name" in fields:
            values["name"] = require_non_empty(fields["name"], "name")
        if "code" in fields:
            code = require_non_empty(fields["code"], "code")
            other = self._units.get_unit_by_code(tenant_id, code)
            if other and other.id != unit.id:
                raise ConflictError("この組織コードは既に使用されています")
            values["code"] = code
        if "manager_id" in fields:
            values["manager_id"] = self._check_manager(tenant_id, fields["manager_id"])
        if "sort_order" in fields:
            values["sort_order"] = to_int(fields["sort_order"], "sort_order", default=0)

        parent_changed = False
        if "parent_id" in fields:
            parent_id = to_int(fields["parent_id"], "parent_id", default=0) or None
            if parent_id is not None:
                if parent_id == unit.id:
                    raise ValidationError("自分自身を親組織にすることはできません")
                if not self._units.get_unit(tenant_id, parent_id):
                    raise ValidationError("親組織が見つかりません")
                if parent_id in descendant_ids(self._units.list_units(tenant_id), unit.id):
                    raise ValidationError("配下の組織を親組織にすることはできません")
            parent_changed = parent_id != unit.parent_id
            values["parent_id"] = parent_id

        if not values:
            return unit

        updated = self._units.update_unit(tenant_id, unit_id, values)
        if parent_changed:
            self._units.set_levels(tenant_id, compute_levels(self._units.list_units(tenant_id)))
            updated = self.get_unit(tenant_id, unit_id)
        return updated

    def delete_unit(self, tenant_id: int, unit_id: int) -> None:
        self.get_unit(tenant_id, unit_id)
        units = self._units.list_units(tenant_id)
        if any(u.parent_id == unit_id for u in units):
            raise ValidationError("下位組織があるため削除できません")
        if self._users.list_by_org_units(tenant_id, [unit_id]):
            raise ValidationError("所属メンバーがいるため削除できません")
        self._units.delete_unit(tenant_id, unit_id)

    def build_tree(self, tenant_id: int) -> list[OrgTreeNode]:
        units = self._units.list_units(tenant_id)
        children = _children_map(units)
        members_by_unit: dict[int, list[OrgMember]] = {}
        for user in self._users.list_by_org_units(tenant_id, [u.id for u in units]):
            members_by_unit.setdefault(user.org_unit_id, []).append(
                OrgMember(id=user.id, name=user.name, email=user.email, role=user.role.value, position=user.position)
            )

        def build(unit: OrgUnit) -> OrgTreeNode:
            return OrgTreeNode(
                id=unit.id,
                name=unit.name,
                code=unit.code,
                level=unit.level,
                manager_id=unit.manager_id,
                sort_order=unit.sort_order,
                members=members_by_unit.get(unit.id, []),
                children=[build(c) for c in children.get(unit.id, [])],
            )

        return [build(root) for root in children.get(None, [])]

    def transfer_member(
        self,
        actor: CurrentUser,
        *,
        user_id: Any,
        to_unit_id: Any,
        effective_date: Any,
        reason: Optional[str] = None,
    ) -> TransferRecord:
        tenant_id = actor.tenant_id
        user_id = to_int(user_id, "user_id")
        to_unit_id = to_int(to_unit_id, "to_unit_id")
        effective = to_date(effective_date, "effective_date")

        user = self._users.get(tenant_id, user_id)
        if not user:
            raise NotFoundError("ユーザーが見つかりません")
        target = self.get_unit(tenant_id, to_unit_id)
        if user.org_unit_id == target.id:
            raise ValidationError("異動先が現在の所属と同じです")

        self._users.update(tenant_id, user.id, {"org_unit_id": target.id, "department": target.name})
        record = self._units.add_transfer(
            tenant_id,
            {
                "user_id": user.id,
                "from_unit_id": user.org_unit_id,
                "to_unit_id": target.id,
                "effective_date": effective,
                "reason": reason,
                "created_by": actor.user_id,
            },
        )
        logger.info("Transfer user_id=%s %s -> %s", user.id, user.org_unit_id, target.id)
        return record

    def transfer_history(self, tenant_id: int, *, user_id: Optional[int] = None) -> Sequence[TransferRecord]:
        return self._units.list_transfers(tenant_id, user_id=user_id)

    def managers_for(self, tenant_id: int, user_id: int) -> list[User]:
        """Managers of the user's unit and its ancestors, nearest first."""
        user = self._users.get(tenant_id, user_id)
        if not user or not user.org_unit_id:
            return []

        by_id = {u.id: u for u in self._units.list_units(tenant_id)}
        manager_ids: list[int] = []
        seen: set[int] = set()
        current = by_id.get(user.org_unit_id)
        while current and current.id not in seen:
            seen.add(current.id)
            if current.manager_id and current.manager_id != user_id and current.manager_id not in manager_ids:
                manager_ids.append(current.manager_id)
            current = by_id.get(current.parent_id) if current.parent_id else None

        found = {u.id: u for u in self._users.list_by_ids(tenant_id, manager_ids)}
        return [found[i] for i in manager_ids if i in found]

    def team_members(self, tenant_id: int, manager_id: int) -> list[User]:
        units = self._units.list_units(tenant_id)
        managed = {u.id for u in units if u.manager_id == manager_id}
        scope = set(managed)
        for unit_id in managed:
            scope |= descendant_ids(units, unit_id)
        return [u for u in self._users.list_by_org_units(tenant_id, scope) if u.id != manager_id]

    def _check_manager(self, tenant_id: int, manager_id: Any) -> Optional[int]:
        manager_id = to_int(manager_id, "manager_id", default=0) or None
        if manager_id and not self._users.get(tenant_id, manager_id):
            raise ValidationError("責任者が見つかりません")
        return manager_id
