"""Shared helpers for the SQLAlchemy repositories."""

from __future__ import annotations

from typing import Any, Callable, Optional, Type, TypeVar

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import Query

from ..common.pagination import Page, PageRequest
from .mapping import row_to_model

T = TypeVar("T")


class SQLAlchemyRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    @property
    def _session(self):
        return self._db.session

    def _tenant_row(self, row_cls: type, tenant_id: int, row_id: int) -> Optional[Any]:
        """Primary-key lookup that hides rows owned by another tenant."""
        row = self._session.get(row_cls, row_id)
        if row is None or row.tenant_id != tenant_id:
            return None
        return row

    def _page(
        self,
        query: Query,
        request: PageRequest,
        model_cls: Type[T],
        *,
        convert: Optional[Callable[[Any], T]] = None,
    ) -> Page[T]:
        total = query.order_by(None).count()
        rows = query.offset(request.offset).limit(request.limit).all()
        to_model = convert or (lambda r: row_to_model(model_cls, r))
        return Page(items=[to_model(r) for r in rows], total=total, request=request)
