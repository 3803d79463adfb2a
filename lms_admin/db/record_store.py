"""Generic table-scoped CRUD over one ORM model.

Soft delete is on whenever the model has a ``deleted_at`` column. Every
``where`` mapping is checked against the model's columns so a typo fails loudly
instead of silently filtering on nothing. Driver errors propagate unchanged.
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from fastapi import status
from sqlalchemy import asc, delete, desc, func, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms_admin.core.exceptions import ServiceError

ModelT = TypeVar("ModelT")

OrderSpec = Union[str, Sequence[Union[str, Tuple[str, str]]]]


class RecordStore(Generic[ModelT]):
    primary_key = "id"

    def __init__(self, model: Type[ModelT], db: AsyncSession) -> None:
        self.model = model
        self.db = db
        self.columns = set(model.__table__.columns.keys())
        self.soft_delete = "deleted_at" in self.columns

    # ----- helpers -----

    def _column(self, name: str):
        if name not in self.columns:
            raise ValueError(f"{self.model.__tablename__} has no column {name!r}")
        return getattr(self.model, name)

    def _conditions(self, where: Optional[Mapping[str, Any]], include_deleted: bool = False) -> List[Any]:
        conditions = []
        if self.soft_delete and not include_deleted:
            conditions.append(self.model.deleted_at.is_(None))
        for key, value in (where or {}).items():
            col = self._column(key)
            conditions.append(col.is_(None) if value is None else col == value)
        return conditions

    def _order(self, order_by: Optional[OrderSpec]) -> List[Any]:
        """Accepts "name", "-updated_at", or [("order", "asc"), ("id", "desc")]."""
        if order_by is None:
            return [asc(self._column(self.primary_key))]
        items = [order_by] if isinstance(order_by, str) else list(order_by)
        clauses = []
        for item in items:
            if isinstance(item, tuple):
                name, direction = item
            elif item.startswith("-"):
                name, direction = item[1:], "desc"
            else:
                name, direction = item, "asc"
            col = self._column(name)
            clauses.append(desc(col) if direction.lower() == "desc" else asc(col))
        return clauses

    def _pk(self):
        return self._column(self.primary_key)

    # ----- reads -----

    async def find_all(
        self,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderSpec] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include_deleted: bool = False,
    ) -> List[ModelT]:
        stmt = select(self.model).where(*self._conditions(where, include_deleted)).order_by(*self._order(order_by))
        if limit:
            stmt = stmt.limit(int(limit))
        if offset:
            stmt = stmt.offset(int(offset))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_id(self, id_: Any) -> Optional[ModelT]:
        stmt = select(self.model).where(self._pk() == id_, *self._conditions(None))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_one(self, where: Optional[Mapping[str, Any]] = None) -> Optional[ModelT]:
        rows = await self.find_all(where=where, limit=1)
        return rows[0] if rows else None

    async def count(self, where: Optional[Mapping[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._conditions(where))
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    # ----- writes -----

    async def create(self, data: Dict[str, Any]) -> ModelT:
        now = datetime.utcnow()
        values = dict(data)
        values.pop(self.primary_key, None)
        values["created_at"] = now
        values["updated_at"] = now
        for key in values:
            self._column(key)
        obj = self.model(**values)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, id_: Any, data: Dict[str, Any]) -> bool:
        values = dict(data)
        values.pop(self.primary_key, None)
        for key in values:
            self._column(key)
        if "updated_at" in self.columns:
            values["updated_at"] = datetime.utcnow()
        stmt = update(self.model).where(self._pk() == id_).values(**values)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def delete(self, id_: Any) -> bool:
        if self.soft_delete:
            stmt = update(self.model).where(self._pk() == id_).values(deleted_at=datetime.utcnow())
        else:
            stmt = delete(self.model).where(self._pk() == id_)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def restore(self, id_: Any) -> bool:
        if not self.soft_delete:
            raise ServiceError("Restore is only available for soft-delete models", status.HTTP_400_BAD_REQUEST)
        stmt = (
            update(self.model)
            .where(self._pk() == id_)
            .values(deleted_at=None, updated_at=datetime.utcnow())
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Raw SQL escape hatch; named parameters (``:name``) only."""
        result = await self.db.execute(text(sql), dict(params or {}))
        return [dict(row) for row in result.mappings().all()]
