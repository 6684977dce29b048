"""
Base repository with generic CRUD operations.

Filters are plain ``{field: value}`` mappings; a list or tuple value matches
any of its members, ``None`` values are ignored.

Writes commit by default. Pass ``commit=False`` to only flush, so a service can
group several writes and commit them together.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional, List, Any, Dict
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, update as sql_update, delete as sql_delete

from realty_crm.core.pagination import create_paginated_response

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for field, value in filters.items():
                if not hasattr(self.model, field) or value is None:
                    continue
                column = getattr(self.model, field)
                if isinstance(value, (list, tuple, set)):
                    query = query.where(column.in_(list(value)))
                else:
                    query = query.where(column == value)
        return query

    def _apply_order(self, query, order_by: Optional[str], order_desc: bool):
        if order_by and hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)
        return query

    async def _save(self, commit: bool) -> None:
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()

    async def create(self, obj_in: dict, commit: bool = True) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        await self._save(commit)
        await self.session.refresh(db_obj)
        return db_obj

    async def create_many(self, objs_in: List[dict], commit: bool = True) -> List[ModelType]:
        """Create several records in one transaction."""
        db_objs = [self.model(**obj_in) for obj_in in objs_in]
        self.session.add_all(db_objs)
        await self._save(commit)
        for db_obj in db_objs:
            await self.session.refresh(db_obj)
        return db_objs

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a record by a specific field."""
        query = select(self.model).where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        return result.first()

    async def list(
        self,
        filters: Optional[dict] = None,
        order_by: str = "created_at",
        order_desc: bool = True,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """List records with optional filters, ordering and limit."""
        query = self._apply_filters(select(self.model), filters)
        query = self._apply_order(query, order_by, order_desc)
        if limit:
            query = query.limit(limit)

        result = await self.session.exec(query)
        return result.all()

    async def paginate(
        self,
        query,
        page: int = 1,
        limit: int = 20,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> dict:
        """Count, order and slice an already filtered query."""
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        query = self._apply_order(query, order_by, order_desc)
        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.session.exec(query)
        items = result.all()

        return create_paginated_response(items, total, page, limit)

    async def update(
        self,
        id: uuid.UUID,
        obj_in: dict,
        skip_none: bool = True,
        commit: bool = True
    ) -> Optional[ModelType]:
        """
        Update a record.

        With ``skip_none`` left on, None values are ignored so that partial
        payloads never clear columns; turn it off to write explicit NULLs.
        """
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if hasattr(db_obj, field) and (value is not None or not skip_none):
                setattr(db_obj, field, value)

        # Update timestamp if exists
        if hasattr(db_obj, 'updated_at'):
            db_obj.updated_at = datetime.utcnow()

        self.session.add(db_obj)
        await self._save(commit)
        await self.session.refresh(db_obj)
        return db_obj

    async def update_where(self, patch: dict, filters: dict) -> int:
        """Apply ``patch`` to every row matching ``filters``; returns affected rows."""
        if not filters:
            raise ValueError("update_where requires at least one filter")
        statement = self._apply_filters(sql_update(self.model), filters).values(**patch)
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount

    async def delete(self, id: uuid.UUID, commit: bool = True) -> bool:
        """Delete a record."""
        db_obj = await self.get(id)
        if not db_obj:
            return False

        await self.session.delete(db_obj)
        await self._save(commit)
        return True

    async def delete_where(self, filters: dict, commit: bool = True) -> int:
        """Delete every row matching ``filters``."""
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        statement = self._apply_filters(sql_delete(self.model), filters)
        result = await self.session.execute(statement)
        await self._save(commit)
        return result.rowcount

    async def count(self, filters: Optional[dict] = None) -> int:
        """Count records."""
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)
        result = await self.session.exec(query)
        return result.one()

    async def exists(self, id: uuid.UUID) -> bool:
        """Check if a record exists."""
        obj = await self.get(id)
        return obj is not None
