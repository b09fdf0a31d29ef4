from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# driver connect errors (e.g. asyncpg's ConnectionRefusedError) arrive unwrapped as OSError
_STORAGE_FAILURES = (SQLAlchemyError, OSError)

class StorageError(Exception):
    """Raised for any connectivity or constraint failure in the database."""

@asynccontextmanager
async def _storage(db: AsyncSession):
    try:
        yield
    except _STORAGE_FAILURES as e:
        try:
            await db.rollback()
        except _STORAGE_FAILURES:
            pass  # keep the first error
        raise StorageError(str(e)) from e

class Repository:
    """Filtered access to one table; filters are ``{column: value}`` equality maps."""

    def __init__(self, model):
        self.model = model

    def _where(self, filters: Optional[Dict[str, Any]]):
        return [getattr(self.model, k) == v for k, v in (filters or {}).items()]

    def _order(self, sort_key: str, descending: bool):
        col = getattr(self.model, sort_key)
        pk = self.model.id
        return (col.desc(), pk.desc()) if descending else (col.asc(), pk.asc())

    async def find_one(self, db: AsyncSession, filters: Dict[str, Any],
                       sort_key: Optional[str] = None, descending: bool = True):
        stmt = select(self.model).where(*self._where(filters))
        if sort_key:
            stmt = stmt.order_by(*self._order(sort_key, descending))
        async with _storage(db):
            res = await db.execute(stmt.limit(1))
            return res.scalars().first()

    async def find_many(self, db: AsyncSession, filters: Optional[Dict[str, Any]], sort_key: str,
                        descending: bool = True, limit: Optional[int] = None) -> List:
        stmt = select(self.model).where(*self._where(filters)).order_by(*self._order(sort_key, descending))
        if limit is not None:
            stmt = stmt.limit(limit)
        async with _storage(db):
            res = await db.execute(stmt)
            return list(res.scalars().all())

    async def insert(self, db: AsyncSession, fields: Dict[str, Any]):
        row = self.model(**fields)
        async with _storage(db):
            db.add(row)
            await db.commit()
        return row

    async def upsert(self, db: AsyncSession, filters: Dict[str, Any], fields: Dict[str, Any]):
        async with _storage(db):
            res = await db.execute(select(self.model).where(*self._where(filters)).limit(1))
            row = res.scalars().first()
            if row is None:
                row = self.model(**{**filters, **fields})
                db.add(row)
            else:
                for k, v in fields.items():
                    setattr(row, k, v)
            await db.commit()
        return row

    async def delete_many(self, db: AsyncSession, filters: Optional[Dict[str, Any]] = None, *conditions) -> int:
        stmt = (delete(self.model).where(*self._where(filters), *conditions)
                .execution_options(synchronize_session=False))
        async with _storage(db):
            res = await db.execute(stmt)
            await db.commit()
            return res.rowcount or 0
