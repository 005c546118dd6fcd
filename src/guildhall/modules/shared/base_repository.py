"""
Typed data access for one model class.

Repositories only read and write rows inside a session they are handed; the
transaction belongs to the calling service. Every call leaves a DEBUG record
naming the model and the outcome.

    task_repo = BaseRepository[ActiveTask](ActiveTask, logger)
    task = await task_repo.find_one_where(
        session,
        ActiveTask.player_id == player_id,
        ActiveTask.task_type == TaskType.CRAFTING,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, exists, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    def _trace(self, action: str, **fields: Any) -> None:
        name = self.model_class.__name__
        self.log.debug(f"{name}.{action}", extra={"model": name, **fields})

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Row by primary key; composite keys are a tuple in column order."""
        instance = await session.get(self.model_class, id_value)
        self._trace("get", id=id_value, found=instance is not None)
        return instance

    async def get_for_update(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """
        Row by primary key under `SELECT ... FOR UPDATE`.

        SQLite drops the clause; there the transaction-wide write lock taken
        at BEGIN gives the same exclusion.
        """
        instance = await session.get(self.model_class, id_value, with_for_update=True)
        self._trace("get_for_update", id=id_value, found=instance is not None)
        return instance

    async def find_one_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> Optional[T]:
        result = await session.execute(select(self.model_class).where(*conditions))
        instance = result.unique().scalar_one_or_none()
        self._trace("find_one_where", found=instance is not None)
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
    ) -> List[T]:
        stmt = select(self.model_class).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await session.execute(stmt)
        instances = list(result.unique().scalars())
        self._trace("find_many_where", found_count=len(instances))
        return instances

    async def exists(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> bool:
        found = bool(await session.scalar(select(exists().where(*conditions))))
        self._trace("exists", found=found)
        return found

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self._trace("add")
        return instance

    def add_many(self, session: AsyncSession, instances: Sequence[T]) -> List[T]:
        session.add_all(instances)
        self._trace("add_many", count=len(instances))
        return list(instances)

    async def delete_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> int:
        """
        Bulk `DELETE ... WHERE`; returns the number of rows removed.

        A caller that must remove exactly one row checks for 1. Zero means
        another transaction got there first.
        """
        result = await session.execute(
            delete(self.model_class)
            .where(*conditions)
            .execution_options(synchronize_session=False)
        )
        deleted = result.rowcount or 0
        self._trace("delete_where", deleted=deleted)
        return deleted

    async def flush(self, session: AsyncSession) -> None:
        await session.flush()
        self._trace("flush")
