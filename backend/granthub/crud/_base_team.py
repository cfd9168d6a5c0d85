"""Shared CRUD operations for rows owned by a team."""

from typing import Any, Generic, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from granthub.core.exceptions import NotFoundException
from granthub.db.unit_of_work import UnitOfWork
from granthub.models._base import TeamBase

ModelType = TypeVar("ModelType", bound=TeamBase)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

Payload = Union[BaseModel, dict[str, Any]]


def _as_values(obj_in: Payload) -> dict[str, Any]:
    if isinstance(obj_in, dict):
        return dict(obj_in)
    return obj_in.model_dump(exclude_unset=True)


class CRUDBaseTeam(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """CRUD bound to one model whose rows carry a ``team_id``.

    Lookups always include the team; a row of another team is reported as
    missing rather than forbidden. Writes commit on their own unless a
    ``UnitOfWork`` is passed, in which case the caller owns the transaction.
    """

    def __init__(self, model: Type[ModelType]):
        """Bind the CRUD object to ``model``."""
        self.model = model

    async def _finish(
        self, db: AsyncSession, uow: Optional[UnitOfWork], refresh: Optional[ModelType] = None
    ) -> None:
        if uow:
            return
        await db.commit()
        if refresh is not None:
            await db.refresh(refresh)

    async def get(self, db: AsyncSession, id: UUID, team_id: UUID) -> ModelType:
        """Fetch a row of the team.

        Raises:
        ------
            NotFoundException: The row is missing or owned by another team.

        """
        result = await db.execute(
            select(self.model).where(self.model.id == id, self.model.team_id == team_id)
        )
        row = result.unique().scalar_one_or_none()
        if row is None:
            raise NotFoundException(f"{self.model.__name__} not found")
        return row

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Payload,
        team_id: UUID,
        uow: Optional[UnitOfWork] = None,
    ) -> ModelType:
        """Insert a row owned by ``team_id``."""
        row = self.model(**{**_as_values(obj_in), "team_id": team_id})
        db.add(row)
        await self._finish(db, uow, refresh=row)
        return row

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Payload,
        uow: Optional[UnitOfWork] = None,
    ) -> ModelType:
        """Copy the given values onto ``db_obj``.

        A schema contributes only the fields that were explicitly set.
        """
        for name, value in _as_values(obj_in).items():
            setattr(db_obj, name, value)
        await self._finish(db, uow, refresh=db_obj)
        return db_obj

    async def remove(
        self,
        db: AsyncSession,
        *,
        id: UUID,
        team_id: UUID,
        uow: Optional[UnitOfWork] = None,
    ) -> ModelType:
        """Delete one row of the team and return it."""
        row = await self.get(db, id=id, team_id=team_id)
        await db.delete(row)
        await self._finish(db, uow)
        return row

    async def bulk_remove(
        self,
        db: AsyncSession,
        *,
        ids: list[UUID],
        team_id: UUID,
        uow: Optional[UnitOfWork] = None,
    ) -> int:
        """Delete the rows of ``ids`` that belong to the team.

        Ids of other teams, or unknown ids, are ignored. Returns the number
        of rows deleted.
        """
        if not ids:
            return 0

        result = await db.execute(
            delete(self.model)
            .where(self.model.id.in_(ids), self.model.team_id == team_id)
            .execution_options(synchronize_session=False)
        )
        await self._finish(db, uow)
        return result.rowcount or 0
