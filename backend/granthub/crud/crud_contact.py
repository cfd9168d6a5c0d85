"""CRUD operations for contacts."""

from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from granthub.core.geo import Coordinates, bounding_box, haversine_m
from granthub.crud._base_team import CRUDBaseTeam
from granthub.models.contact import Contact
from granthub.models.event import EventContact, EventRegistration
from granthub.schemas.contact import ContactCreate, ContactUpdate


class CRUDContact(CRUDBaseTeam[Contact, ContactCreate, ContactUpdate]):
    """CRUD operations for contacts."""

    def _get_contact_query_with_relations(self):
        """Base query loading everything a contact is returned with."""
        return select(Contact).options(
            selectinload(Contact.attributes),
            selectinload(Contact.social_links),
            selectinload(Contact.group),
            selectinload(Contact.event_contacts).selectinload(EventContact.event),
            selectinload(Contact.event_contacts).selectinload(EventContact.event_role),
            selectinload(Contact.event_registrations).selectinload(EventRegistration.event),
        )

    async def get_with_relations(
        self,
        db: AsyncSession,
        id: UUID,
        team_id: UUID,
        *,
        where: Optional[ColumnElement[bool]] = None,
    ) -> Optional[Contact]:
        """Get a contact of the team with all relations, or None.

        Args:
            db (AsyncSession): The database session.
            id (UUID): The contact ID.
            team_id (UUID): The team the contact must belong to.
            where (Optional[ColumnElement[bool]]): Extra visibility condition.

        Returns:
            Optional[Contact]: The hydrated contact.
        """
        stmt = self._get_contact_query_with_relations().where(
            Contact.id == id, Contact.team_id == team_id
        )
        if where is not None:
            stmt = stmt.where(where)
        # Relations may already be loaded (empty) in this session's identity map
        stmt = stmt.execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_for_update(self, db: AsyncSession, id: UUID, team_id: UUID) -> Optional[Contact]:
        """Get a contact with attributes and social links for diffing."""
        stmt = (
            select(Contact)
            .options(selectinload(Contact.attributes), selectinload(Contact.social_links))
            .where(Contact.id == id, Contact.team_id == team_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def list_matching(
        self, db: AsyncSession, where: ColumnElement[bool]
    ) -> list[Contact]:
        """Get hydrated contacts matching a condition, newest first."""
        stmt = (
            self._get_contact_query_with_relations()
            .where(where)
            .order_by(Contact.created_at.desc(), Contact.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return list(result.unique().scalars().all())

    async def get_by_email(
        self,
        db: AsyncSession,
        *,
        team_id: UUID,
        email: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Contact]:
        """Get the contact of a team with the given email, ignoring case."""
        stmt = select(Contact).where(
            Contact.team_id == team_id, func.lower(Contact.email) == email.lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(Contact.id != exclude_id)
        result = await db.execute(stmt.limit(1))
        return result.scalars().first()

    async def get_ids_within_radius(
        self,
        db: AsyncSession,
        *,
        team_id: UUID,
        origin: Coordinates,
        radius_m: float,
    ) -> list[UUID]:
        """Ids of team contacts whose coordinates lie within ``radius_m`` of ``origin``.

        A bounding box narrows the candidates in SQL; the exact great-circle
        distance is checked on the remaining rows.
        """
        box = bounding_box(origin, radius_m)
        if box.min_longitude < -180.0:
            lon_clause = or_(
                Contact.longitude >= box.min_longitude + 360.0,
                Contact.longitude <= box.max_longitude,
            )
        elif box.max_longitude > 180.0:
            lon_clause = or_(
                Contact.longitude >= box.min_longitude,
                Contact.longitude <= box.max_longitude - 360.0,
            )
        else:
            lon_clause = Contact.longitude.between(box.min_longitude, box.max_longitude)

        stmt = select(Contact.id, Contact.latitude, Contact.longitude).where(
            Contact.team_id == team_id,
            Contact.latitude.is_not(None),
            Contact.longitude.is_not(None),
            and_(Contact.latitude.between(box.min_latitude, box.max_latitude), lon_clause),
        )
        result = await db.execute(stmt)

        return [
            contact_id
            for contact_id, latitude, longitude in result.all()
            if haversine_m(origin.latitude, origin.longitude, float(latitude), float(longitude))
            <= radius_m
        ]

    async def get_missing_geo(
        self, db: AsyncSession, *, limit: int, after_id: Optional[UUID] = None
    ) -> list[Contact]:
        """Contacts with a postal code but no coordinates, in id order (keyset paging)."""
        stmt = select(Contact).where(
            Contact.postal_code.is_not(None),
            Contact.postal_code != "",
            or_(Contact.latitude.is_(None), Contact.longitude.is_(None)),
        )
        if after_id is not None:
            stmt = stmt.where(Contact.id > after_id)
        result = await db.execute(stmt.order_by(Contact.id).limit(limit))
        return list(result.scalars().all())


contact = CRUDContact(Contact)
