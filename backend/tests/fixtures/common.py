"""Common test fixtures and factories for rows the contact tests depend on."""

import uuid
from typing import Optional, Sequence

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import models
from granthub.core.shared_models import AppModule


async def make_team(db: AsyncSession, name: str = "Test Team") -> models.Team:
    """Insert a team."""
    team = models.Team(name=name)
    db.add(team)
    await db.commit()
    return team


async def make_user(db: AsyncSession, email: Optional[str] = None) -> models.User:
    """Insert a user."""
    user = models.User(
        full_name="Test User",
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


async def make_group(
    db: AsyncSession,
    team_id: uuid.UUID,
    name: str,
    *,
    members: Sequence[models.User] = (),
    modules: Sequence[AppModule] = (),
    can_access_all_contacts: bool = False,
    is_default: bool = False,
) -> models.Group:
    """Insert a group with members and module grants."""
    group = models.Group(
        team_id=team_id,
        name=name,
        can_access_all_contacts=can_access_all_contacts,
        is_default=is_default,
    )
    db.add(group)
    await db.flush()
    for user in members:
        db.add(models.UserGroup(user_id=user.id, group_id=group.id))
    for module in modules:
        db.add(models.GroupModule(group_id=group.id, module=module.value))
    await db.commit()
    return group


async def restrict_field(
    db: AsyncSession, team_id: uuid.UUID, field_key: str, *groups: models.Group
) -> None:
    """Restrict a contact field (or ``profile_attribute.<key>``) to the given groups."""
    for group in groups:
        db.add(models.ContactFieldAccess(team_id=team_id, field_key=field_key, group_id=group.id))
    await db.commit()


@pytest.fixture
async def team(db: AsyncSession) -> models.Team:
    """A team to create contacts in."""
    return await make_team(db)


@pytest.fixture
async def member_user(db: AsyncSession) -> models.User:
    """A user that belongs to the restricted group."""
    return await make_user(db, "member@example.com")


@pytest.fixture
async def outsider_user(db: AsyncSession) -> models.User:
    """A user outside every group."""
    return await make_user(db, "outsider@example.com")


@pytest.fixture
async def admin_user(db: AsyncSession) -> models.User:
    """A user acting with the Admin role."""
    return await make_user(db, "admin@example.com")


@pytest.fixture
async def restricted_group(
    db: AsyncSession, team: models.Team, member_user: models.User
) -> models.Group:
    """Group G1 holding ``member_user`` and the CRM module."""
    return await make_group(
        db, team.id, "Supervisors", members=[member_user], modules=[AppModule.CRM]
    )
