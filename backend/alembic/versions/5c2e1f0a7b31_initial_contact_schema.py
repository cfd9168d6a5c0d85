"""initial contact schema

Revision ID: 5c2e1f0a7b31
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c2e1f0a7b31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("modified_at", sa.DateTime(), nullable=False),
    ]


def _team_column() -> sa.Column:
    return sa.Column(
        "team_id", sa.UUID(), sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "team",
        *_base_columns(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "user",
        *_base_columns(),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "group",
        *_base_columns(),
        _team_column(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("can_access_all_contacts", sa.Boolean(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_group_team_id", "group", ["team_id"])

    op.create_table(
        "user_group",
        *_base_columns(),
        sa.Column(
            "user_id", sa.UUID(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "group_id", sa.UUID(), sa.ForeignKey("group.id", ondelete="CASCADE"), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "group_id", name="uq_user_group"),
    )
    op.create_index("ix_user_group_user_id", "user_group", ["user_id"])
    op.create_index("ix_user_group_group_id", "user_group", ["group_id"])

    op.create_table(
        "group_module",
        *_base_columns(),
        sa.Column(
            "group_id", sa.UUID(), sa.ForeignKey("group.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("module", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_id", "module", name="uq_group_module"),
    )
    op.create_index("ix_group_module_group_id", "group_module", ["group_id"])

    op.create_table(
        "contact_field_access",
        *_base_columns(),
        _team_column(),
        sa.Column("field_key", sa.String(), nullable=False),
        sa.Column(
            "group_id", sa.UUID(), sa.ForeignKey("group.id", ondelete="CASCADE"), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "team_id", "field_key", "group_id", name="uq_contact_field_access"
        ),
    )
    op.create_index("ix_contact_field_access_team_id", "contact_field_access", ["team_id"])
    op.create_index("ix_contact_field_access_group_id", "contact_field_access", ["group_id"])

    op.create_table(
        "contact",
        *_base_columns(),
        _team_column(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("pronouns", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("signal", sa.String(), nullable=True),
        sa.Column("website", sa.String(), nullable=True),
        sa.Column("gender", sa.String(), nullable=True),
        sa.Column("gender_request_preference", sa.String(), nullable=True),
        sa.Column("is_bipoc", sa.Boolean(), nullable=True),
        sa.Column("racism_request_preference", sa.String(), nullable=True),
        sa.Column("other_margins", sa.Text(), nullable=True),
        sa.Column("onboarding_date", sa.DateTime(), nullable=True),
        sa.Column("break_until", sa.DateTime(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("country_code", sa.String(length=2), nullable=True),
        sa.Column("latitude", sa.Numeric(9, 6), nullable=True),
        sa.Column("longitude", sa.Numeric(9, 6), nullable=True),
        sa.Column(
            "group_id", sa.UUID(), sa.ForeignKey("group.id", ondelete="SET NULL"), nullable=True
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contact_team_id", "contact", ["team_id"])
    op.create_index("ix_contact_group_id", "contact", ["group_id"])
    op.create_index("ix_contact_team_created_at", "contact", ["team_id", "created_at"])
    op.create_index(
        "uq_contact_team_email",
        "contact",
        ["team_id", sa.text("lower(email)")],
        unique=True,
    )

    op.create_table(
        "contact_attribute",
        *_base_columns(),
        sa.Column(
            "contact_id",
            sa.UUID(),
            sa.ForeignKey("contact.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("string_value", sa.Text(), nullable=True),
        sa.Column("number_value", sa.Numeric(), nullable=True),
        sa.Column("date_value", sa.DateTime(), nullable=True),
        sa.Column("location_label", sa.String(), nullable=True),
        sa.Column("latitude", sa.Numeric(9, 6), nullable=True),
        sa.Column("longitude", sa.Numeric(9, 6), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contact_id", "key", name="uq_contact_attribute_key"),
    )
    op.create_index("ix_contact_attribute_contact_id", "contact_attribute", ["contact_id"])

    op.create_table(
        "contact_social_link",
        *_base_columns(),
        sa.Column(
            "contact_id",
            sa.UUID(),
            sa.ForeignKey("contact.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("platform", sa.String(length=50), nullable=False),
        sa.Column("handle", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contact_id", "platform", name="uq_contact_social_link_platform"),
    )
    op.create_index("ix_contact_social_link_contact_id", "contact_social_link", ["contact_id"])

    op.create_table(
        "contact_change_log",
        *_base_columns(),
        sa.Column(
            "contact_id",
            sa.UUID(),
            sa.ForeignKey("contact.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("field_name", sa.String(), nullable=True),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("user_name", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_contact_change_log_contact_created",
        "contact_change_log",
        ["contact_id", "created_at"],
    )

    op.create_table(
        "event",
        *_base_columns(),
        _team_column(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_team_id", "event", ["team_id"])

    op.create_table(
        "event_role",
        *_base_columns(),
        _team_column(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_role_team_id", "event_role", ["team_id"])

    op.create_table(
        "event_contact",
        *_base_columns(),
        sa.Column(
            "event_id", sa.UUID(), sa.ForeignKey("event.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "contact_id",
            sa.UUID(),
            sa.ForeignKey("contact.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "event_role_id",
            sa.UUID(),
            sa.ForeignKey("event_role.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "contact_id", name="uq_event_contact"),
    )
    op.create_index("ix_event_contact_event_id", "event_contact", ["event_id"])
    op.create_index("ix_event_contact_contact_id", "event_contact", ["contact_id"])
    op.create_index("ix_event_contact_event_role_id", "event_contact", ["event_role_id"])

    op.create_table(
        "event_registration",
        *_base_columns(),
        sa.Column(
            "event_id", sa.UUID(), sa.ForeignKey("event.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "contact_id",
            sa.UUID(),
            sa.ForeignKey("contact.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_registration_event_id", "event_registration", ["event_id"])
    op.create_index("ix_event_registration_contact_id", "event_registration", ["contact_id"])

    op.create_table(
        "postal_code_centroid",
        *_base_columns(),
        sa.Column("country_code", sa.String(length=2), nullable=False),
        sa.Column("postal_code", sa.String(length=20), nullable=False),
        sa.Column("latitude", sa.Numeric(9, 6), nullable=False),
        sa.Column("longitude", sa.Numeric(9, 6), nullable=False),
        sa.Column("place_name", sa.String(), nullable=True),
        sa.Column("admin_name1", sa.String(), nullable=True),
        sa.Column("admin_code1", sa.String(), nullable=True),
        sa.Column("admin_name2", sa.String(), nullable=True),
        sa.Column("admin_code2", sa.String(), nullable=True),
        sa.Column("admin_name3", sa.String(), nullable=True),
        sa.Column("admin_code3", sa.String(), nullable=True),
        sa.Column("accuracy", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("country_code", "postal_code", name="uq_postal_code_centroid"),
    )


def downgrade() -> None:
    op.drop_table("postal_code_centroid")
    op.drop_table("event_registration")
    op.drop_table("event_contact")
    op.drop_table("event_role")
    op.drop_table("event")
    op.drop_table("contact_change_log")
    op.drop_table("contact_social_link")
    op.drop_table("contact_attribute")
    op.drop_index("uq_contact_team_email", table_name="contact")
    op.drop_table("contact")
    op.drop_table("contact_field_access")
    op.drop_table("group_module")
    op.drop_table("user_group")
    op.drop_table("group")
    op.drop_table("user")
    op.drop_table("team")
