"""Initial schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("admin", "trainer", "trainee", name="role_enum", native_enum=False)
level_enum = sa.Enum("Level1", "Level2", "Level3", "Level4", "Adult", "DreamTeam", name="level_enum", native_enum=False)
schedule_status_enum = sa.Enum("active", "inactive", name="schedule_status_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "pending",
    "confirmed",
    "cancelled",
    "attended",
    "absent",
    "apologized",
    name="booking_status_enum",
    native_enum=False,
)
attendance_enum = sa.Enum("present", "absent", name="attendance_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("user_metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "refresh_tokens",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_refresh_tokens_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("token_id", name="uq_refresh_tokens_token_id"),
    )
    op.create_index("ix_refresh_tokens_token_id", "refresh_tokens", ["token_id"], unique=False)

    op.create_table(
        "profiles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("full_name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("level", level_enum, nullable=True),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=False)
    op.create_index("ix_profiles_role", "profiles", ["role"], unique=False)

    op.create_table(
        "schedules",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("trainer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("status", schedule_status_enum, nullable=False),
        sa.ForeignKeyConstraint(["trainer_id"], ["profiles.id"], name="fk_schedules_trainer_id_profiles", ondelete="CASCADE"),
    )
    op.create_index("ix_schedules_trainer_id", "schedules", ["trainer_id"], unique=False)
    op.create_index("ix_schedules_date", "schedules", ["date"], unique=False)
    op.create_index("ix_schedules_status", "schedules", ["status"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("trainer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=32), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("attendance", attendance_enum, nullable=True),
        sa.Column("level", level_enum, nullable=True),
        sa.Column("student_name", sa.String(length=128), nullable=False),
        sa.Column("trainer_name", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(["student_id"], ["profiles.id"], name="fk_bookings_student_id_profiles", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trainer_id"], ["profiles.id"], name="fk_bookings_trainer_id_profiles", ondelete="CASCADE"),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"], unique=False)
    op.create_index("ix_bookings_trainer_id", "bookings", ["trainer_id"], unique=False)
    op.create_index("ix_bookings_day", "bookings", ["day"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_day", table_name="bookings")
    op.drop_index("ix_bookings_trainer_id", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_schedules_status", table_name="schedules")
    op.drop_index("ix_schedules_date", table_name="schedules")
    op.drop_index("ix_schedules_trainer_id", table_name="schedules")
    op.drop_table("schedules")

    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

    op.drop_index("ix_refresh_tokens_token_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
