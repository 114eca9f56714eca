"""Profile ORM models."""

from __future__ import annotations

from sqlalchemy import Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.database import Base, BaseModelMixin
from academy.core.enums import LevelEnum, RoleEnum


class Profile(BaseModelMixin, Base):
    """Person record keyed by the identity account id."""

    __tablename__ = "profiles"

    full_name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False),
        default=RoleEnum.TRAINEE,
        nullable=False,
        index=True,
    )
    level: Mapped[LevelEnum | None] = mapped_column(
        SAEnum(LevelEnum, name="level_enum", native_enum=False),
        nullable=True,
    )
