"""Session context and role capability checks."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from academy.core.enums import CapabilityEnum, LevelEnum, RoleEnum
from academy.shared.exceptions import UnauthorizedException


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Authenticated actor of a single request."""

    user_id: UUID
    email: str
    role: RoleEnum
    full_name: str = ""
    level: LevelEnum | None = None


ROLE_CAPABILITIES: dict[RoleEnum, frozenset[CapabilityEnum]] = {
    RoleEnum.ADMIN: frozenset(
        {
            CapabilityEnum.BOOKING_CREATE_ANY,
            CapabilityEnum.BOOKING_UPDATE,
            CapabilityEnum.BOOKING_RECORD_ATTENDANCE,
            CapabilityEnum.BOOKING_DELETE,
            CapabilityEnum.BOOKING_VIEW_ALL,
            CapabilityEnum.SCHEDULE_MANAGE_ANY,
            CapabilityEnum.PROFILE_MANAGE,
            CapabilityEnum.PROFILE_EDIT_SELF,
            CapabilityEnum.PROFILE_VIEW_DIRECTORY,
        },
    ),
    RoleEnum.TRAINER: frozenset(
        {
            CapabilityEnum.BOOKING_CREATE_ON_BEHALF,
            CapabilityEnum.BOOKING_UPDATE,
            CapabilityEnum.BOOKING_RECORD_ATTENDANCE,
            CapabilityEnum.BOOKING_DELETE,
            CapabilityEnum.SCHEDULE_MANAGE_OWN,
            CapabilityEnum.PROFILE_EDIT_SELF,
            CapabilityEnum.PROFILE_VIEW_DIRECTORY,
        },
    ),
    RoleEnum.TRAINEE: frozenset(
        {
            CapabilityEnum.BOOKING_CREATE_OWN,
            CapabilityEnum.PROFILE_EDIT_SELF,
        },
    ),
}


def has_capability(session: SessionContext, capability: CapabilityEnum) -> bool:
    """Return True if the session's role grants the capability."""
    return capability in ROLE_CAPABILITIES[session.role]


def require_capability(session: SessionContext, *capabilities: CapabilityEnum) -> None:
    """Raise unless the session holds at least one of the capabilities."""
    if any(has_capability(session, capability) for capability in capabilities):
        return
    names = ", ".join(capability.value for capability in capabilities)
    raise UnauthorizedException(f"Operation requires capability: {names}")
