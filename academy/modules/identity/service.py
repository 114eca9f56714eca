"""Identity business logic layer.

Acts as the in-process identity provider: accounts, credential checks,
session issue/rotation/revocation and role derivation at signup.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.config import get_settings
from academy.core.database import get_db_session
from academy.core.enums import AuthFailureEnum, RoleEnum
from academy.core.record_store import PROFILES, RecordStore, SQLAlchemyRecordStore
from academy.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    oauth2_scheme,
    verify_password,
)
from academy.modules.identity.access import SessionContext
from academy.modules.identity.models import User
from academy.modules.identity.repository import IdentityRepository
from academy.modules.identity.schemas import AuthUser, TokenPair, UserMetadata
from academy.shared.exceptions import AuthException, NotFoundException
from academy.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


def derive_role(
    email: str | None,
    *,
    admin_domain: str | None = None,
    trainer_domain: str | None = None,
) -> RoleEnum:
    """Map an email to a role by domain suffix; anything unknown is a trainee."""
    if not email:
        return RoleEnum.TRAINEE
    admin_domain = admin_domain or settings.admin_email_domain
    trainer_domain = trainer_domain or settings.trainer_email_domain

    lowered = email.strip().lower()
    if lowered.endswith(f"@{admin_domain}"):
        return RoleEnum.ADMIN
    if lowered.endswith(f"@{trainer_domain}"):
        return RoleEnum.TRAINER
    return RoleEnum.TRAINEE


class IdentityProvider(Protocol):
    """Contract of the identity collaborator used by other modules."""

    async def sign_up(self, email: str, password: str, metadata: UserMetadata) -> AuthUser:
        """Create account and its profile."""

    async def sign_in(self, email: str, password: str) -> TokenPair:
        """Verify credentials and open a session."""

    async def admin_delete_user(self, user_id: UUID) -> None:
        """Remove account."""

    async def admin_update_user_email(self, user_id: UUID, new_email: str) -> None:
        """Change account email."""


class IdentityService:
    """Identity domain service."""

    def __init__(self, repository: IdentityRepository, store: RecordStore) -> None:
        self.repository = repository
        self.store = store

    async def sign_up(self, email: str, password: str, metadata: UserMetadata) -> AuthUser:
        """Register account; role comes from metadata or is derived from email once."""
        existing_user = await self.repository.get_user_by_email(email)
        if existing_user is not None:
            raise AuthException(AuthFailureEnum.ALREADY_REGISTERED)

        role = metadata.role or derive_role(email)
        stored_metadata = metadata.model_copy(update={"role": role})
        user = await self.repository.create_user(
            email=email,
            password_hash=hash_password(password),
            user_metadata=stored_metadata.model_dump(mode="json"),
        )
        await self.store.insert(
            PROFILES,
            {
                "id": user.id,
                "full_name": stored_metadata.full_name,
                "email": email,
                "phone": stored_metadata.phone,
                "role": role,
                "level": stored_metadata.level,
            },
        )
        logger.info("Account %s registered with role %s", user.id, role)
        return AuthUser(id=user.id, email=user.email, user_metadata=stored_metadata)

    async def sign_in(self, email: str, password: str) -> TokenPair:
        """Authenticate user and open a session."""
        user = await self.repository.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthException(AuthFailureEnum.INVALID_CREDENTIALS)
        if not user.is_active:
            raise AuthException(AuthFailureEnum.INACTIVE)

        token_pair = await self._issue_tokens(user)
        logger.info("Session opened for %s", user.id)
        return token_pair

    async def refresh_session(self, refresh_token_value: str) -> TokenPair:
        """Rotate refresh token and issue new token pair."""
        token_id, subject = self._refresh_claims(refresh_token_value)

        db_token = await self.repository.get_refresh_token_by_id(token_id)
        if db_token is None or db_token.revoked_at is not None or db_token.expires_at <= utc_now():
            raise AuthException(AuthFailureEnum.INVALID_TOKEN)

        await self.repository.revoke_refresh_token(token_id, utc_now())

        user = await self.repository.get_user_by_id(UUID(subject))
        if user is None or not user.is_active:
            raise AuthException(AuthFailureEnum.INVALID_TOKEN)
        return await self._issue_tokens(user)

    async def sign_out(self, refresh_token_value: str) -> None:
        """Tear down the session bound to the refresh token."""
        token_id, subject = self._refresh_claims(refresh_token_value)
        await self.repository.revoke_refresh_token(token_id, utc_now())
        logger.info("Session closed for %s", subject)

    async def admin_delete_user(self, user_id: UUID) -> None:
        """Delete account and its sessions."""
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("Account not found")
        await self.repository.delete_user(user)
        logger.info("Account %s deleted", user_id)

    async def admin_update_user_email(self, user_id: UUID, new_email: str) -> None:
        """Change login email of an account."""
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("Account not found")

        owner = await self.repository.get_user_by_email(new_email)
        if owner is not None and owner.id != user.id:
            raise AuthException(AuthFailureEnum.ALREADY_REGISTERED)
        await self.repository.update_user_email(user, new_email)

    async def resolve_session(self, access_token: str) -> SessionContext:
        """Build session context from access token."""
        payload = decode_token(access_token)
        if payload.get("type") != "access" or not payload.get("sub"):
            raise AuthException(AuthFailureEnum.INVALID_TOKEN)

        user = await self.repository.get_user_by_id(UUID(payload["sub"]))
        if user is None:
            raise AuthException(AuthFailureEnum.INVALID_TOKEN)
        if not user.is_active:
            raise AuthException(AuthFailureEnum.INACTIVE)

        metadata = UserMetadata.model_validate(user.user_metadata or {})
        return SessionContext(
            user_id=user.id,
            email=user.email,
            role=metadata.role or RoleEnum.TRAINEE,
            full_name=metadata.full_name,
            level=metadata.level,
        )

    async def _issue_tokens(self, user: User) -> TokenPair:
        role = UserMetadata.model_validate(user.user_metadata or {}).role or RoleEnum.TRAINEE
        token_id = str(uuid4())
        access_token = create_access_token(subject=str(user.id), role=role.value)
        refresh_token = create_refresh_token(subject=str(user.id), token_id=token_id, role=role.value)

        expires_at = utc_now() + timedelta(days=settings.refresh_token_expire_days)
        await self.repository.create_refresh_token(user.id, token_id, expires_at)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def _refresh_claims(refresh_token_value: str) -> tuple[str, str]:
        payload = decode_token(refresh_token_value)
        token_id = payload.get("jti")
        subject = payload.get("sub")
        if payload.get("type") != "refresh" or not token_id or not subject:
            raise AuthException(AuthFailureEnum.INVALID_TOKEN)
        return token_id, subject


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session), SQLAlchemyRecordStore(session))


async def get_current_session(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> SessionContext:
    """Resolve session context of the authenticated caller."""
    return await service.resolve_session(token)
