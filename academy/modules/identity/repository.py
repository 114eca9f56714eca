"""Identity repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.modules.identity.models import RefreshToken, User


class IdentityRepository:
    """DB operations for identity domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return await self.session.scalar(stmt)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def create_user(
        self,
        email: str,
        password_hash: str,
        user_metadata: dict,
    ) -> User:
        user = User(email=email, password_hash=password_hash, user_metadata=user_metadata)
        self.session.add(user)
        await self.session.flush()
        return user

    async def update_user_email(self, user: User, email: str) -> User:
        user.email = email
        await self.session.flush()
        return user

    async def delete_user(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def create_refresh_token(
        self,
        user_id: UUID,
        token_id: str,
        expires_at: datetime,
    ) -> RefreshToken:
        refresh_token = RefreshToken(user_id=user_id, token_id=token_id, expires_at=expires_at)
        self.session.add(refresh_token)
        await self.session.flush()
        return refresh_token

    async def get_refresh_token_by_id(self, token_id: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_id == token_id)
        return await self.session.scalar(stmt)

    async def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> None:
        token = await self.get_refresh_token_by_id(token_id)
        if token is not None:
            token.revoked_at = revoked_at
            await self.session.flush()
