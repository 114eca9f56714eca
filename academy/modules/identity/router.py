"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from academy.modules.identity.access import SessionContext
from academy.modules.identity.schemas import (
    AuthUser,
    LoginRequest,
    RefreshRequest,
    SessionRead,
    SignUpRequest,
    TokenPair,
    UserMetadata,
)
from academy.modules.identity.service import IdentityService, get_current_session, get_identity_service

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/auth/register", response_model=AuthUser, status_code=status.HTTP_201_CREATED)
async def register(
    payload: SignUpRequest,
    service: IdentityService = Depends(get_identity_service),
) -> AuthUser:
    """Register a new account; role is derived from the email domain."""
    metadata = UserMetadata(full_name=payload.full_name, phone=payload.phone)
    return await service.sign_up(payload.email, payload.password, metadata)


@router.post("/auth/login", response_model=TokenPair)
async def login(
    payload: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Sign in by email/password and return JWT token pair."""
    return await service.sign_in(payload.email, payload.password)


@router.post("/auth/refresh", response_model=TokenPair)
async def refresh_tokens(
    payload: RefreshRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Rotate refresh token and issue new token pair."""
    return await service.refresh_session(payload.refresh_token)


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    payload: RefreshRequest,
    service: IdentityService = Depends(get_identity_service),
) -> None:
    """Revoke the session bound to the refresh token."""
    await service.sign_out(payload.refresh_token)


@router.get("/users/me", response_model=SessionRead)
async def get_me(session: SessionContext = Depends(get_current_session)) -> SessionRead:
    """Return session context of authenticated user."""
    return SessionRead.model_validate(session)
