# mentorchat/core/deps.py
"""Request dependencies for the authenticated caller."""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import NotAuthenticatedError, NotParticipantError
from .security import CurrentUser, identity_provider
from ..models.enums import UserRole
from ..services.profile_service import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> CurrentUser:
    """Resolve the caller once per request and keep their profile in sync"""
    token = credentials.credentials if credentials else None
    user = identity_provider.get_current_user(token)
    if user is None:
        raise NotAuthenticatedError()
    await ProfileService(db).sync_profile(user)
    return user

async def get_current_student(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != UserRole.STUDENT:
        raise NotParticipantError("Only students can do this")
    return user

async def get_current_mentor(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != UserRole.MENTOR:
        raise NotParticipantError("Only mentors can do this")
    return user
