# mentorchat/services/profile_service.py
from typing import List, Dict
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
import logging

from .base_service import BaseService
from ..core.exceptions import ConflictRetryableError
from ..core.security import CurrentUser
from ..models.enums import UserRole
from ..models.preferences import MentorPreference
from ..models.profile import Profile

logger = logging.getLogger(__name__)

class ProfileService(BaseService[Profile]):
    def __init__(self, db: AsyncSession):
        super().__init__(Profile, db)

    async def sync_profile(self, user: CurrentUser) -> Profile:
        """Make sure the authenticated user has a local profile row"""
        profile = await self.get(user.id)
        if profile is None:
            try:
                return await self.insert_unique(Profile(
                    id=user.id,
                    role=user.role.value,
                    real_name=user.name
                ))
            except ConflictRetryableError:
                # another request from the same user created it first
                profile = await self.get(user.id)

        # the Identity Provider is authoritative for both name and role
        changed = False
        if user.name and profile.real_name != user.name:
            profile.real_name = user.name
            changed = True
        if profile.role != user.role.value:
            logger.warning(f"User {user.id} role changed from {profile.role} to {user.role.value}")
            profile.role = user.role.value
            changed = True
        if changed:
            await self.db.commit()
        return profile

    async def get_with_role(self, user_id: UUID, role: UserRole):
        return await self.get_by(id=user_id, role=role.value)

    async def list_visible_mentors(self) -> List[Dict]:
        """Mentors become visible to students once they have set a nickname"""
        stmt = select(Profile.id, MentorPreference.nickname).join(
            MentorPreference, MentorPreference.user_id == Profile.id
        ).where(
            and_(
                Profile.role == UserRole.MENTOR.value,
                MentorPreference.nickname.is_not(None),
                MentorPreference.nickname != ""
            )
        ).order_by(MentorPreference.nickname)

        result = await self.db.execute(stmt)
        return [
            {"mentor_id": mentor_id, "nickname": nickname}
            for mentor_id, nickname in result.all()
        ]
