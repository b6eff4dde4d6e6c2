# mentorchat/services/privacy_resolver.py
"""Display names attached to messages.

A name is resolved once, when the message is sent, and stored with it. Later
preference changes only affect messages sent afterwards.
"""
from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .anonymity_service import AnonymityService
from .preference_service import PreferenceService
from .profile_service import ProfileService
from ..models.enums import DisplayMode, UserRole

logger = logging.getLogger(__name__)

MENTOR_PLACEHOLDER = "Mentor"
STUDENT_PLACEHOLDER = "Student"
ANONYMOUS_PREFIX = "Anonymous"


@dataclass(frozen=True)
class StudentDisplay:
    """A student's effective settings; students without a stored row get the default."""
    mode: DisplayMode = DisplayMode.ANONYMOUS
    nickname: Optional[str] = None


class PrivacyResolver:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = AnonymityService(db)
        self.preferences = PreferenceService(db)
        self.profiles = ProfileService(db)

    async def resolve_display_name(
        self,
        user_id: UUID,
        role: Union[str, UserRole],
        counterpart_id: UUID
    ) -> str:
        """Name to show for ``user_id`` in their conversation with ``counterpart_id``"""
        if UserRole(role) == UserRole.MENTOR:
            return await self._mentor_name(user_id)

        display = await self.student_display(user_id)

        if display.mode == DisplayMode.REAL_NAME:
            profile = await self.profiles.get(user_id)
            if profile and profile.real_name:
                return profile.real_name
            return STUDENT_PLACEHOLDER

        if display.mode == DisplayMode.NICKNAME and display.nickname:
            return display.nickname

        number = await self.ledger.resolve_anonymous_number(user_id, counterpart_id)
        return f"{ANONYMOUS_PREFIX} {number}"

    async def student_display(self, student_id: UUID) -> StudentDisplay:
        preference = await self.preferences.get_student_preference(student_id)
        if preference is None:
            return StudentDisplay()
        return StudentDisplay(mode=DisplayMode(preference.display_mode), nickname=preference.nickname)

    async def _mentor_name(self, mentor_id: UUID) -> str:
        preference = await self.preferences.get_mentor_preference(mentor_id)
        if preference and preference.nickname:
            return preference.nickname
        logger.warning(f"Mentor {mentor_id} has no nickname yet, using placeholder")
        return MENTOR_PLACEHOLDER
