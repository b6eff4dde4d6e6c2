# mentorchat/services/preference_service.py
from typing import Optional, Type, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_
import logging

from .base_service import BaseService
from ..core.exceptions import ConflictRetryableError, PreferenceImmutableError, ValidationError
from ..models.enums import DisplayMode
from ..models.preferences import (
    MentorPreference, StudentPreference,
    MENTOR_NICKNAME_MAX_LENGTH, STUDENT_NICKNAME_MAX_LENGTH
)

logger = logging.getLogger(__name__)

PreferenceModel = Union[MentorPreference, StudentPreference]

class PreferenceService(BaseService[StudentPreference]):
    """Student display modes and the write-once nicknames of both roles."""

    def __init__(self, db: AsyncSession):
        super().__init__(StudentPreference, db)

    async def get_student_preference(self, user_id: UUID) -> Optional[StudentPreference]:
        return await self._get_preference(StudentPreference, user_id)

    async def get_mentor_preference(self, user_id: UUID) -> Optional[MentorPreference]:
        return await self._get_preference(MentorPreference, user_id)

    async def set_mentor_nickname(self, mentor_id: UUID, nickname: str) -> MentorPreference:
        """Record the mentor's permanent nickname.

        Re-submitting the stored value is a no-op; any other value once a
        nickname exists raises PreferenceImmutableError.
        """
        nickname = self._clean_nickname(nickname, MENTOR_NICKNAME_MAX_LENGTH)
        if not nickname:
            raise ValidationError("Please enter a nickname", field="nickname")

        preference = await self._get_or_create(MentorPreference, mentor_id)
        await self._claim_nickname(MentorPreference, preference, nickname)
        logger.info(f"Mentor {mentor_id} nickname set")
        return preference

    async def set_display_mode(
        self,
        student_id: UUID,
        mode: Union[str, DisplayMode],
        nickname: Optional[str] = None
    ) -> StudentPreference:
        """Switch how the student is shown to mentors from now on.

        Only the nickname mode looks at ``nickname``: it is required when no
        nickname is stored yet and is then frozen for good.
        """
        try:
            mode = DisplayMode(mode)
        except ValueError:
            raise ValidationError(f"Invalid display mode: {mode}", field="display_mode")

        preference = await self._get_or_create(StudentPreference, student_id)

        if mode == DisplayMode.NICKNAME:
            nickname = self._clean_nickname(nickname, STUDENT_NICKNAME_MAX_LENGTH)
            if nickname:
                await self._claim_nickname(StudentPreference, preference, nickname)
            elif not preference.nickname:
                raise ValidationError("Please set a nickname first", field="nickname")

        preference.display_mode = mode.value
        await self.db.commit()
        await self.db.refresh(preference)
        logger.info(f"Student {student_id} display mode set to {mode.value}")
        return preference

    async def _get_preference(self, model: Type[PreferenceModel], user_id: UUID):
        result = await self.db.execute(select(model).where(model.user_id == user_id))
        return result.scalar_one_or_none()

    async def _get_or_create(self, model: Type[PreferenceModel], user_id: UUID):
        preference = await self._get_preference(model, user_id)
        if preference:
            return preference
        try:
            return await self.insert_unique(model(user_id=user_id))
        except ConflictRetryableError:
            return await self._get_preference(model, user_id)

    async def _claim_nickname(self, model: Type[PreferenceModel], preference, nickname: str):
        """Write the nickname only while none is stored; the first writer wins"""
        if preference.nickname:
            if preference.nickname != nickname:
                raise PreferenceImmutableError(preference.nickname)
            return

        stmt = update(model).where(
            model.id == preference.id,
            or_(model.nickname.is_(None), model.nickname == "")
        ).values(nickname=nickname)
        result = await self.db.execute(stmt)
        await self.db.commit()
        await self.db.refresh(preference)

        if result.rowcount == 0 and preference.nickname != nickname:
            raise PreferenceImmutableError(preference.nickname)

    @staticmethod
    def _clean_nickname(nickname: Optional[str], max_length: int) -> str:
        nickname = (nickname or "").strip()
        if len(nickname) > max_length:
            raise ValidationError(f"Nickname must be at most {max_length} characters", field="nickname")
        return nickname
