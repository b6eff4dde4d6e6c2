# mentorchat/services/chat/room_service.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc
import logging

from ..base_service import BaseService
from ..profile_service import ProfileService
from ...core.exceptions import ConflictRetryableError, NotFoundError, NotParticipantError
from ...core.retry import retry_read
from ...models.chat.chat_room import ChatRoom
from ...models.enums import RoomStatus, UserRole

logger = logging.getLogger(__name__)

class RoomService(BaseService[ChatRoom]):
    """The conversation directory: one room per mentor-student pair."""

    def __init__(self, db: AsyncSession):
        super().__init__(ChatRoom, db)

    async def start_or_resume_room(self, mentor_id: UUID, student_id: UUID) -> ChatRoom:
        """Get the pair's room, creating it on first contact.

        Two clients starting the same chat at once both end up with the one
        room the unique constraint let through.
        """
        profiles = ProfileService(self.db)
        if not await profiles.get_with_role(mentor_id, UserRole.MENTOR):
            raise NotFoundError("Mentor", str(mentor_id))
        if not await profiles.get_with_role(student_id, UserRole.STUDENT):
            raise NotFoundError("Student", str(student_id))

        chat_room = await self.get_room_for_pair(mentor_id, student_id)
        if chat_room:
            return chat_room

        try:
            chat_room = await self.insert_unique(ChatRoom(
                mentor_id=mentor_id,
                student_id=student_id,
                status=RoomStatus.ACTIVE.value
            ))
            logger.info(f"Chat room {chat_room.id} created for mentor {mentor_id} and student {student_id}")
            return chat_room
        except ConflictRetryableError:
            chat_room = await self.get_room_for_pair(mentor_id, student_id)
            if chat_room is None:
                raise
            logger.info(f"Resumed chat room {chat_room.id} created concurrently")
            return chat_room

    async def get_room_for_pair(self, mentor_id: UUID, student_id: UUID) -> Optional[ChatRoom]:
        return await self.get_by(mentor_id=mentor_id, student_id=student_id)

    @retry_read()
    async def get_room(self, room_id: UUID) -> Optional[ChatRoom]:
        return await self.get(room_id)

    async def get_room_for_participant(self, room_id: UUID, user_id: UUID) -> ChatRoom:
        chat_room = await self.get_room(room_id)
        if chat_room is None:
            raise NotFoundError("Chat room", str(room_id))
        if not chat_room.has_participant(user_id):
            raise NotParticipantError()
        return chat_room

    @retry_read()
    async def find_active_room_for_mentor(self, mentor_id: UUID) -> Optional[ChatRoom]:
        """Most recently started active room of a mentor"""
        stmt = select(ChatRoom).where(
            and_(
                ChatRoom.mentor_id == mentor_id,
                ChatRoom.status == RoomStatus.ACTIVE.value
            )
        ).order_by(desc(ChatRoom.created_at)).limit(1)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @retry_read()
    async def find_rooms_for_student(self, student_id: UUID) -> List[ChatRoom]:
        stmt = select(ChatRoom).where(ChatRoom.student_id == student_id).order_by(desc(ChatRoom.created_at))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @retry_read()
    async def find_rooms_for_mentor(self, mentor_id: UUID) -> List[ChatRoom]:
        stmt = select(ChatRoom).where(ChatRoom.mentor_id == mentor_id).order_by(desc(ChatRoom.created_at))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_rooms_for_user(self, user_id: UUID, role: UserRole) -> List[ChatRoom]:
        if role == UserRole.MENTOR:
            return await self.find_rooms_for_mentor(user_id)
        return await self.find_rooms_for_student(user_id)
