# mentorchat/services/chat/message_service.py
from datetime import timezone
from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc
import logging

from .broker import InMemoryRoomBroker, room_broker
from .room_service import RoomService
from ..base_service import BaseService
from ..privacy_resolver import PrivacyResolver
from ...core.config import settings
from ...core.exceptions import (
    ConflictRetryableError, NotParticipantError, TransientIOError, ValidationError
)
from ...core.retry import retry_read
from ...models.base import utcnow
from ...models.chat.chat_message import ChatMessage
from ...models.enums import UserRole
from ...schemas.chat_schemas import MAX_MESSAGE_LENGTH, MessageRead

logger = logging.getLogger(__name__)

class MessageService(BaseService[ChatMessage]):
    """Append-only message log of a room plus publication to its viewers."""

    def __init__(self, db: AsyncSession, broker: Optional[InMemoryRoomBroker] = None):
        super().__init__(ChatMessage, db)
        self.broker = broker or room_broker

    async def send_message(
        self,
        room_id: UUID,
        sender_id: UUID,
        sender_role: UserRole,
        body: str,
        client_message_id: Optional[str] = None
    ) -> ChatMessage:
        """Store a message and notify everyone viewing the room.

        The display name is resolved here and frozen on the row. Sends are
        never retried internally; a caller that may resubmit should pass
        ``client_message_id`` so that a repeat returns the stored message.
        """
        text = (body or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty", field="body")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters", field="body")

        sender_role = UserRole(sender_role)
        chat_room = await RoomService(self.db).get_room_for_participant(room_id, sender_id)
        # plain values only from here on: a lost insert race rolls the session back
        participant_id = chat_room.mentor_id if sender_role == UserRole.MENTOR else chat_room.student_id
        counterpart_id = chat_room.counterpart_of(sender_id)
        if participant_id != sender_id:
            raise NotParticipantError(f"You are not the {sender_role.value} of this room")

        if client_message_id:
            existing = await self._get_by_client_id(room_id, sender_id, client_message_id)
            if existing:
                logger.info(f"Duplicate submission {client_message_id}, returning message {existing.id}")
                return existing

        display_name = await PrivacyResolver(self.db).resolve_display_name(sender_id, sender_role, counterpart_id)

        message = None
        for attempt in range(settings.max_allocation_attempts):
            seq, created_at = await self._next_position(room_id)
            try:
                message = await self.insert_unique(ChatMessage(
                    room_id=room_id,
                    seq=seq,
                    sender_id=sender_id,
                    sender_role=sender_role.value,
                    body=text,
                    display_name=display_name,
                    client_message_id=client_message_id,
                    created_at=created_at
                ))
                break
            except ConflictRetryableError:
                if client_message_id:
                    existing = await self._get_by_client_id(room_id, sender_id, client_message_id)
                    if existing:
                        return existing
                logger.debug(f"Position {seq} in room {room_id} taken, retrying")

        if message is None:
            raise TransientIOError(f"Could not append to room {room_id}")

        logger.info(f"Message {message.id} stored in room {room_id} at position {message.seq}")
        await self._publish(message)
        return message

    @retry_read()
    async def load_history(self, room_id: UUID, after_seq: int = 0) -> List[ChatMessage]:
        """Complete ordered history of a room, optionally only past ``after_seq``"""
        stmt = select(ChatMessage).where(
            and_(
                ChatMessage.room_id == room_id,
                ChatMessage.seq > after_seq
            )
        ).order_by(ChatMessage.seq)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_last_message(self, room_id: UUID) -> Optional[ChatMessage]:
        stmt = select(ChatMessage).where(ChatMessage.room_id == room_id).order_by(desc(ChatMessage.seq)).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _next_position(self, room_id: UUID) -> Tuple[int, object]:
        last = await self.get_last_message(room_id)
        now = utcnow()
        if last is None:
            return 1, now

        last_created = last.created_at
        if last_created.tzinfo is None:
            last_created = last_created.replace(tzinfo=timezone.utc)
        # created_at never goes backwards within a room, even across clock skew
        return last.seq + 1, max(now, last_created)

    async def _get_by_client_id(self, room_id: UUID, sender_id: UUID, client_message_id: str):
        return await self.get_by(room_id=room_id, sender_id=sender_id, client_message_id=client_message_id)

    async def _publish(self, message: ChatMessage):
        try:
            await self.broker.publish(message.room_id, MessageRead.model_validate(message))
        except TransientIOError as e:
            # the message is stored; viewers pick it up from history on reconnect
            logger.error(f"Could not notify viewers of message {message.id}: {e}")
