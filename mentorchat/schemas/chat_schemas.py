# mentorchat/schemas/chat_schemas.py
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from ..models.enums import UserRole

MAX_MESSAGE_LENGTH = 4000

class StartRoomRequest(BaseModel):
    counterpart_id: UUID

class SendMessageRequest(BaseModel):
    body: str = Field(..., max_length=MAX_MESSAGE_LENGTH)
    client_message_id: Optional[str] = Field(default=None, max_length=64)

class MessageRead(BaseModel):
    """A stored message as delivered to viewers and clients."""
    id: UUID
    room_id: UUID
    seq: int
    sender_id: UUID
    sender_role: UserRole
    body: str
    display_name: str
    created_at: datetime

    class Config:
        from_attributes = True

class RoomRead(BaseModel):
    id: UUID
    mentor_id: UUID
    student_id: UUID
    status: str
    created_at: datetime

    class Config:
        from_attributes = True

class RoomSummary(RoomRead):
    counterpart_id: UUID
    counterpart_label: str

class RoomListResponse(BaseModel):
    rooms: List[RoomSummary]
    total_rooms: int

class ChatHistoryResponse(BaseModel):
    room_id: UUID
    messages: List[MessageRead]
    total_messages: int

class MentorListing(BaseModel):
    mentor_id: UUID
    nickname: str
