from sqlalchemy import Column, Integer, String, Text, Uuid, ForeignKey, Index, UniqueConstraint
from ..base import Base
from ..profile import REAL_NAME_MAX_LENGTH

DISPLAY_NAME_MAX_LENGTH = REAL_NAME_MAX_LENGTH

class ChatMessage(Base):
    __tablename__ = "chat_messages"

    room_id = Column(Uuid(as_uuid=True), ForeignKey("chat_rooms.id"), nullable=False, index=True)
    seq = Column(Integer, nullable=False)  # 1-based position within the room
    sender_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    sender_role = Column(String(10), nullable=False)  # 'student' or 'mentor'
    body = Column(Text, nullable=False)
    display_name = Column(String(DISPLAY_NAME_MAX_LENGTH), nullable=False)  # frozen at send time
    client_message_id = Column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint('room_id', 'seq', name='uq_chat_message_room_seq'),
        UniqueConstraint('room_id', 'sender_id', 'client_message_id', name='uq_chat_message_client_id'),
        Index('idx_chat_message_room_time', 'room_id', 'created_at'),
    )
