from sqlalchemy import Column, String, Uuid, UniqueConstraint
from ..base import Base
from ..enums import RoomStatus

class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    mentor_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=RoomStatus.ACTIVE.value, index=True)

    # At most one room per mentor-student pair
    __table_args__ = (
        UniqueConstraint('mentor_id', 'student_id', name='uq_chat_room_pair'),
    )

    def has_participant(self, user_id) -> bool:
        return user_id in (self.mentor_id, self.student_id)

    def counterpart_of(self, user_id):
        return self.mentor_id if user_id == self.student_id else self.student_id
