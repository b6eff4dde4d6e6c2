from sqlalchemy import Column, String, Uuid
from .base import Base
from .enums import DisplayMode

MENTOR_NICKNAME_MAX_LENGTH = 30
STUDENT_NICKNAME_MAX_LENGTH = 20

class MentorPreference(Base):
    __tablename__ = "mentor_preferences"

    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    # Written once; see PreferenceService.set_mentor_nickname
    nickname = Column(String(MENTOR_NICKNAME_MAX_LENGTH), nullable=True)

class StudentPreference(Base):
    __tablename__ = "student_preferences"

    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    display_mode = Column(String(20), nullable=False, default=DisplayMode.ANONYMOUS.value)
    nickname = Column(String(STUDENT_NICKNAME_MAX_LENGTH), nullable=True)
