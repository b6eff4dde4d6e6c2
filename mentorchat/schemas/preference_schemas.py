# mentorchat/schemas/preference_schemas.py
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from ..models.enums import DisplayMode, UserRole

class DisplayModeUpdate(BaseModel):
    # Checked by the service so that bad values surface as ValidationError
    display_mode: str
    nickname: Optional[str] = None

class MentorNicknameUpdate(BaseModel):
    nickname: str

class StudentPreferenceRead(BaseModel):
    display_mode: DisplayMode = DisplayMode.ANONYMOUS
    nickname: Optional[str] = None

class MentorPreferenceRead(BaseModel):
    nickname: Optional[str] = None

class MeResponse(BaseModel):
    id: UUID
    role: UserRole
    student_preference: Optional[StudentPreferenceRead] = None
    mentor_preference: Optional[MentorPreferenceRead] = None
