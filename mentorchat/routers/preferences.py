# mentorchat/routers/preferences.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.deps import get_current_user, get_current_mentor, get_current_student
from ..core.security import CurrentUser
from ..schemas.preference_schemas import (
    DisplayModeUpdate, MentorNicknameUpdate, MentorPreferenceRead,
    StudentPreferenceRead, MeResponse
)
from ..services.preference_service import PreferenceService

router = APIRouter(prefix="/api/v1", tags=["Preferences"])

async def _build_me(user: CurrentUser, service: PreferenceService) -> MeResponse:
    me = MeResponse(id=user.id, role=user.role)
    if user.is_student:
        preference = await service.get_student_preference(user.id)
        me.student_preference = (
            StudentPreferenceRead(display_mode=preference.display_mode, nickname=preference.nickname)
            if preference else StudentPreferenceRead()
        )
    else:
        preference = await service.get_mentor_preference(user.id)
        me.mentor_preference = MentorPreferenceRead(nickname=preference.nickname if preference else None)
    return me

@router.get("/me", response_model=MeResponse)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current user with their own privacy settings"""
    return await _build_me(user, PreferenceService(db))

@router.get("/preferences/me", response_model=MeResponse)
async def get_my_preferences(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _build_me(user, PreferenceService(db))

@router.put("/preferences/student/display-mode", response_model=StudentPreferenceRead)
async def set_display_mode(
    request: DisplayModeUpdate,
    user: CurrentUser = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Choose how mentors see you: anonymous, nickname or real name"""
    preference = await PreferenceService(db).set_display_mode(user.id, request.display_mode, request.nickname)
    return StudentPreferenceRead(display_mode=preference.display_mode, nickname=preference.nickname)

@router.put("/preferences/mentor/nickname", response_model=MentorPreferenceRead)
async def set_mentor_nickname(
    request: MentorNicknameUpdate,
    user: CurrentUser = Depends(get_current_mentor),
    db: AsyncSession = Depends(get_db)
):
    """Set the nickname students see (one time only)"""
    preference = await PreferenceService(db).set_mentor_nickname(user.id, request.nickname)
    return MentorPreferenceRead(nickname=preference.nickname)
