import uuid

import pytest

from conftest import new_user, register
from mentorchat.core.security import identity_provider
from mentorchat.models.chat.chat_message import ChatMessage
from mentorchat.models.enums import UserRole
from mentorchat.models.profile import Profile, REAL_NAME_MAX_LENGTH
from mentorchat.services.chat.room_service import RoomService
from mentorchat.services.profile_service import ProfileService


def test_token_round_trip():
    user_id = uuid.uuid4()
    token = identity_provider.create_access_token(user_id, UserRole.MENTOR, "Dr. Maria Lopez")

    user = identity_provider.get_current_user(token)

    assert user.id == user_id
    assert user.is_mentor
    assert user.name == "Dr. Maria Lopez"


def test_invalid_tokens_resolve_to_nobody():
    assert identity_provider.get_current_user(None) is None
    assert identity_provider.get_current_user("not-a-token") is None


def test_overlong_names_are_cut_to_the_profile_limit():
    token = identity_provider.create_access_token(uuid.uuid4(), UserRole.STUDENT, "  " + "a" * 250)

    user = identity_provider.get_current_user(token)

    assert user.name == "a" * REAL_NAME_MAX_LENGTH


def test_display_name_column_holds_any_real_name():
    real_name_length = Profile.__table__.c.real_name.type.length
    display_name_length = ChatMessage.__table__.c.display_name.type.length

    assert real_name_length == REAL_NAME_MAX_LENGTH
    assert display_name_length >= real_name_length


@pytest.mark.asyncio
async def test_profile_follows_the_role_in_the_token(session, mentor):
    user = await register(new_user(UserRole.MENTOR, "Alex Chen"))
    user.role = UserRole.STUDENT

    profile = await ProfileService(session).sync_profile(user)
    assert profile.role == UserRole.STUDENT.value

    chat_room = await RoomService(session).start_or_resume_room(mentor.id, user.id)
    assert chat_room.student_id == user.id


@pytest.mark.asyncio
async def test_profile_name_is_refreshed(session):
    user = await register(new_user(UserRole.STUDENT, "Alex Chen"))
    user.name = "Alexandra Chen"

    profile = await ProfileService(session).sync_profile(user)

    assert profile.real_name == "Alexandra Chen"
