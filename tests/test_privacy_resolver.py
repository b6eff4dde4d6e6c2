import pytest

from conftest import new_user, register
from mentorchat.models.enums import DisplayMode, UserRole
from mentorchat.services.preference_service import PreferenceService
from mentorchat.services.privacy_resolver import (
    MENTOR_PLACEHOLDER, STUDENT_PLACEHOLDER, PrivacyResolver, StudentDisplay
)


@pytest.mark.asyncio
async def test_anonymous_student_is_numbered_per_mentor(session, mentor, student, other_student):
    resolver = PrivacyResolver(session)

    assert await resolver.resolve_display_name(student.id, UserRole.STUDENT, mentor.id) == "Anonymous 1"
    assert await resolver.resolve_display_name(other_student.id, UserRole.STUDENT, mentor.id) == "Anonymous 2"
    assert await resolver.resolve_display_name(student.id, "student", mentor.id) == "Anonymous 1"


@pytest.mark.asyncio
async def test_nickname_mode_shows_the_nickname(session, mentor, student):
    await PreferenceService(session).set_display_mode(student.id, DisplayMode.NICKNAME, "Bluebird")

    name = await PrivacyResolver(session).resolve_display_name(student.id, UserRole.STUDENT, mentor.id)

    assert name == "Bluebird"


@pytest.mark.asyncio
async def test_real_name_mode_shows_the_profile_name(session, mentor, student):
    await PreferenceService(session).set_display_mode(student.id, DisplayMode.REAL_NAME)

    name = await PrivacyResolver(session).resolve_display_name(student.id, UserRole.STUDENT, mentor.id)

    assert name == "Alex Chen"


@pytest.mark.asyncio
async def test_real_name_mode_without_a_name_uses_placeholder(session, mentor):
    nameless = await register(new_user(UserRole.STUDENT))
    await PreferenceService(session).set_display_mode(nameless.id, DisplayMode.REAL_NAME)

    name = await PrivacyResolver(session).resolve_display_name(nameless.id, UserRole.STUDENT, mentor.id)

    assert name == STUDENT_PLACEHOLDER


@pytest.mark.asyncio
async def test_mentor_is_shown_by_nickname_only(session, mentor, student):
    resolver = PrivacyResolver(session)
    assert await resolver.resolve_display_name(mentor.id, UserRole.MENTOR, student.id) == MENTOR_PLACEHOLDER

    await PreferenceService(session).set_mentor_nickname(mentor.id, "Koda")

    assert await resolver.resolve_display_name(mentor.id, UserRole.MENTOR, student.id) == "Koda"


@pytest.mark.asyncio
async def test_student_display_defaults(session, student):
    display = await PrivacyResolver(session).student_display(student.id)

    assert display == StudentDisplay(mode=DisplayMode.ANONYMOUS, nickname=None)
