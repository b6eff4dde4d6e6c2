import asyncio

import pytest
from sqlalchemy import select, func

from conftest import new_user, register
from mentorchat.core.database import AsyncSessionLocal
from mentorchat.models.chat.anonymity import AnonymityAssignment
from mentorchat.models.enums import UserRole
from mentorchat.services.anonymity_service import AnonymityService


async def _resolve(student_id, mentor_id) -> int:
    async with AsyncSessionLocal() as db:
        return await AnonymityService(db).resolve_anonymous_number(student_id, mentor_id)


async def _assignment_count(student_id, mentor_id) -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(func.count()).select_from(AnonymityAssignment).where(
                AnonymityAssignment.student_id == student_id,
                AnonymityAssignment.mentor_id == mentor_id
            )
        )
        return result.scalar()


@pytest.mark.asyncio
async def test_first_call_allocates_one_and_repeats_are_stable(session, mentor, student):
    service = AnonymityService(session)

    first = await service.resolve_anonymous_number(student.id, mentor.id)
    second = await service.resolve_anonymous_number(student.id, mentor.id)

    assert first == 1
    assert second == first
    assert await _assignment_count(student.id, mentor.id) == 1


@pytest.mark.asyncio
async def test_students_of_one_mentor_get_distinct_numbers(session, mentor, student, other_student):
    service = AnonymityService(session)

    assert await service.resolve_anonymous_number(student.id, mentor.id) == 1
    assert await service.resolve_anonymous_number(other_student.id, mentor.id) == 2
    assert await service.resolve_anonymous_number(student.id, mentor.id) == 1


@pytest.mark.asyncio
async def test_numbers_are_independent_per_mentor(session, mentor, other_mentor, student, other_student):
    service = AnonymityService(session)

    await service.resolve_anonymous_number(other_student.id, mentor.id)
    assert await service.resolve_anonymous_number(student.id, mentor.id) == 2
    # numbering starts over under another mentor
    assert await service.resolve_anonymous_number(student.id, other_mentor.id) == 1


@pytest.mark.asyncio
async def test_concurrent_first_calls_agree_on_one_number(mentor, student):
    numbers = await asyncio.gather(*[_resolve(student.id, mentor.id) for _ in range(8)])

    assert set(numbers) == {1}
    assert await _assignment_count(student.id, mentor.id) == 1


@pytest.mark.asyncio
async def test_concurrent_students_never_share_a_number(mentor):
    students = [await register(new_user(UserRole.STUDENT)) for _ in range(5)]

    numbers = await asyncio.gather(*[_resolve(s.id, mentor.id) for s in students])

    assert sorted(numbers) == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_get_assignment_is_empty_before_first_use(session, mentor, student):
    assert await AnonymityService(session).get_assignment(student.id, mentor.id) is None
