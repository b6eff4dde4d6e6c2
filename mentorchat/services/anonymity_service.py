# mentorchat/services/anonymity_service.py
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import logging

from .base_service import BaseService
from ..core.config import settings
from ..core.exceptions import ConflictRetryableError, TransientIOError
from ..models.chat.anonymity import AnonymityAssignment

logger = logging.getLogger(__name__)

class AnonymityService(BaseService[AnonymityAssignment]):
    """The anonymity ledger.

    Each (student, mentor) pair gets one positive number, allocated lazily as
    the next unused number among that mentor's students and never changed
    afterwards. Allocation is an insert guarded by two unique constraints:

    * (student_id, mentor_id): a concurrent first call for the same pair
      loses, re-reads and returns the winner's number.
    * (mentor_id, number): two different students racing for the same number
      under one mentor; the loser tries the next number.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(AnonymityAssignment, db)

    async def get_assignment(self, student_id: UUID, mentor_id: UUID):
        return await self.get_by(student_id=student_id, mentor_id=mentor_id)

    async def resolve_anonymous_number(self, student_id: UUID, mentor_id: UUID) -> int:
        """Return the pair's anonymous number, allocating it on first use"""
        assignment = await self.get_assignment(student_id, mentor_id)
        if assignment:
            return assignment.number

        for attempt in range(settings.max_allocation_attempts):
            number = await self._next_number(mentor_id)
            try:
                assignment = await self.insert_unique(AnonymityAssignment(
                    student_id=student_id,
                    mentor_id=mentor_id,
                    number=number
                ))
                logger.info(f"Allocated anonymous number {number} for student {student_id} with mentor {mentor_id}")
                return assignment.number
            except ConflictRetryableError:
                winner = await self.get_assignment(student_id, mentor_id)
                if winner:
                    logger.info(f"Lost allocation race for pair ({student_id}, {mentor_id}), using {winner.number}")
                    return winner.number
                logger.debug(f"Anonymous number {number} for mentor {mentor_id} taken, retrying")

        raise TransientIOError(f"Could not allocate an anonymous number for mentor {mentor_id}")

    async def _next_number(self, mentor_id: UUID) -> int:
        stmt = select(func.coalesce(func.max(AnonymityAssignment.number), 0)).where(
            AnonymityAssignment.mentor_id == mentor_id
        )
        result = await self.db.execute(stmt)
        return result.scalar() + 1
