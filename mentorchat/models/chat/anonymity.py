from sqlalchemy import Column, Integer, Uuid, UniqueConstraint, CheckConstraint
from ..base import Base

class AnonymityAssignment(Base):
    __tablename__ = "anonymity_assignments"

    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    mentor_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    number = Column(Integer, nullable=False)

    # One number per pair, and numbers never repeat within a mentor's students
    __table_args__ = (
        UniqueConstraint('student_id', 'mentor_id', name='uq_anonymity_pair'),
        UniqueConstraint('mentor_id', 'number', name='uq_anonymity_mentor_number'),
        CheckConstraint('number > 0', name='ck_anonymity_number_positive'),
    )
