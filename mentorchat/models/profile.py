from sqlalchemy import Column, String
from .base import Base

# Longest real name kept; display names on messages are sized to hold it
REAL_NAME_MAX_LENGTH = 100

class Profile(Base):
    """Local projection of an Identity Provider account.

    ``id`` is the provider's user id and is always set explicitly.
    """
    __tablename__ = "profiles"

    role = Column(String(10), nullable=False, index=True)  # 'student' or 'mentor'
    real_name = Column(String(REAL_NAME_MAX_LENGTH), nullable=True)
