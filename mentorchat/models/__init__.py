# mentorchat/models/__init__.py
"""Import all models here, if needed for Alembic migration."""
from .base import Base
from .enums import UserRole, DisplayMode, RoomStatus
from .profile import Profile
from .preferences import MentorPreference, StudentPreference
from .chat.anonymity import AnonymityAssignment
from .chat.chat_room import ChatRoom
from .chat.chat_message import ChatMessage

# This ensures all models are loaded when importing models
