import enum

class UserRole(str, enum.Enum):
    STUDENT = "student"
    MENTOR = "mentor"

class DisplayMode(str, enum.Enum):
    ANONYMOUS = "anonymous"
    NICKNAME = "nickname"
    REAL_NAME = "real_name"

class RoomStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"
