# mentorchat/core/security.py
"""Identity Provider adapter.

Accounts and credentials live in an external Identity Provider. This module
only verifies the bearer tokens it issues and turns them into a
``CurrentUser`` value that is resolved once per request or socket and passed
explicitly from then on.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from jose import JWTError, jwt
from pydantic import BaseModel, Field, field_validator, ValidationError as PydanticValidationError

from .config import settings
from .exceptions import NotAuthenticatedError
from ..models.enums import UserRole
from ..models.profile import REAL_NAME_MAX_LENGTH

logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    id: UUID
    role: UserRole
    name: Optional[str] = Field(default=None, max_length=REAL_NAME_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def fit_name(cls, value):
        """Provider names are trimmed and cut to what a profile can store"""
        if not isinstance(value, str):
            return value
        return value.strip()[:REAL_NAME_MAX_LENGTH] or None

    @property
    def is_mentor(self) -> bool:
        return self.role == UserRole.MENTOR

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT


class TokenIdentityProvider:
    """Verifies JWTs signed by the Identity Provider."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def get_current_user(self, token: Optional[str]) -> Optional[CurrentUser]:
        """Return the user a token belongs to, or None if it does not verify."""
        if not token:
            return None
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return CurrentUser(id=claims.get("sub"), role=claims.get("role"), name=claims.get("name"))
        except (JWTError, PydanticValidationError) as e:
            logger.info(f"Rejected identity token: {e}")
            return None

    def require_user(self, token: Optional[str]) -> CurrentUser:
        user = self.get_current_user(token)
        if user is None:
            raise NotAuthenticatedError()
        return user

    def create_access_token(
        self,
        user_id: UUID,
        role: UserRole,
        name: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Mint a token in the Identity Provider's format (development and tests)."""
        now = datetime.now(timezone.utc)
        to_encode: Dict[str, Any] = {
            "sub": str(user_id),
            "role": UserRole(role).value,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=1)),
        }
        if name:
            to_encode["name"] = name
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)


identity_provider = TokenIdentityProvider(settings.jwt_secret_key, settings.jwt_algorithm)
