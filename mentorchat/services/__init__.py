from .base_service import BaseService
from .anonymity_service import AnonymityService
from .preference_service import PreferenceService
from .privacy_resolver import PrivacyResolver
from .profile_service import ProfileService

__all__ = [
    "BaseService",
    "AnonymityService",
    "PreferenceService",
    "PrivacyResolver",
    "ProfileService",
]
