"""
Profiles component.

Public API for profile registration, editing and creator discovery.
"""

from .component import AVATAR_BUCKET, BANNER_BUCKET, ProfileService
from .models import UpdateProfileInput

__all__ = ["ProfileService", "UpdateProfileInput", "AVATAR_BUCKET", "BANNER_BUCKET"]
