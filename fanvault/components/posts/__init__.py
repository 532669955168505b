"""
Posts component.

Public API for post creation, deletion and redacted reads.
"""

from .component import MEDIA_BUCKET, PostService, media_type_for
from .models import CreatePostInput, MediaUpload

__all__ = [
    "PostService",
    "CreatePostInput",
    "MediaUpload",
    "MEDIA_BUCKET",
    "media_type_for",
]
