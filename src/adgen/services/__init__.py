"""External service integrations."""

from .xai import XAIClient
from .storage import GCSMediaStore, MediaPersister, MediaStore

__all__ = [
    "GCSMediaStore",
    "MediaPersister",
    "MediaStore",
    "XAIClient",
]
