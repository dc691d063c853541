"""
PhotoRate Services

Business logic and external service integrations.
"""

from .storage import StorageService
from .reset import PasswordResetService

__all__ = ["StorageService", "PasswordResetService"]
