"""
SQLAlchemy Models for CivicDesk.
"""

from civicdesk.models.base import Base, TimeStampedModel
from civicdesk.models.user import User

__all__ = [
    "Base",
    "TimeStampedModel",
    "User",
]
