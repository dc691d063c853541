"""
Database Models

SQLAlchemy ORM models for PhotoRate.
"""

from photorate.models.user import User
from photorate.models.photo import Gender, Photo
from photorate.models.rating import Rating

__all__ = ["User", "Photo", "Gender", "Rating"]
