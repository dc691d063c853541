"""
Photo Model

Uploaded user photos shown to other raters.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from photorate.database import Base


class Gender(str, Enum):
    """Demographic tag values."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Photo(Base):
    """
    Uploaded photo model.

    Each photo carries the demographic tags its owner chose on upload.
    Only active photos are served to raters, and only the owner can
    change the active flag.
    """

    __tablename__ = "photos"
    __table_args__ = (CheckConstraint("age > 0", name="ck_photo_age_positive"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # File info
    s3_key = Column(Text, nullable=False)
    original_filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=True)

    # Demographics
    gender = Column(String(20), nullable=False, index=True)
    age = Column(Integer, nullable=False)

    # Visibility
    is_active = Column(Boolean, default=False, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="photos")
    ratings = relationship("Rating", back_populates="photo")

    def __repr__(self):
        return f"<Photo {self.id} owner={self.user_id} active={self.is_active}>"
