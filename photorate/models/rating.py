"""
Rating Model

Append-only ledger of (photo, rater) pairs.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from photorate.database import Base


class Rating(Base):
    """
    A completed rating.

    The composite primary key is what guarantees a rater can rate a given
    photo at most once, including under concurrent requests.
    """

    __tablename__ = "ratings"

    photo_id = Column(Uuid, ForeignKey("photos.id"), primary_key=True)
    rater_id = Column(Uuid, ForeignKey("users.id"), primary_key=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    photo = relationship("Photo", back_populates="ratings")

    def __repr__(self):
        return f"<Rating photo={self.photo_id} rater={self.rater_id}>"
