"""
User Model

Registered accounts and their point balance.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from photorate.config import get_settings
from photorate.database import Base


class User(Base):
    """
    Registered user.

    `points` is the user's balance in the rating economy. It is only ever
    changed with SQL-side deltas by the rating transaction, never assigned
    from a value read in Python.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    points = Column(Integer, nullable=False, default=lambda: get_settings().initial_points)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    photos = relationship("Photo", back_populates="owner")

    def __repr__(self):
        return f"<User {self.id} points={self.points}>"
