# wasatext/models/user.py
from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from wasatext.database import Base
from wasatext.models.mixins import TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid, index=True)
    username = Column(String(16), unique=True, index=True, nullable=False)
    photo_url = Column(String(255), nullable=True)

    sessions = relationship("UserSession", back_populates="user")

    def __repr__(self):
        return f"<User {self.id} - {self.username}>"


class UserSession(Base, TimestampMixin):
    """Opaque bearer token issued at login; a user may hold many"""
    __tablename__ = "user_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession for {self.user_id}>"
