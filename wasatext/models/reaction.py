# wasatext/models/reaction.py
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from wasatext.database import Base
from wasatext.models.mixins import TimestampMixin, generate_uuid


class MessageReaction(Base, TimestampMixin):
    """Emoji reaction; a user holds at most one per message"""
    __tablename__ = "message_reactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    message_id = Column(String(36), ForeignKey("messages.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    emoticon = Column(String(10), nullable=False)

    message = relationship("Message", back_populates="reactions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uix_message_user_reaction"),
    )

    def __repr__(self):
        return f"<MessageReaction {self.emoticon} by {self.user_id} on {self.message_id}>"
