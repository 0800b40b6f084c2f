# wasatext/models/message.py
from sqlalchemy import Boolean, Column, Integer, String, Text, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from wasatext.database import Base
from wasatext.models.mixins import TimestampMixin, generate_uuid


class Message(Base, TimestampMixin):
    __tablename__ = "messages"

    # Insertion order, used to break ties between equal timestamps
    sequence = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=generate_uuid, index=True)

    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    photo_url = Column(String(255), nullable=True)
    reply_to_id = Column(String(36), ForeignKey("messages.id"), nullable=True)
    forwarded = Column(Boolean, default=False, nullable=False)

    sender = relationship("User")
    reactions = relationship("MessageReaction", back_populates="message", order_by="MessageReaction.created_at")

    __table_args__ = (
        CheckConstraint(
            "(content IS NOT NULL AND photo_url IS NULL) OR (content IS NULL AND photo_url IS NOT NULL)",
            name="check_content_or_photo",
        ),
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    @property
    def has_photo(self):
        return self.photo_url is not None

    def __repr__(self):
        return f"<Message {self.id} in Conversation {self.conversation_id}>"
