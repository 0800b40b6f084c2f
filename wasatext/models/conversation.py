# wasatext/models/conversation.py
from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship

from wasatext.database import Base
from wasatext.models.enums import ConversationType
from wasatext.models.mixins import TimestampMixin, generate_uuid, utcnow


def direct_key_for(user_a: str, user_b: str) -> str:
    """Order-independent key identifying the direct conversation of a pair"""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


class Conversation(Base, TimestampMixin):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=generate_uuid, index=True)
    type = Column(SAEnum(ConversationType), nullable=False, index=True)
    name = Column(String(50), nullable=True)
    photo_url = Column(String(255), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    last_message_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Only set for direct conversations; the unique index keeps one per pair
    direct_key = Column(String(80), nullable=True, unique=True)

    participants = relationship("ConversationParticipant", back_populates="conversation")
    creator = relationship("User")

    __table_args__ = (
        CheckConstraint(
            "(type = 'DIRECT' AND direct_key IS NOT NULL) OR (type = 'GROUP' AND name IS NOT NULL)",
            name="check_conversation_kind",
        ),
    )

    @property
    def is_group(self):
        return self.type == ConversationType.GROUP

    def __repr__(self):
        return f"<Conversation {self.id} ({self.type.value})>"


class ConversationParticipant(Base):
    __tablename__ = "conversation_participants"

    conversation_id = Column(String(36), ForeignKey("conversations.id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True, index=True)
    joined_at = Column(DateTime, default=utcnow, nullable=False)
    last_read_at = Column(DateTime, default=utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="participants")
    user = relationship("User")

    def __repr__(self):
        return f"<ConversationParticipant {self.user_id} in {self.conversation_id}>"
