# wasatext/services/access_policy.py
from sqlalchemy.orm import Session

from wasatext.errors import UnauthorizedError
from wasatext.models.conversation import ConversationParticipant
from wasatext.models.message import Message
from wasatext.models.reaction import MessageReaction


class AccessPolicy:
    """
    Authorization predicates shared by the conversation, message and
    reaction services.

    Every check hits the store; membership can change between two calls so
    nothing is cached.
    """

    def __init__(self, db: Session):
        self.db = db

    def is_participant(self, conversation_id: str, user_id: str) -> bool:
        """Check if a user is a participant of a conversation"""
        return self.db.query(ConversationParticipant).filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id
        ).first() is not None

    def is_sender(self, message_id: str, user_id: str) -> bool:
        """Check if a user sent a message"""
        return self.db.query(Message).filter(
            Message.id == message_id,
            Message.sender_id == user_id
        ).first() is not None

    def is_reaction_owner(self, reaction_id: str, user_id: str) -> bool:
        """Check if a user owns a reaction"""
        return self.db.query(MessageReaction).filter(
            MessageReaction.id == reaction_id,
            MessageReaction.user_id == user_id
        ).first() is not None

    def require_participant(self, conversation_id: str, user_id: str, action: str = "access") -> None:
        """
        Raise UnauthorizedError unless the user participates in the conversation.

        A conversation that does not exist fails the same way, so callers
        outside it cannot probe for ids.
        """
        if not self.is_participant(conversation_id, user_id):
            raise UnauthorizedError(f"You are not allowed to {action} this conversation")
