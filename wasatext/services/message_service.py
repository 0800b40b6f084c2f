# wasatext/services/message_service.py
import logging
from typing import List, Optional, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from wasatext.errors import InternalError, InvalidInputError, NotFoundError, UnauthorizedError
from wasatext.models.conversation import Conversation
from wasatext.models.message import Message
from wasatext.models.mixins import generate_uuid, utcnow
from wasatext.models.reaction import MessageReaction
from wasatext.services.access_policy import AccessPolicy
from wasatext.services.reaction_service import describe_reaction
from wasatext.services.validators import validate_message_body

logger = logging.getLogger(__name__)


class MessageService:
    """Service for handling message operations."""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessPolicy(db)

    def get(self, message_id: str) -> Message:
        """Retrieve a message by its ID, raising NotFoundError if absent."""
        message = self.db.query(Message).filter(Message.id == message_id).first()
        if not message:
            raise NotFoundError("Message not found")
        return message

    def send(
        self,
        conversation_id: str,
        sender_id: str,
        content: Optional[str] = None,
        photo_url: Optional[str] = None,
        reply_to_id: Optional[str] = None
    ) -> Message:
        """
        Send a text or photo message into a conversation.

        Args:
            conversation_id: ID of the conversation.
            sender_id: ID of the sending user, who must be a participant.
            content: Message text; mutually exclusive with photo_url.
            photo_url: URL of an already stored photo.
            reply_to_id: Optional message in the same conversation being replied to.

        Returns:
            The created Message. The conversation's last_message_at is bumped
            in the same transaction.
        """
        validate_message_body(content, photo_url)
        self.access.require_participant(conversation_id, sender_id, "send messages to")

        if reply_to_id is not None:
            self.check_reply(conversation_id, reply_to_id)

        message = self._insert(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            photo_url=photo_url,
            reply_to_id=reply_to_id,
            forwarded=False,
        )
        logger.info(f"Message {message.id} sent to conversation {conversation_id}")
        return message

    def check_reply(self, conversation_id: str, reply_to_id: str) -> Message:
        """The replied-to message must exist and belong to the same conversation"""
        replied = self.db.query(Message).filter(Message.id == reply_to_id).first()
        if not replied:
            raise NotFoundError("Message being replied to not found")
        if replied.conversation_id != conversation_id:
            raise InvalidInputError("Cannot reply to a message from another conversation")
        return replied

    def forward(self, message_id: str, target_conversation_id: str, forwarder_id: str) -> Message:
        """
        Copy a message into another conversation as a new forwarded message.

        The forwarder must participate in both conversations. The original
        message is left untouched.
        """
        source = self.get(message_id)
        self.access.require_participant(source.conversation_id, forwarder_id, "forward messages from")
        self.access.require_participant(target_conversation_id, forwarder_id, "forward messages to")

        message = self._insert(
            conversation_id=target_conversation_id,
            sender_id=forwarder_id,
            content=source.content,
            photo_url=source.photo_url,
            reply_to_id=None,
            forwarded=True,
        )
        logger.info(f"Message {message_id} forwarded to {target_conversation_id} as {message.id}")
        return message

    def _insert(self, conversation_id: str, **fields) -> Message:
        """Insert a message and bump the conversation's activity in one commit"""
        conversation = self.db.query(Conversation).filter(Conversation.id == conversation_id).first()
        if not conversation:
            raise NotFoundError("Conversation not found")

        now = utcnow()
        message = Message(id=generate_uuid(), conversation_id=conversation_id, created_at=now, **fields)
        if conversation.last_message_at is None or now > conversation.last_message_at:
            conversation.last_message_at = now

        try:
            self.db.add(message)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create message in {conversation_id}: {str(e)}")
            raise InternalError("Failed to create message")

        self.db.refresh(message)
        return message

    def delete(self, message_id: str, user_id: str) -> None:
        """
        Delete a message sent by the user.

        Its reactions are deleted with it. Replies to it are kept and lose
        their reply_to_id.
        """
        message = self.get(message_id)
        if not self.access.is_sender(message_id, user_id):
            raise UnauthorizedError("Only the sender can delete this message")

        try:
            for reaction in self.db.query(MessageReaction).filter(MessageReaction.message_id == message_id).all():
                self.db.delete(reaction)
            for reply in self.db.query(Message).filter(Message.reply_to_id == message_id).all():
                reply.reply_to_id = None
            self.db.delete(message)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete message {message_id}: {str(e)}")
            raise InternalError("Failed to delete message")

        logger.info(f"Message {message_id} deleted by {user_id}")

    def get_conversation_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        """
        Get every message of a conversation, oldest first.

        Messages sharing a timestamp keep insertion order. Each one carries
        its current reactions.
        """
        messages = self.db.query(Message).options(
            joinedload(Message.sender),
            selectinload(Message.reactions).joinedload(MessageReaction.user)
        ).filter(
            Message.conversation_id == conversation_id
        ).order_by(Message.created_at, Message.sequence).all()
        return [self.describe_message(message) for message in messages]

    def list_for_participant(self, conversation_id: str, user_id: str) -> List[Dict[str, Any]]:
        """get_conversation_messages gated on the caller's membership"""
        self.access.require_participant(conversation_id, user_id, "view")
        return self.get_conversation_messages(conversation_id)

    def describe_message(self, message: Message) -> Dict[str, Any]:
        """Message fields with the sender's username and its reactions"""
        return {
            "id": message.id,
            "conversation_id": message.conversation_id,
            "sender_id": message.sender_id,
            "sender_username": message.sender.username if message.sender else None,
            "content": message.content,
            "photo_url": message.photo_url,
            "reply_to_id": message.reply_to_id,
            "forwarded": message.forwarded,
            "created_at": message.created_at,
            "reactions": [describe_reaction(reaction) for reaction in message.reactions],
        }
