# wasatext/services/reaction_service.py
import logging
from typing import Optional, Dict, Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wasatext.errors import ConflictError, InternalError, NotFoundError, UnauthorizedError
from wasatext.models.message import Message
from wasatext.models.mixins import generate_uuid, utcnow
from wasatext.models.reaction import MessageReaction
from wasatext.services.access_policy import AccessPolicy
from wasatext.services.validators import validate_emoticon

logger = logging.getLogger(__name__)


def describe_reaction(reaction: MessageReaction) -> Dict[str, Any]:
    """Reaction fields plus the reacting user's username"""
    return {
        "id": reaction.id,
        "message_id": reaction.message_id,
        "user_id": reaction.user_id,
        "username": reaction.user.username if reaction.user else None,
        "emoticon": reaction.emoticon,
        "created_at": reaction.created_at,
    }


class ReactionService:
    """Service for emoji reactions on messages"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessPolicy(db)

    def get_reaction(self, reaction_id: str) -> Optional[MessageReaction]:
        return self.db.query(MessageReaction).filter(MessageReaction.id == reaction_id).first()

    def _get_user_reaction(self, message_id: str, user_id: str) -> Optional[MessageReaction]:
        return self.db.query(MessageReaction).filter(
            MessageReaction.message_id == message_id,
            MessageReaction.user_id == user_id
        ).first()

    def react(self, message_id: str, user_id: str, emoticon: str) -> Dict[str, Any]:
        """
        React to a message, replacing the user's previous reaction if any.

        The replaced reaction keeps its id; only the emoticon and timestamp
        change.
        """
        validate_emoticon(emoticon)
        message = self.db.query(Message).filter(Message.id == message_id).first()
        if not message:
            raise NotFoundError("Message not found")
        self.access.require_participant(message.conversation_id, user_id, "react in")

        now = utcnow()
        reaction = self._get_user_reaction(message_id, user_id)
        if reaction:
            reaction.emoticon = emoticon
            reaction.created_at = now
            self._commit("Failed to update reaction")
        else:
            reaction = self._insert(message_id, user_id, emoticon, now)

        self.db.refresh(reaction)
        return describe_reaction(reaction)

    def _insert(self, message_id: str, user_id: str, emoticon: str, now) -> MessageReaction:
        reaction = MessageReaction(
            id=generate_uuid(),
            message_id=message_id,
            user_id=user_id,
            emoticon=emoticon,
            created_at=now,
        )
        try:
            self.db.add(reaction)
            self.db.commit()
            return reaction
        except IntegrityError:
            # A concurrent react by the same user won the insert; update theirs
            self.db.rollback()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create reaction on {message_id}: {str(e)}")
            raise InternalError("Failed to create reaction")

        existing = self._get_user_reaction(message_id, user_id)
        if not existing:
            raise ConflictError("Reaction could not be saved")
        existing.emoticon = emoticon
        existing.created_at = now
        self._commit("Failed to update reaction")
        return existing

    def unreact(self, reaction_id: str, user_id: str, message_id: Optional[str] = None) -> None:
        """
        Remove a reaction owned by the user.

        Existence is checked before ownership so a missing reaction is
        reported as NotFoundError and someone else's as UnauthorizedError.
        """
        reaction = self.get_reaction(reaction_id)
        if not reaction or (message_id is not None and reaction.message_id != message_id):
            raise NotFoundError("Reaction not found")
        if not self.access.is_reaction_owner(reaction_id, user_id):
            raise UnauthorizedError("You can only remove your own reactions")

        self.db.delete(reaction)
        self._commit("Failed to delete reaction")
        logger.info(f"Reaction {reaction_id} removed by {user_id}")

    def _commit(self, failure_message: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure_message}: {str(e)}")
            raise InternalError(failure_message)
