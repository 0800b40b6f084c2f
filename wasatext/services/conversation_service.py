# wasatext/services/conversation_service.py
import logging
from typing import List, Optional, Dict, Any

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wasatext.config import get_settings
from wasatext.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)
from wasatext.models.conversation import Conversation, ConversationParticipant, direct_key_for
from wasatext.models.enums import ConversationType
from wasatext.models.message import Message
from wasatext.models.mixins import generate_uuid, utcnow
from wasatext.models.user import User
from wasatext.services.access_policy import AccessPolicy
from wasatext.services.validators import validate_group_name

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for direct and group conversations, membership and read cursors"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessPolicy(db)
        self.settings = get_settings()

    # --- Lookups ---

    def get_conversation_row(self, conversation_id: str) -> Optional[Conversation]:
        """Get a conversation by ID without any access check"""
        return self.db.query(Conversation).filter(Conversation.id == conversation_id).first()

    def _get_direct_by_key(self, direct_key: str) -> Optional[Conversation]:
        return self.db.query(Conversation).filter(
            Conversation.type == ConversationType.DIRECT,
            Conversation.direct_key == direct_key
        ).first()

    def _get_participant(self, conversation_id: str, user_id: str) -> Optional[ConversationParticipant]:
        return self.db.query(ConversationParticipant).filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id
        ).first()

    def get_participants(self, conversation_id: str) -> List[User]:
        """Get the users participating in a conversation, in join order"""
        return self.db.query(User).join(
            ConversationParticipant, ConversationParticipant.user_id == User.id
        ).filter(
            ConversationParticipant.conversation_id == conversation_id
        ).order_by(ConversationParticipant.joined_at, User.username).all()

    def count_participants(self, conversation_id: str) -> int:
        return self.db.query(func.count(ConversationParticipant.user_id)).filter(
            ConversationParticipant.conversation_id == conversation_id
        ).scalar() or 0

    def _require_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _require_group(self, conversation: Optional[Conversation]) -> Conversation:
        if not conversation:
            raise NotFoundError("Group not found")
        if not conversation.is_group:
            raise InvalidInputError("Conversation is not a group")
        return conversation

    def get_group(self, group_id: str) -> Conversation:
        return self._require_group(self.get_conversation_row(group_id))

    def _commit(self, failure_message: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure_message}: {str(e)}")
            raise InternalError(failure_message)

    # --- Creation ---

    def get_or_create_direct(self, user_a: str, user_b: str) -> Conversation:
        """
        Return the direct conversation between two users, creating it if needed.

        Calling this again for the same pair, in either order, returns the
        same conversation untouched. Two concurrent creations for one pair
        collide on the unique direct_key; the loser rolls back and returns
        the row the winner committed.
        """
        if user_a == user_b:
            raise InvalidInputError("Cannot start a conversation with yourself")
        self._require_user(user_a)
        self._require_user(user_b)

        key = direct_key_for(user_a, user_b)
        existing = self._get_direct_by_key(key)
        if existing:
            return existing

        now = utcnow()
        conversation = Conversation(
            id=generate_uuid(),
            type=ConversationType.DIRECT,
            created_by=user_a,
            created_at=now,
            last_message_at=now,
            direct_key=key,
        )
        try:
            self.db.add(conversation)
            self.db.add_all([
                ConversationParticipant(
                    conversation_id=conversation.id,
                    user_id=user_id,
                    joined_at=now,
                    last_read_at=now,
                )
                for user_id in (user_a, user_b)
            ])
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self._get_direct_by_key(key)
            if existing:
                logger.info(f"Direct conversation for {key} created concurrently, reusing {existing.id}")
                return existing
            raise ConflictError("Direct conversation could not be created")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create direct conversation: {str(e)}")
            raise InternalError("Failed to create conversation")

        self.db.refresh(conversation)
        logger.info(f"Created direct conversation {conversation.id} between {user_a} and {user_b}")
        return conversation

    def create_group(self, name: str, creator_id: str, member_ids: List[str]) -> Conversation:
        """
        Create a group with the creator and the given members.

        The creator joins implicitly and must not be listed in member_ids.
        Either every row is written or none is.
        """
        validate_group_name(name)
        members = list(dict.fromkeys(member_ids or []))
        if not members:
            raise InvalidInputError("At least one member is required")
        if creator_id in members:
            raise InvalidInputError("Cannot add yourself as a member - you are automatically the group creator")
        max_members = self.settings.MAX_GROUP_MEMBERS
        if len(members) + 1 > max_members:
            raise InvalidInputError(f"Maximum {max_members - 1} members allowed")

        self._require_user(creator_id)
        found = {
            user_id for (user_id,) in self.db.query(User.id).filter(User.id.in_(members)).all()
        }
        for member_id in members:
            if member_id not in found:
                raise NotFoundError(f"User with ID {member_id} not found")

        now = utcnow()
        group = Conversation(
            id=generate_uuid(),
            type=ConversationType.GROUP,
            name=name,
            created_by=creator_id,
            created_at=now,
            last_message_at=now,
        )
        try:
            self.db.add(group)
            self.db.add_all([
                ConversationParticipant(
                    conversation_id=group.id,
                    user_id=user_id,
                    joined_at=now,
                    last_read_at=now,
                )
                for user_id in [creator_id] + members
            ])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create group {name}: {str(e)}")
            raise InternalError("Failed to create group")

        self.db.refresh(group)
        logger.info(f"Created group {group.id} with {len(members) + 1} participants")
        return group

    # --- Read views ---

    def unread_count(self, conversation_id: str, user_id: str) -> int:
        """Messages from other participants newer than the user's read cursor"""
        participant = self._get_participant(conversation_id, user_id)
        if not participant:
            return 0
        return self.db.query(func.count(Message.id)).filter(
            Message.conversation_id == conversation_id,
            Message.sender_id != user_id,
            Message.created_at > participant.last_read_at
        ).scalar() or 0

    def _last_message(self, conversation_id: str) -> Optional[Message]:
        return self.db.query(Message).filter(
            Message.conversation_id == conversation_id
        ).order_by(desc(Message.created_at), desc(Message.sequence)).first()

    def _display(self, conversation: Conversation, participants: List[User], user_id: str):
        """Resolve (name, photo_url, other participant) as seen by user_id"""
        if conversation.is_group:
            return conversation.name, conversation.photo_url, None
        other = next((p for p in participants if p.id != user_id), None)
        if not other:
            return None, None, None
        return other.username, other.photo_url, other

    def get_conversation(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        """
        Get a conversation as seen by one of its participants.

        Non-participants get UnauthorizedError whether or not the
        conversation exists. Read state is not touched.
        """
        self.access.require_participant(conversation_id, user_id, "view")
        conversation = self.get_conversation_row(conversation_id)

        participants = self.get_participants(conversation_id)
        name, photo_url, other = self._display(conversation, participants, user_id)
        return {
            "id": conversation.id,
            "type": conversation.type,
            "name": name,
            "photo_url": photo_url,
            "created_by": conversation.created_by,
            "created_at": conversation.created_at,
            "last_message_at": conversation.last_message_at,
            "participants": participants,
            "other_participant": other,
            "unread_count": self.unread_count(conversation_id, user_id),
        }

    def assemble_preview(self, conversation: Conversation, user_id: str) -> Dict[str, Any]:
        """Build the list entry of one conversation for user_id"""
        participants = self.get_participants(conversation.id)
        name, photo_url, other = self._display(conversation, participants, user_id)

        last_message = None
        latest = self._last_message(conversation.id)
        if latest:
            content = latest.content
            if content is not None:
                content = content[:self.settings.PREVIEW_MAX_LENGTH]
            last_message = {
                "id": latest.id,
                "content": content,
                "has_photo": latest.has_photo,
                "sender_id": latest.sender_id,
                "sender_username": latest.sender.username if latest.sender else None,
                "timestamp": latest.created_at,
            }

        return {
            "id": conversation.id,
            "type": conversation.type,
            "name": name,
            "photo_url": photo_url,
            "other_participant": other,
            "last_message": last_message,
            "last_message_at": conversation.last_message_at,
            "unread_count": self.unread_count(conversation.id, user_id),
        }

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """All conversations of a user, most recently active first"""
        conversations = self.db.query(Conversation).join(
            ConversationParticipant,
            ConversationParticipant.conversation_id == Conversation.id
        ).filter(
            ConversationParticipant.user_id == user_id
        ).order_by(
            desc(Conversation.last_message_at), desc(Conversation.created_at)
        ).all()
        return [self.assemble_preview(conversation, user_id) for conversation in conversations]

    # --- Read cursor ---

    def mark_as_read(self, conversation_id: str, user_id: str) -> None:
        """Move the user's read cursor to now; it never moves backwards"""
        self.access.require_participant(conversation_id, user_id, "read")
        participant = self._get_participant(conversation_id, user_id)
        if not participant:
            raise UnauthorizedError("You are not allowed to read this conversation")
        now = utcnow()
        if participant.last_read_at is None or now > participant.last_read_at:
            participant.last_read_at = now
            self._commit("Failed to mark conversation as read")

    def mark_as_read_quietly(self, conversation_id: str, user_id: str) -> bool:
        """Best-effort mark_as_read for read endpoints; failures are only logged"""
        try:
            self.mark_as_read(conversation_id, user_id)
            return True
        except ServiceError as e:
            logger.warning(f"Could not mark conversation {conversation_id} as read for {user_id}: {e.message}")
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not mark conversation {conversation_id} as read for {user_id}: {str(e)}")
            return False

    # --- Group membership ---

    def add_member(self, group_id: str, acting_user_id: str, target_user_id: str) -> ConversationParticipant:
        """Add a user to a group on behalf of one of its members"""
        self.access.require_participant(group_id, acting_user_id, "add members to")
        group = self.get_group(group_id)
        self._require_user(target_user_id)

        if self.access.is_participant(group_id, target_user_id):
            raise ConflictError("User is already a member of this group")
        max_members = self.settings.MAX_GROUP_MEMBERS
        if self.count_participants(group_id) >= max_members:
            raise ConflictError(f"Group already has the maximum of {max_members} participants")

        now = utcnow()
        participant = ConversationParticipant(
            conversation_id=group.id,
            user_id=target_user_id,
            joined_at=now,
            last_read_at=now,
        )
        try:
            self.db.add(participant)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User is already a member of this group")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to add {target_user_id} to group {group_id}: {str(e)}")
            raise InternalError("Failed to add user to group")

        logger.info(f"User {acting_user_id} added {target_user_id} to group {group_id}")
        return participant

    def remove_member(self, group_id: str, acting_user_id: str, target_user_id: str) -> None:
        """
        Remove a member from a group.

        Members may always leave; only the group creator may remove someone
        else. A group left without members is kept.
        """
        self.access.require_participant(group_id, acting_user_id, "remove members from")
        group = self.get_group(group_id)

        if acting_user_id != target_user_id and group.created_by != acting_user_id:
            raise UnauthorizedError("Only the group creator can remove other members")

        participant = self._get_participant(group_id, target_user_id)
        if not participant:
            raise NotFoundError("User is not a member of this group")

        self.db.delete(participant)
        self._commit("Failed to remove user from group")
        logger.info(f"User {target_user_id} removed from group {group_id} by {acting_user_id}")

    def leave_group(self, group_id: str, user_id: str) -> None:
        self.remove_member(group_id, user_id, user_id)

    def update_group_name(self, group_id: str, user_id: str, name: str) -> Conversation:
        validate_group_name(name)
        self.access.require_participant(group_id, user_id, "rename")
        group = self.get_group(group_id)
        group.name = name
        self._commit("Failed to update group name")
        self.db.refresh(group)
        return group

    def update_group_photo(self, group_id: str, user_id: str, photo_url: str) -> Conversation:
        self.access.require_participant(group_id, user_id, "update")
        group = self.get_group(group_id)
        group.photo_url = photo_url
        self._commit("Failed to update group photo")
        self.db.refresh(group)
        return group
