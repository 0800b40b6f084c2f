# wasatext/services/auth_service.py
import logging
import secrets
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wasatext.errors import InternalError
from wasatext.models.user import User, UserSession
from wasatext.services.validators import validate_username

logger = logging.getLogger(__name__)


class AuthService:
    """Service for username login and opaque session tokens.

    There are no credentials: logging in with an unknown username registers
    it, logging in with a known one opens another session for that user.
    """

    def __init__(self, db: Session):
        self.db = db

    def login(self, username: str) -> Tuple[User, str]:
        """
        Get or create the user for a username and issue a new session token.

        Returns:
            Tuple of (user, token).
        """
        validate_username(username)

        user = self._get_user_by_username(username)
        if not user:
            user = self._create_user(username)

        token = secrets.token_urlsafe(32)
        try:
            self.db.add(UserSession(token=token, user_id=user.id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create session for user {user.id}: {str(e)}")
            raise InternalError("Failed to create session")

        logger.info(f"User {user.id} logged in")
        return user, token

    def _create_user(self, username: str) -> User:
        user = User(username=username)
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            # Someone registered the same username concurrently
            self.db.rollback()
            existing = self._get_user_by_username(username)
            if existing:
                return existing
            raise InternalError("Failed to create user")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user {username}: {str(e)}")
            raise InternalError("Failed to create user")

        self.db.refresh(user)
        logger.info(f"Created user {user.id} ({username})")
        return user

    def _get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_token(self, token: str) -> Optional[User]:
        """Resolve a bearer token to its user, or None if the token is unknown"""
        if not token:
            return None
        return self.db.query(User).join(
            UserSession, UserSession.user_id == User.id
        ).filter(UserSession.token == token).first()

    def logout(self, token: str) -> bool:
        """Delete a session. Returns False if the token was not known."""
        session = self.db.query(UserSession).filter(UserSession.token == token).first()
        if not session:
            return False

        try:
            self.db.delete(session)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete session: {str(e)}")
            raise InternalError("Failed to delete session")
        return True
