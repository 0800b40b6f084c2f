# wasatext/services/user_service.py
import logging
from typing import Optional, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wasatext.config import get_settings
from wasatext.errors import ConflictError, InternalError, NotFoundError
from wasatext.models.user import User
from wasatext.services.validators import validate_search_query, validate_username

logger = logging.getLogger(__name__)


class UserService:
    """Service for handling user profile operations"""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_or_404(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username"""
        return self.db.query(User).filter(User.username == username).first()

    def update_username(self, user_id: str, username: str) -> User:
        """
        Change a user's username.

        Raises ConflictError if another user already holds the name.
        """
        validate_username(username)
        user = self.get_user_or_404(user_id)
        if user.username == username:
            return user

        existing = self.get_user_by_username(username)
        if existing and existing.id != user_id:
            raise ConflictError("Username already taken")

        user.username = username
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username already taken")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update username for {user_id}: {str(e)}")
            raise InternalError("Failed to update username")

        self.db.refresh(user)
        logger.info(f"User {user_id} renamed to {username}")
        return user

    def update_photo(self, user_id: str, photo_url: str) -> User:
        """Set the profile photo URL of a user"""
        user = self.get_user_or_404(user_id)
        user.photo_url = photo_url
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update photo for {user_id}: {str(e)}")
            raise InternalError("Failed to update user photo")

        self.db.refresh(user)
        return user

    def search_users(self, query: str, exclude_user_id: Optional[str] = None) -> List[User]:
        """Search for users whose username starts with the query"""
        validate_search_query(query)
        q = self.db.query(User).filter(User.username.startswith(query, autoescape=True))
        if exclude_user_id:
            q = q.filter(User.id != exclude_user_id)
        return q.order_by(User.username).limit(self.settings.USER_SEARCH_LIMIT).all()
