# wasatext/services/validators.py
import re
from typing import Optional

from wasatext.errors import InvalidInputError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]{3,16}$")
SEARCH_RE = re.compile(r"^[A-Za-z0-9_-]*$")

GROUP_NAME_MAX_LENGTH = 50
MESSAGE_MAX_LENGTH = 1000
EMOTICON_MAX_LENGTH = 10
SEARCH_MAX_LENGTH = 50


def validate_username(username: Optional[str]) -> str:
    if not username or not 3 <= len(username) <= 16:
        raise InvalidInputError("Username must be between 3 and 16 characters")
    if not USERNAME_RE.match(username):
        raise InvalidInputError("Username can only contain letters, numbers, underscores, and hyphens")
    return username


def validate_group_name(name: Optional[str]) -> str:
    if not name:
        raise InvalidInputError("Group name is required")
    if len(name) > GROUP_NAME_MAX_LENGTH:
        raise InvalidInputError(f"Group name must be between 1 and {GROUP_NAME_MAX_LENGTH} characters")
    return name


def validate_message_body(content: Optional[str], photo_url: Optional[str]) -> None:
    """A message carries text or a photo, never both and never neither."""
    if (content is None) == (photo_url is None):
        raise InvalidInputError("A message must have either content or a photo, but not both")
    if content is not None and not 1 <= len(content) <= MESSAGE_MAX_LENGTH:
        raise InvalidInputError(f"Message content must be between 1 and {MESSAGE_MAX_LENGTH} characters")
    if photo_url is not None and not photo_url:
        raise InvalidInputError("Photo URL must not be empty")


def validate_emoticon(emoticon: Optional[str]) -> str:
    if not emoticon:
        raise InvalidInputError("Emoticon is required")
    if len(emoticon) > EMOTICON_MAX_LENGTH:
        raise InvalidInputError(f"Emoticon must be between 1 and {EMOTICON_MAX_LENGTH} characters")
    return emoticon


def validate_search_query(query: Optional[str]) -> str:
    if not query:
        raise InvalidInputError("Search query is required")
    if len(query) > SEARCH_MAX_LENGTH:
        raise InvalidInputError(f"Search query must not exceed {SEARCH_MAX_LENGTH} characters")
    if not SEARCH_RE.match(query):
        raise InvalidInputError("Search query contains invalid characters")
    return query
