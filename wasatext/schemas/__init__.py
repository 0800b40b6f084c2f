"""
Schema definitions for the application.
This module exports all schemas for easy importing throughout the app.
"""

# Import from users
from wasatext.schemas.users import UserResponse, UserSummary, UsernameUpdate

# Import from auth
from wasatext.schemas.auth import LoginRequest, LoginResponse

# Import from messages
from wasatext.schemas.messages import (
    MessageCreate, MessageForward, MessageResponse, ReactionCreate, ReactionResponse
)

# Import from conversations
from wasatext.schemas.conversations import (
    ConversationDetailResponse, ConversationPreview, ConversationResponse,
    DirectConversationCreate, MessagePreview
)

# Import from groups
from wasatext.schemas.groups import GroupCreate, GroupMemberAdd, GroupNameUpdate
