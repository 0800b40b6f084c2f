from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime

from wasatext.models.enums import ConversationType
from wasatext.schemas.messages import MessageResponse
from wasatext.schemas.users import UserSummary


class DirectConversationCreate(BaseModel):
    user_id: str


class ConversationResponse(BaseModel):
    id: str
    type: ConversationType
    name: Optional[str] = None
    photo_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    last_message_at: datetime

    class Config:
        from_attributes = True


class MessagePreview(BaseModel):
    id: str
    content: Optional[str] = None
    has_photo: bool
    sender_id: str
    sender_username: Optional[str] = None
    timestamp: datetime


class ConversationPreview(BaseModel):
    id: str
    type: ConversationType
    name: Optional[str] = None
    photo_url: Optional[str] = None
    other_participant: Optional[UserSummary] = None
    last_message: Optional[MessagePreview] = None
    last_message_at: datetime
    unread_count: int


class ConversationDetailResponse(ConversationResponse):
    participants: List[UserSummary]
    other_participant: Optional[UserSummary] = None
    unread_count: int
    messages: List[MessageResponse] = []
