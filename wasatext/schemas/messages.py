from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime


class MessageCreate(BaseModel):
    """Text message body; photo messages are sent as multipart form data."""
    content: str
    reply_to: Optional[str] = None


class MessageForward(BaseModel):
    conversation_id: str


class ReactionCreate(BaseModel):
    emoticon: str


class ReactionResponse(BaseModel):
    id: str
    message_id: str
    user_id: str
    username: Optional[str] = None
    emoticon: str
    created_at: datetime


class MessageResponse(BaseModel):
    """Message with sender name and current reactions."""
    id: str
    conversation_id: str
    sender_id: str
    sender_username: Optional[str] = None
    content: Optional[str] = None
    photo_url: Optional[str] = None
    reply_to_id: Optional[str] = None
    forwarded: bool
    created_at: datetime
    reactions: List[ReactionResponse] = []
