from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class UserResponse(BaseModel):
    id: str
    username: str
    photo_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """User fields embedded in conversation payloads"""
    id: str
    username: str
    photo_url: Optional[str] = None

    class Config:
        from_attributes = True


class UsernameUpdate(BaseModel):
    username: str
