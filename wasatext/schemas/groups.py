from typing import List
from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    name: str
    members: List[str] = Field(default_factory=list)


class GroupMemberAdd(BaseModel):
    user_id: str


class GroupNameUpdate(BaseModel):
    name: str
