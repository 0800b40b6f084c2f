from pydantic import BaseModel

from wasatext.schemas.users import UserResponse


class LoginRequest(BaseModel):
    """Request for login; unknown names are registered on the fly"""
    name: str


class LoginResponse(BaseModel):
    """Response with the session token to send as a bearer token"""
    identifier: str
    user: UserResponse
