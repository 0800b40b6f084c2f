# wasatext/api/auth.py
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from wasatext.database import get_db
from wasatext.models.user import User
from wasatext.services.auth_service import AuthService

# Setup security scheme; missing headers are reported by get_access_token
security = HTTPBearer(auto_error=False)


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Dependency to extract the bearer token from the Authorization header.
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_access_token),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from a session token.
    """
    user = AuthService(db).get_user_by_token(token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user
