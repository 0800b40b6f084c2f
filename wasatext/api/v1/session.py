# wasatext/api/v1/session.py
from fastapi import APIRouter, Depends, status

from wasatext.api.auth import get_access_token
from wasatext.api.dependencies import get_service
from wasatext.schemas import LoginRequest, LoginResponse
from wasatext.services.auth_service import AuthService

router = APIRouter()


@router.post("", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_service(AuthService))
):
    """
    Log in with a username, registering it on first use

    Returns a session identifier to send as a bearer token
    """
    user, token = auth_service.login(request.name)
    return {"identifier": token, "user": user}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_service(AuthService))
):
    """
    Invalidate the current session token
    """
    auth_service.logout(token)
    return None
