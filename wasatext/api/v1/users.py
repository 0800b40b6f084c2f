# wasatext/api/v1/users.py
from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile

from wasatext.api.auth import get_current_user
from wasatext.api.dependencies import get_service, get_storage_service
from wasatext.errors import ServiceError
from wasatext.models.user import User
from wasatext.schemas import UserResponse, UsernameUpdate
from wasatext.services.storage_service import StorageService
from wasatext.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def search_users(
    query: str = Query(...),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService))
):
    """
    Search users by username prefix, excluding the caller
    """
    return user_service.search_users(query, exclude_user_id=current_user.id)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get information about the current authenticated user
    """
    return current_user


@router.put("/me/username", response_model=UserResponse)
async def set_my_username(
    update: UsernameUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService))
):
    """
    Change the current user's username

    Returns 409 if the name is taken
    """
    return user_service.update_username(current_user.id, update.username)


@router.put("/me/photo", response_model=UserResponse)
async def set_my_photo(
    photo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService)),
    storage: StorageService = Depends(get_storage_service)
):
    """
    Upload a new profile photo
    """
    photo_url = storage.save_image(photo, "profiles")
    try:
        return user_service.update_photo(current_user.id, photo_url)
    except ServiceError:
        storage.delete(photo_url)
        raise


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService))
):
    """
    Get another user's public profile
    """
    return user_service.get_user_or_404(user_id)
