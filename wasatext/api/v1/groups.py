# wasatext/api/v1/groups.py
from fastapi import APIRouter, Depends, File, UploadFile, status

from wasatext.api.auth import get_current_user
from wasatext.api.dependencies import get_service, get_storage_service
from wasatext.errors import ServiceError
from wasatext.models.user import User
from wasatext.schemas import (
    ConversationDetailResponse,
    ConversationResponse,
    GroupCreate,
    GroupMemberAdd,
    GroupNameUpdate,
)
from wasatext.services.conversation_service import ConversationService
from wasatext.services.storage_service import StorageService

router = APIRouter()


@router.post("", response_model=ConversationDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Create a group with the current user as creator.
    """
    group = conversation_service.create_group(group_data.name, current_user.id, group_data.members)
    return conversation_service.get_conversation(group.id, current_user.id)


@router.post("/{group_id}/members", status_code=status.HTTP_204_NO_CONTENT)
async def add_to_group(
    group_id: str,
    member: GroupMemberAdd,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Add a user to a group the current user belongs to.
    """
    conversation_service.add_member(group_id, current_user.id, member.user_id)
    return None


@router.delete("/{group_id}/members/me", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Leave a group.
    """
    conversation_service.leave_group(group_id, current_user.id)
    return None


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_group(
    group_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Remove a member; only the group creator may remove someone else.
    """
    conversation_service.remove_member(group_id, current_user.id, user_id)
    return None


@router.put("/{group_id}/name", response_model=ConversationResponse)
async def set_group_name(
    group_id: str,
    update: GroupNameUpdate,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    return conversation_service.update_group_name(group_id, current_user.id, update.name)


@router.put("/{group_id}/photo", response_model=ConversationResponse)
async def set_group_photo(
    group_id: str,
    photo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
    storage: StorageService = Depends(get_storage_service),
):
    conversation_service.access.require_participant(group_id, current_user.id, "update")
    conversation_service.get_group(group_id)
    photo_url = storage.save_image(photo, "groups")
    try:
        return conversation_service.update_group_photo(group_id, current_user.id, photo_url)
    except ServiceError:
        storage.delete(photo_url)
        raise
