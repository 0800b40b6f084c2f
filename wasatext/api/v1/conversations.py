# wasatext/api/v1/conversations.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from wasatext.api.auth import get_current_user
from wasatext.api.dependencies import get_service, get_storage_service
from wasatext.errors import ServiceError
from wasatext.models.user import User
from wasatext.schemas import (
    ConversationDetailResponse,
    ConversationPreview,
    DirectConversationCreate,
    MessageCreate,
    MessageResponse,
)
from wasatext.services.conversation_service import ConversationService
from wasatext.services.message_service import MessageService
from wasatext.services.storage_service import StorageService

router = APIRouter()


@router.get("", response_model=List[ConversationPreview])
async def get_my_conversations(
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Get all conversations of the current user, most recently active first.
    """
    return conversation_service.list_for_user(current_user.id)


@router.post("", response_model=ConversationDetailResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    request: DirectConversationCreate,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Get or create the direct conversation with another user.
    """
    conversation = conversation_service.get_or_create_direct(current_user.id, request.user_id)
    return conversation_service.get_conversation(conversation.id, current_user.id)


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
    message_service: MessageService = Depends(get_service(MessageService)),
):
    """
    Get a conversation with its participants and full message history.

    Opening a conversation marks it as read; a failure to do so does not
    fail the request.
    """
    detail = conversation_service.get_conversation(conversation_id, current_user.id)
    detail["messages"] = message_service.get_conversation_messages(conversation_id)
    conversation_service.mark_as_read_quietly(conversation_id, current_user.id)
    return detail


@router.put("/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_conversation_read(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService)),
):
    """
    Move the current user's read cursor to now.
    """
    conversation_service.mark_as_read(conversation_id, current_user.id)
    return None


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_conversation_messages(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService)),
):
    """
    Get the messages of a conversation, oldest first.
    """
    return message_service.list_for_participant(conversation_id, current_user.id)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED
)
async def send_message(
    conversation_id: str,
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService)),
):
    """
    Send a text message, optionally as a reply to another message.
    """
    message = message_service.send(
        conversation_id=conversation_id,
        sender_id=current_user.id,
        content=message_data.content,
        reply_to_id=message_data.reply_to
    )
    return message_service.describe_message(message)


@router.post(
    "/{conversation_id}/messages/photo",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED
)
async def send_photo_message(
    conversation_id: str,
    photo: UploadFile = File(...),
    reply_to: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService)),
    storage: StorageService = Depends(get_storage_service),
):
    """
    Send a photo message uploaded as multipart form data.
    """
    # Check everything we can before writing anything to disk
    reply_to_id = reply_to or None
    message_service.access.require_participant(conversation_id, current_user.id, "send messages to")
    if reply_to_id is not None:
        message_service.check_reply(conversation_id, reply_to_id)

    photo_url = storage.save_image(photo, "messages")
    try:
        message = message_service.send(
            conversation_id=conversation_id,
            sender_id=current_user.id,
            photo_url=photo_url,
            reply_to_id=reply_to_id
        )
    except ServiceError:
        storage.delete(photo_url)
        raise
    return message_service.describe_message(message)
