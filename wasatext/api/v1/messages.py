# wasatext/api/v1/messages.py
from fastapi import APIRouter, Depends, status

from wasatext.api.auth import get_current_user
from wasatext.api.dependencies import get_service
from wasatext.models.user import User
from wasatext.schemas import MessageForward, MessageResponse, ReactionCreate, ReactionResponse
from wasatext.services.message_service import MessageService
from wasatext.services.reaction_service import ReactionService

router = APIRouter()


@router.post("/{message_id}/forward", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def forward_message(
    message_id: str,
    request: MessageForward,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService))
):
    """
    Forward a message into another conversation the user belongs to.
    """
    message = message_service.forward(message_id, request.conversation_id, current_user.id)
    return message_service.describe_message(message)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService))
):
    """
    Delete a message sent by the current user, together with its reactions.
    """
    message_service.delete(message_id, current_user.id)
    return None


@router.post("/{message_id}/comments", response_model=ReactionResponse, status_code=status.HTTP_201_CREATED)
async def comment_message(
    message_id: str,
    request: ReactionCreate,
    current_user: User = Depends(get_current_user),
    reaction_service: ReactionService = Depends(get_service(ReactionService))
):
    """
    React to a message with an emoticon, replacing any earlier reaction.
    """
    return reaction_service.react(message_id, current_user.id, request.emoticon)


@router.delete("/{message_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def uncomment_message(
    message_id: str,
    comment_id: str,
    current_user: User = Depends(get_current_user),
    reaction_service: ReactionService = Depends(get_service(ReactionService))
):
    """
    Remove one of the current user's reactions.
    """
    reaction_service.unreact(comment_id, current_user.id, message_id=message_id)
    return None
