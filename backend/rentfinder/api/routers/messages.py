from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from rentfinder.core.auth import get_current_user_id
from rentfinder.core.config import settings
from rentfinder.core.database import get_db
from rentfinder.core.exceptions import (
    InvalidMessageError, MessageNotFoundError, NotAuthorizedError,
    PropertyNotFoundError, RecipientNotFoundError
)
from rentfinder.models.message import (
    ConversationListResponse, MessageCreate, MessageDetailResponse,
    MessageThreadResponse, UnreadCountResponse
)
from rentfinder.models.search import Pagination, parse_page_number, parse_page_size
from rentfinder.modules.messages.service import MessageService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("/conversations", response_model=ConversationListResponse)
async def get_conversations(
    current_user_id: str = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service)
):
    """The current user's conversations, most recently active first."""
    try:
        conversations = await message_service.get_conversations(current_user_id)
        return ConversationListResponse(conversations=conversations)

    except Exception as e:
        logger.exception(f"Failed to get conversations: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get conversations"
        )


@router.get("/unread/count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user_id: str = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        count = await message_service.get_unread_count(current_user_id)
        return UnreadCountResponse(count=count)

    except Exception as e:
        logger.exception(f"Failed to get unread count: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get unread count"
        )


@router.get("/{user_id}", response_model=MessageThreadResponse)
async def get_thread(
    user_id: str,
    property_id: Optional[str] = Query(None, alias="propertyId", description="Only messages about this listing"),
    page: Optional[str] = Query(None, description="1-based page index (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 50)"),
    current_user_id: str = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service)
):
    """
    Messages exchanged with another user, oldest first.

    Reading a thread marks that user's messages to the current user as read.
    """
    parsed_page = parse_page_number(page)
    parsed_limit = parse_page_size(limit, settings.MESSAGE_PAGE_SIZE)
    try:
        messages, total = await message_service.get_thread(
            current_user_id, user_id, property_id, parsed_page, parsed_limit
        )
        return MessageThreadResponse(
            messages=messages,
            pagination=Pagination.build(parsed_page, parsed_limit, total),
        )

    except Exception as e:
        logger.exception(f"Failed to get messages with {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get messages"
        )


@router.post("", response_model=MessageDetailResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    current_user_id: str = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        message = await message_service.send_message(current_user_id, message_data)
        return MessageDetailResponse(message=message)

    except (RecipientNotFoundError, PropertyNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidMessageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to send message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message"
        )


@router.put("/{message_id}/read", response_model=MessageDetailResponse)
async def mark_message_read(
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        message = await message_service.mark_read(message_id, current_user_id)
        return MessageDetailResponse(message=message)

    except MessageNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except Exception as e:
        logger.exception(f"Failed to mark message {message_id} as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark message as read"
        )
