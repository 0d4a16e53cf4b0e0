from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime
from rentfinder.models.property import ApiModel, OwnerSummary, PropertySummary
from rentfinder.models.search import Pagination


class Participant(OwnerSummary):
    role: Optional[str] = None


class MessageCreate(ApiModel):
    receiver_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    property_id: Optional[str] = None

    @field_validator('content', mode='before')
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class Message(ApiModel):
    id: str
    sender_id: str
    receiver_id: str
    property_id: Optional[str] = None
    content: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    sender: Optional[Participant] = None
    property: Optional[PropertySummary] = None


class Conversation(ApiModel):
    """Thread with one other user about one listing (or none)"""
    other_user: Optional[Participant] = None
    property: Optional[PropertySummary] = None
    last_message: Message
    unread_count: int = 0


class ConversationListResponse(ApiModel):
    conversations: List[Conversation]


class MessageThreadResponse(ApiModel):
    messages: List[Message]
    pagination: Pagination


class MessageDetailResponse(ApiModel):
    message: Message


class UnreadCountResponse(ApiModel):
    count: int
