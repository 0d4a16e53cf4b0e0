from typing import List, Optional, Tuple
from datetime import datetime, timezone
from sqlalchemy import and_, desc, or_
from sqlalchemy.orm import Session, joinedload
from rentfinder.core.exceptions import (
    InvalidMessageError, MessageNotFoundError, NotAuthorizedError,
    PropertyNotFoundError, RecipientNotFoundError
)
from rentfinder.db.models import Message as DBMessage, Property as DBProperty, User as DBUser
from rentfinder.models.message import Conversation, Message, MessageCreate, Participant
from rentfinder.models.property import PropertySummary
import logging

logger = logging.getLogger(__name__)


class MessageService:
    """Service for direct messages between users, optionally about a listing"""

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(DBMessage).options(
            joinedload(DBMessage.sender),
            joinedload(DBMessage.receiver),
            joinedload(DBMessage.property),
        )

    async def get_conversations(self, user_id: str) -> List[Conversation]:
        """
        One entry per (other user, listing) pair the user has exchanged messages
        about, ordered by most recent message.
        """
        db_messages = (
            self._base_query()
            .filter(or_(DBMessage.sender_id == user_id, DBMessage.receiver_id == user_id))
            .order_by(desc(DBMessage.created_at), desc(DBMessage.id))
            .all()
        )

        conversations = {}
        for db_message in db_messages:
            incoming = db_message.receiver_id == user_id
            other = db_message.sender if incoming else db_message.receiver
            key = (other.id if other else None, db_message.property_id)

            conversation = conversations.get(key)
            if conversation is None:
                conversation = Conversation(
                    other_user=Participant.model_validate(other) if other else None,
                    property=PropertySummary.model_validate(db_message.property) if db_message.property else None,
                    last_message=self._to_model(db_message),
                )
                conversations[key] = conversation
            if incoming and not db_message.is_read:
                conversation.unread_count += 1

        return list(conversations.values())

    async def get_thread(self, user_id: str, other_user_id: str, property_id: Optional[str] = None,
                         page: int = 1, limit: int = 50) -> Tuple[List[Message], int]:
        """
        Messages exchanged with ``other_user_id`` in chronological order.

        Fetching a thread marks the other user's messages to ``user_id`` as read.
        """
        query = self.db.query(DBMessage).filter(
            or_(
                and_(DBMessage.sender_id == user_id, DBMessage.receiver_id == other_user_id),
                and_(DBMessage.sender_id == other_user_id, DBMessage.receiver_id == user_id),
            )
        )
        if property_id:
            query = query.filter(DBMessage.property_id == property_id)

        total = query.count()
        db_messages = (
            query.options(joinedload(DBMessage.sender), joinedload(DBMessage.property))
            .order_by(desc(DBMessage.created_at), desc(DBMessage.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        # Newest page first from the database, oldest first to the caller
        messages = [self._to_model(m) for m in reversed(db_messages)]

        try:
            unread = self.db.query(DBMessage).filter(
                DBMessage.sender_id == other_user_id,
                DBMessage.receiver_id == user_id,
                DBMessage.is_read.is_(False),
            )
            if property_id:
                unread = unread.filter(DBMessage.property_id == property_id)
            unread.update(
                {DBMessage.is_read: True, DBMessage.read_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark messages from {other_user_id} as read: {e}")
            raise

        return messages, total

    async def send_message(self, sender_id: str, data: MessageCreate) -> Message:
        if self.db.get(DBUser, data.receiver_id) is None:
            raise RecipientNotFoundError(data.receiver_id)
        if data.receiver_id == sender_id:
            raise InvalidMessageError("Cannot message yourself")
        if data.property_id and self.db.get(DBProperty, data.property_id) is None:
            raise PropertyNotFoundError(data.property_id)

        try:
            db_message = DBMessage(
                sender_id=sender_id,
                receiver_id=data.receiver_id,
                property_id=data.property_id,
                content=data.content,
            )
            self.db.add(db_message)
            self.db.commit()
            logger.info(f"Message {db_message.id} sent from {sender_id} to {data.receiver_id}")

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to send message to {data.receiver_id}: {e}")
            raise

        return self._to_model(self._load(db_message.id))

    async def get_unread_count(self, user_id: str) -> int:
        return self.db.query(DBMessage).filter(
            DBMessage.receiver_id == user_id,
            DBMessage.is_read.is_(False),
        ).count()

    async def mark_read(self, message_id: str, user_id: str) -> Message:
        """Only the receiver can mark a message as read"""
        db_message = self.db.get(DBMessage, message_id)
        if db_message is None:
            raise MessageNotFoundError(message_id)
        if db_message.receiver_id != user_id:
            raise NotAuthorizedError()

        if not db_message.is_read:
            try:
                db_message.is_read = True
                db_message.read_at = datetime.now(timezone.utc)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to mark message {message_id} as read: {e}")
                raise

        return self._to_model(self._load(message_id))

    def _load(self, message_id: str) -> DBMessage:
        return self._base_query().filter(DBMessage.id == message_id).one()

    @staticmethod
    def _to_model(db_message: DBMessage) -> Message:
        return Message.model_validate(db_message)
