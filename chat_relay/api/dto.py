from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from chat_relay.domain.models import Conversation, ConversationSummary, Message


class ChatOut(BaseModel):
    reply: str
    conversation_id: str = Field(serialization_alias='conversationId')


class ConversationInfoOut(BaseModel):
    id: str
    user_id: str = Field(serialization_alias='userId')
    status: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias='createdAt')

    @classmethod
    def from_domain(cls, c: Conversation) -> 'ConversationInfoOut':
        return cls(id=c.id, user_id=c.user_id, status=c.status, created_at=c.created_at)


class MessageOut(BaseModel):
    id: Optional[int] = None
    content: str
    sender_type: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_domain(cls, m: Message) -> 'MessageOut':
        return cls(id=m.id, content=m.content, sender_type=m.sender_type, timestamp=m.created_at)


class ConversationMessagesOut(BaseModel):
    conversation: ConversationInfoOut
    messages: List[MessageOut]


class LastMessageOut(BaseModel):
    id: Optional[int] = None
    content: str
    sender_type: str = Field(serialization_alias='senderType')
    created_at: Optional[datetime] = Field(default=None, serialization_alias='createdAt')


class ConversationSummaryOut(BaseModel):
    id: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias='createdAt')
    status: str
    title: str
    last_message: Optional[LastMessageOut] = Field(default=None, serialization_alias='lastMessage')

    @classmethod
    def from_domain(cls, s: ConversationSummary) -> 'ConversationSummaryOut':
        last = None
        if s.last_message is not None:
            m = s.last_message
            last = LastMessageOut(
                id=m.id, content=m.content, sender_type=m.sender_type, created_at=m.created_at
            )
        return cls(
            id=s.id, created_at=s.created_at, status=s.status, title=s.title, last_message=last
        )


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias='totalPages')


class RecentConversationsOut(BaseModel):
    conversations: List[ConversationSummaryOut]
    pagination: PaginationOut
