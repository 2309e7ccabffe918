from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

ANONYMOUS_USER = 'anonymous'


class Conversation(BaseModel):
    id: str
    user_id: str
    status: str = 'active'
    created_at: Optional[datetime] = None


class Message(BaseModel):
    id: Optional[int] = None
    conversation_id: str
    content: str
    sender_type: str = Field(pattern='^(user|bot)$')
    created_at: Optional[datetime] = None


class HistoryTurn(BaseModel):
    role: str
    content: str


class ConversationSummary(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    status: str
    title: str
    last_message: Optional[Message] = None
