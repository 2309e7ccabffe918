from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chat_relay.domain.models import HistoryTurn


class ChatIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    history: Optional[List[HistoryTurn]] = None
    user_id: Optional[str] = Field(default=None, alias='userId')
    conversation_id: Optional[str] = Field(default=None, alias='conversationId')

    @field_validator('user_id', 'conversation_id', mode='before')
    def ids_as_text(cls, v: Any):
        # clients may send numeric ids; the store treats them as opaque text
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if v == '':
            return None
        return v
