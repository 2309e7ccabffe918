from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from chat_relay.domain.errors import ConversationConflict
from chat_relay.domain.models import Conversation, ConversationSummary, Message
from chat_relay.domain.ports.message_repo import MessageRepoPort
from chat_relay.utils.text import conversation_title


def _now_utc() -> datetime:
    # Always timezone-aware (UTC)
    return datetime.now(timezone.utc)


class InMemoryMessageRepo(MessageRepoPort):
    """
    Process-local store used for development and tests.
    Conversation ids are unique, like the primary key in the real schema.
    """

    def __init__(self) -> None:
        self._convs: Dict[str, Conversation] = {}
        self._msgs: Dict[str, List[Message]] = {}
        self._next_message_id = 1

    async def create_conversation(
        self,
        *,
        user_id: str,
        status: str = 'active',
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        cid = conversation_id or str(uuid.uuid4())
        if cid in self._convs:
            raise ConversationConflict(f'conversation {cid} already exists')
        conv = Conversation(id=cid, user_id=user_id, status=status, created_at=_now_utc())
        self._convs[cid] = conv
        self._msgs[cid] = []
        return conv

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._convs.get(conversation_id)

    async def append_message(
        self, conversation_id: str, *, content: str, sender_type: str
    ) -> Message:
        msg = Message(
            id=self._next_message_id,
            conversation_id=conversation_id,
            content=content,
            sender_type=sender_type,
            created_at=_now_utc(),
        )
        self._next_message_id += 1
        self._msgs.setdefault(conversation_id, []).append(msg)
        return msg

    async def list_messages(self, conversation_id: str) -> List[Message]:
        # insertion order is created_at order
        return list(self._msgs.get(conversation_id, []))

    async def recent_conversations(
        self, user_id: str, *, limit: int, offset: int = 0
    ) -> Tuple[List[ConversationSummary], int]:
        convs = [
            c for c in reversed(list(self._convs.values()))
            if c.user_id == user_id and c.status == 'active'
        ]
        # stable sort keeps later inserts first on equal timestamps
        convs.sort(key=lambda c: c.created_at, reverse=True)
        page = convs[offset:offset + limit]

        out = []
        for c in page:
            msgs = self._msgs.get(c.id, [])
            out.append(ConversationSummary(
                id=c.id,
                created_at=c.created_at,
                status=c.status,
                title=conversation_title(msgs),
                last_message=msgs[-1] if msgs else None,
            ))
        return out, len(convs)

    def clear(self) -> None:
        self._convs.clear()
        self._msgs.clear()
