from typing import List, Optional, Protocol, Tuple

from chat_relay.domain.models import Conversation, ConversationSummary, Message


class MessageRepoPort(Protocol):
    """Persistence collaborator for conversations and messages.

    Implementations raise ``ConversationConflict`` when the store rejects a
    conversation id, ``PersistenceUnavailable`` when the store cannot be
    reached, and ``PersistenceError`` for anything else.
    """

    async def create_conversation(
        self,
        *,
        user_id: str,
        status: str = 'active',
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        raise NotImplementedError

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        raise NotImplementedError

    async def append_message(
        self, conversation_id: str, *, content: str, sender_type: str
    ) -> Message:
        raise NotImplementedError

    async def list_messages(self, conversation_id: str) -> List[Message]:
        raise NotImplementedError

    async def recent_conversations(
        self, user_id: str, *, limit: int, offset: int = 0
    ) -> Tuple[List[ConversationSummary], int]:
        raise NotImplementedError
