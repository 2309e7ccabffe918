import logging
import math
from typing import Any, Dict

from chat_relay.domain.errors import ConversationNotFound, InvalidMessage
from chat_relay.domain.ports.message_repo import MessageRepoPort

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class HistoryService:
    """Read side: a conversation's messages and a user's recent conversations."""

    def __init__(self, repo: MessageRepoPort):
        self.repo = repo

    async def conversation_messages(self, conversation_id: str) -> Dict[str, Any]:
        if not conversation_id:
            raise InvalidMessage('conversation id is required')

        conversation = await self.repo.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFound(f'conversation {conversation_id} not found')

        messages = await self.repo.list_messages(conversation.id)
        logger.info('[history] conversation=%s messages=%d', conversation.id, len(messages))
        return {'conversation': conversation, 'messages': messages}

    async def recent_conversations(
        self, user_id: str, *, page: int = 1, limit: int = 10
    ) -> Dict[str, Any]:
        if not user_id:
            raise InvalidMessage('userId is required')
        if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidMessage('invalid pagination parameters')

        offset = (page - 1) * limit
        conversations, total = await self.repo.recent_conversations(
            user_id, limit=limit, offset=offset
        )
        logger.info(
            '[history] user=%s page=%d limit=%d returned=%d total=%d',
            user_id, page, limit, len(conversations), total,
        )
        return {
            'conversations': conversations,
            'total': total,
            'page': page,
            'limit': limit,
            'total_pages': math.ceil(total / limit),
        }
