import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from chat_relay.domain.errors import ConversationConflict
from chat_relay.domain.ports.message_repo import MessageRepoPort

logger = logging.getLogger(__name__)


class ResolutionOutcome(str, Enum):
    CREATED = 'created'        # no id supplied, fresh conversation
    REUSED = 'reused'          # supplied id already persisted
    CLIENT_ID = 'client_id'    # supplied id was unknown and got persisted as-is
    FALLBACK = 'fallback'      # supplied id was rejected, fresh id issued


@dataclass(frozen=True)
class Resolution:
    conversation_id: str
    outcome: ResolutionOutcome
    requested_id: Optional[str] = None


async def resolve_conversation(
    repo: MessageRepoPort,
    *,
    user_id: str,
    conversation_id: Optional[str] = None,
    request_id: str = '-',
) -> Resolution:
    """
    Return a persisted conversation id to use for this turn.

    Reuses a known id, otherwise tries to persist the client's id so the
    client keeps its thread, and falls back to a fresh id when the store
    rejects it (duplicate from a racing insert, or a malformed id).
    Transport failures are not rejections and propagate.
    """
    if not conversation_id:
        conv = await repo.create_conversation(user_id=user_id, status='active')
        logger.info('[resolve] rid=%s new conversation %s user=%s', request_id, conv.id, user_id)
        return Resolution(conv.id, ResolutionOutcome.CREATED)

    existing = await repo.get_conversation(conversation_id)
    if existing is not None:
        logger.debug('[resolve] rid=%s reusing %s', request_id, existing.id)
        # echo the client's spelling; the store may canonicalise it
        return Resolution(conversation_id, ResolutionOutcome.REUSED, conversation_id)

    try:
        conv = await repo.create_conversation(
            user_id=user_id, status='active', conversation_id=conversation_id
        )
        logger.info('[resolve] rid=%s persisted client id %s', request_id, conv.id)
        return Resolution(conversation_id, ResolutionOutcome.CLIENT_ID, conversation_id)
    except ConversationConflict as e:
        logger.warning(
            '[resolve] rid=%s client id %s rejected (%s); issuing a fresh one',
            request_id, conversation_id, e,
        )

    conv = await repo.create_conversation(user_id=user_id, status='active')
    logger.info(
        '[resolve] rid=%s fallback conversation %s replaces %s',
        request_id, conv.id, conversation_id,
    )
    return Resolution(conv.id, ResolutionOutcome.FALLBACK, conversation_id)
