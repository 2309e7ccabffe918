import hashlib
import json
from typing import Dict, List, Optional, Sequence

from chat_relay.domain.errors import InvalidMessage
from chat_relay.domain.models import HistoryTurn

HISTORY_CAP = 300


def clean_message(message) -> str:
    """
    Return the trimmed user text or raise InvalidMessage.

    Anything that is not a non-blank string is rejected.
    """
    if not isinstance(message, str) or not message.strip():
        raise InvalidMessage('message must be a non-empty string')
    return message.strip()


def cache_key_for(message: str, history: Optional[Sequence[HistoryTurn]] = None) -> str:
    payload = {
        'message': message,
        'history': [[t.role, t.content] for t in (history or [])],
    }
    encoded = json.dumps(payload, ensure_ascii=False, separators=(',', ':'))
    return hashlib.sha256(encoded.encode('utf-8')).hexdigest()


def build_model_request(
    system_prompt: str,
    message: str,
    history: Optional[Sequence[HistoryTurn]] = None,
    *,
    cap: int = HISTORY_CAP,
) -> List[Dict[str, str]]:
    """
    System instruction first, then history, then the current user message.

    When the result would exceed `cap` entries the oldest non-system
    entries are dropped, so the system instruction always survives.
    """
    turns = [{'role': t.role, 'content': t.content} for t in (history or [])]
    turns.append({'role': 'user', 'content': message})

    keep = max(cap - 1, 0)
    if len(turns) > keep:
        turns = turns[len(turns) - keep:]

    return [{'role': 'system', 'content': system_prompt}, *turns]
