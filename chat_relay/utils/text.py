from typing import Optional, Sequence

from chat_relay.domain.models import Message

DEFAULT_TITLE = 'New conversation'
TITLE_MAX_CHARS = 30


def trunc(s: str, n: int = 120) -> str:
    return s if len(s) <= n else s[:n] + '...'


def title_from_text(first_user_text: Optional[str]) -> str:
    if not first_user_text:
        return DEFAULT_TITLE
    return trunc(first_user_text, TITLE_MAX_CHARS)


def conversation_title(messages: Sequence[Message]) -> str:
    """
    Title a conversation after its first user message.

    `messages` must be ordered oldest first.
    """
    first = next(
        (m.content for m in messages if m.sender_type == 'user' and m.content),
        None,
    )
    return title_from_text(first)
