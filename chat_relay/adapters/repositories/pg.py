import logging
from contextlib import contextmanager
from typing import List, Optional, Tuple

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from chat_relay.domain.errors import (ConversationConflict, PersistenceError,
                                      PersistenceUnavailable)
from chat_relay.domain.models import Conversation, ConversationSummary, Message
from chat_relay.domain.ports.message_repo import MessageRepoPort
from chat_relay.utils.text import title_from_text

logger = logging.getLogger(__name__)


@contextmanager
def _db_errors(action: str):
    """Translate driver errors into the persistence error taxonomy."""
    try:
        yield
    except (pg_errors.UniqueViolation, pg_errors.DataError) as e:
        # duplicate primary key or an id the column type refuses
        raise ConversationConflict(f'{action} rejected: {type(e).__name__}: {e}') from e
    except psycopg.OperationalError as e:
        raise PersistenceUnavailable(f'{action} failed: store unavailable: {e}') from e
    except psycopg.Error as e:
        raise PersistenceError(f'{action} failed: {type(e).__name__}: {e}') from e


class PgMessageRepo(MessageRepoPort):
    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    @staticmethod
    def _to_domain_conversation(row: dict) -> Conversation:
        return Conversation(
            id=str(row['id']),  # UUID -> opaque string
            user_id=row['user_id'],
            status=row['status'],
            created_at=row['created_at'],
        )

    @staticmethod
    def _to_domain_message(row: dict) -> Message:
        return Message(
            id=row['id'],
            conversation_id=str(row['conversation_id']),
            content=row['content'],
            sender_type=row['sender_type'],
            created_at=row['created_at'],
        )

    async def create_conversation(
        self,
        *,
        user_id: str,
        status: str = 'active',
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        if conversation_id is None:
            q = """INSERT INTO conversations (user_id, status) VALUES (%s, %s)
                   RETURNING id, user_id, status, created_at"""
            params = (user_id, status)
        else:
            q = """INSERT INTO conversations (id, user_id, status) VALUES (%s, %s, %s)
                   RETURNING id, user_id, status, created_at"""
            params = (conversation_id, user_id, status)

        with _db_errors('create conversation'):
            async with (
                self.pool.connection() as conn,
                conn.cursor(row_factory=dict_row) as cur,
            ):
                await cur.execute(q, params)
                row = await cur.fetchone()
                return self._to_domain_conversation(row)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        q = 'SELECT id, user_id, status, created_at FROM conversations WHERE id = %s'
        try:
            with _db_errors('get conversation'):
                async with (
                    self.pool.connection() as conn,
                    conn.cursor(row_factory=dict_row) as cur,
                ):
                    await cur.execute(q, (conversation_id,))
                    row = await cur.fetchone()
        except ConversationConflict:
            # an id the column type refuses cannot exist
            logger.debug('[repo] malformed conversation id %r; treating as absent', conversation_id)
            return None
        return self._to_domain_conversation(row) if row else None

    async def append_message(
        self, conversation_id: str, *, content: str, sender_type: str
    ) -> Message:
        q = """INSERT INTO messages (conversation_id, content, sender_type)
               VALUES (%s, %s, %s)
               RETURNING id, conversation_id, content, sender_type, created_at"""
        with _db_errors('append message'):
            async with (
                self.pool.connection() as conn,
                conn.cursor(row_factory=dict_row) as cur,
            ):
                await cur.execute(q, (conversation_id, content, sender_type))
                row = await cur.fetchone()
                return self._to_domain_message(row)

    async def list_messages(self, conversation_id: str) -> List[Message]:
        q = """
        SELECT id, conversation_id, content, sender_type, created_at
        FROM messages
        WHERE conversation_id = %s
        ORDER BY created_at ASC, id ASC
        """
        with _db_errors('list messages'):
            async with (
                self.pool.connection() as conn,
                conn.cursor(row_factory=dict_row) as cur,
            ):
                await cur.execute(q, (conversation_id,))
                rows = await cur.fetchall()
                return [self._to_domain_message(r) for r in rows]

    async def recent_conversations(
        self, user_id: str, *, limit: int, offset: int = 0
    ) -> Tuple[List[ConversationSummary], int]:
        count_q = """SELECT COUNT(*) AS total FROM conversations
                     WHERE user_id = %s AND status = 'active'"""
        page_q = """
        SELECT c.id, c.created_at, c.status,
               (SELECT fm.content FROM messages fm
                 WHERE fm.conversation_id = c.id AND fm.sender_type = 'user'
                 ORDER BY fm.created_at ASC, fm.id ASC
                 LIMIT 1) AS first_user_content,
               lm.id AS last_id,
               lm.content AS last_content,
               lm.sender_type AS last_sender_type,
               lm.created_at AS last_created_at
        FROM conversations c
        LEFT JOIN LATERAL (
            SELECT id, content, sender_type, created_at
            FROM messages
            WHERE conversation_id = c.id
            ORDER BY created_at DESC, id DESC
            LIMIT 1
        ) lm ON TRUE
        WHERE c.user_id = %s AND c.status = 'active'
        ORDER BY c.created_at DESC
        LIMIT %s OFFSET %s
        """
        with _db_errors('recent conversations'):
            async with (
                self.pool.connection() as conn,
                conn.cursor(row_factory=dict_row) as cur,
            ):
                await cur.execute(count_q, (user_id,))
                total = (await cur.fetchone())['total']
                await cur.execute(page_q, (user_id, limit, offset))
                rows = await cur.fetchall()

        out = []
        for r in rows:
            last = None
            if r['last_id'] is not None:
                last = Message(
                    id=r['last_id'],
                    conversation_id=str(r['id']),
                    content=r['last_content'],
                    sender_type=r['last_sender_type'],
                    created_at=r['last_created_at'],
                )
            out.append(ConversationSummary(
                id=str(r['id']),
                created_at=r['created_at'],
                status=r['status'],
                title=title_from_text(r['first_user_content']),
                last_message=last,
            ))
        return out, total
