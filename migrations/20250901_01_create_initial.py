from yoyo import step

steps = [
    step(
        """
        CREATE TABLE conversations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id TEXT NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'active',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        CREATE INDEX idx_conversations_user_status_created_at
        ON conversations (user_id, status, created_at DESC);
        """,
        """
        DROP INDEX IF EXISTS idx_conversations_user_status_created_at;
        DROP TABLE conversations;
        """
    ),

    step(
        """
        CREATE TABLE messages (
            id BIGSERIAL PRIMARY KEY,
            conversation_id UUID NOT NULL
                REFERENCES conversations(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            sender_type VARCHAR(10) NOT NULL
                CHECK (sender_type IN ('user', 'bot')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        CREATE INDEX idx_messages_conv_created_at
        ON messages (conversation_id, created_at, id);
        """,
        """
        DROP INDEX IF EXISTS idx_messages_conv_created_at;
        DROP TABLE messages;
        """
    ),
]
