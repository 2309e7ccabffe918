from typing import Optional

from pydantic import AnyUrl, field_validator
from pydantic_settings import BaseSettings

from chat_relay.adapters.llm.constants import SYSTEM_PROMPT, Provider


class Settings(BaseSettings):
    DATABASE_URL: Optional[AnyUrl] = None
    POOL_MIN: int = 1
    POOL_MAX: int = 10
    USE_INMEMORY_REPO: bool = False
    DISABLE_DB_POOL: bool = False

    LLM_PROVIDER: Optional[Provider] = Provider.OPENAI
    LLM_MODEL: str = 'gpt-3.5-turbo'
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = 'https://openrouter.ai/api/v1'
    ANTHROPIC_API_KEY: Optional[str] = None
    LLM_TEMPERATURE: float = 0.7
    MAX_OUTPUT_TOKENS: int = 1000
    SYSTEM_PROMPT: str = SYSTEM_PROMPT

    MODEL_TIMEOUT_S: float = 30
    REQUEST_TIMEOUT_S: float = 10
    CACHE_MAX_ENTRIES: int = 100
    CACHE_TTL_S: float = 300
    HISTORY_CAP: int = 300

    ENVIRONMENT: str = 'production'
    LOG_LEVEL: str = 'INFO'

    class Config:
        env_file = '.env'
        extra = 'ignore'

    @field_validator(
        'LLM_PROVIDER',
        'OPENAI_API_KEY',
        'OPENAI_BASE_URL',
        'ANTHROPIC_API_KEY',
        'DATABASE_URL',
        mode='before',
    )
    def allow_blank(cls, v):
        if v == '' or v is None:
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == 'production'


settings = Settings()
