from functools import lru_cache
from typing import Optional

from chat_relay.adapters.llm.anthropic import AnthropicAdapter
from chat_relay.adapters.llm.constants import AnthropicModels, Provider
from chat_relay.adapters.llm.dummy import DummyLLMAdapter
from chat_relay.adapters.llm.openai import OpenAIAdapter
from chat_relay.domain.errors import ConfigError
from chat_relay.domain.ports.llm import LLMPort
from chat_relay.settings import settings


def make_openai() -> OpenAIAdapter:
    if not settings.OPENAI_API_KEY:
        raise ConfigError('OPENAI_API_KEY is required for provider=openai')

    return OpenAIAdapter(
        api_key=settings.OPENAI_API_KEY,
        model=settings.LLM_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        temperature=settings.LLM_TEMPERATURE,
        max_output_tokens=settings.MAX_OUTPUT_TOKENS,
    )


def make_claude() -> AnthropicAdapter:
    if not settings.ANTHROPIC_API_KEY:
        raise ConfigError('ANTHROPIC_API_KEY is required for provider=anthropic')

    model = settings.LLM_MODEL
    if not model.startswith('claude'):
        model = AnthropicModels.CLAUDE_35.value
    return AnthropicAdapter(
        api_key=settings.ANTHROPIC_API_KEY,
        model=model,
        temperature=settings.LLM_TEMPERATURE,
        max_output_tokens=settings.MAX_OUTPUT_TOKENS,
    )


def get_llm(provider: Optional[str] = None) -> LLMPort:
    wanted = provider or settings.LLM_PROVIDER or Provider.DUMMY
    try:
        wanted = Provider(getattr(wanted, 'value', wanted).strip().lower())
    except ValueError:
        raise ConfigError(f'{wanted} is not a supported LLM provider')

    if wanted == Provider.OPENAI:
        return make_openai()
    if wanted == Provider.ANTHROPIC:
        return make_claude()
    return DummyLLMAdapter()


@lru_cache(maxsize=1)
def get_llm_singleton() -> LLMPort:
    # Build once per process
    return get_llm()


def reset_llm_singleton_cache() -> None:
    get_llm_singleton.cache_clear()
