from __future__ import annotations

from typing import Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from chat_relay.domain import errors as de
from chat_relay.domain.ports.llm import LLMPort


class OpenAIAdapter(LLMPort):
    """
    Chat Completions adapter. Works against OpenAI or any compatible
    gateway (OpenRouter by default) selected through `base_url`.
    """

    def __init__(
        self,
        api_key: str,
        client: Optional[AsyncOpenAI] = None,
        model: str = 'gpt-3.5-turbo',
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        # a turn is one request; the SDK must not re-send it
        self.client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, max_retries=0, http_client=http_client
        )
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate(self, messages: List[Dict[str, str]]) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
            )
        except openai.APIError as e:
            raise de.ModelServiceError(
                f'openai provider failed: {type(e).__name__}: {e}'
            ) from e

        choices = getattr(completion, 'choices', None) or []
        if not choices:
            return ''
        return choices[0].message.content or ''
