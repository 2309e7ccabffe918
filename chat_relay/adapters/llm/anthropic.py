from typing import Dict, List, Optional, Tuple

import anthropic
import httpx
from anthropic import AsyncAnthropic

from chat_relay.adapters.llm.constants import AnthropicModels
from chat_relay.domain import errors as de
from chat_relay.domain.ports.llm import LLMPort


class AnthropicAdapter(LLMPort):
    def __init__(
        self,
        api_key: str,
        client: Optional[AsyncAnthropic] = None,
        model: str = AnthropicModels.CLAUDE_35.value,
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.client = client or AsyncAnthropic(
            api_key=api_key, max_retries=0, http_client=http_client
        )
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @staticmethod
    def _split_system(messages: List[Dict[str, str]]) -> Tuple[str, List[dict]]:
        # Anthropic takes the system prompt as a top-level field
        system_parts = []
        mapped = []
        for m in messages:
            if m['role'] == 'system':
                system_parts.append(m['content'])
                continue
            role = 'assistant' if m['role'] in ('assistant', 'bot') else 'user'
            mapped.append({'role': role, 'content': [{'type': 'text', 'text': m['content']}]})
        return '\n\n'.join(system_parts), mapped

    async def generate(self, messages: List[Dict[str, str]]) -> str:
        system, mapped = self._split_system(messages)
        try:
            resp = await self.client.messages.create(
                model=self.model,
                system=system,
                messages=mapped,
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
            )
        except anthropic.APIError as e:
            raise de.ModelServiceError(
                f'anthropic provider failed: {type(e).__name__}: {e}'
            ) from e

        # Join text blocks from the response
        return ''.join(
            block.text for block in resp.content
            if getattr(block, 'type', None) == 'text'
        )
