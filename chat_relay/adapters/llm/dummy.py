from typing import Dict, List

from chat_relay.domain.ports.llm import LLMPort


class DummyLLMAdapter(LLMPort):
    async def generate(self, messages: List[Dict[str, str]]) -> str:
        last = messages[-1]['content'] if messages else ''
        return f'You said: {last}'
