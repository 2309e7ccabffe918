from types import SimpleNamespace
from unittest.mock import Mock

import httpx
import openai
import pytest

from chat_relay.adapters.llm.openai import OpenAIAdapter
from chat_relay.domain.errors import ModelServiceError


class FakeCompletions:
    def __init__(self, calls, content='FAKE-OUTPUT', error=None):
        self.calls = calls
        self.content = content
        self.error = error

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.content is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))]
        )


class FakeClient:
    def __init__(self, calls, **kwargs):
        self.chat = SimpleNamespace(completions=FakeCompletions(calls, **kwargs))


def test_adapter_config():
    client = Mock()
    adapter = OpenAIAdapter(api_key='test', client=client)

    assert adapter.client == client
    assert adapter.model == 'gpt-3.5-turbo'
    assert adapter.temperature == 0.7
    assert adapter.max_output_tokens == 1000


@pytest.mark.asyncio
async def test_generate_sends_messages_and_returns_text():
    calls = []
    adapter = OpenAIAdapter(
        api_key='sk-test', client=FakeClient(calls), model='gpt-4o', temperature=0.2,
        max_output_tokens=50,
    )
    msgs = [
        {'role': 'system', 'content': 'SYS'},
        {'role': 'user', 'content': 'hi'},
    ]

    out = await adapter.generate(msgs)

    assert out == 'FAKE-OUTPUT'
    assert len(calls) == 1
    sent = calls[0]
    assert sent['model'] == 'gpt-4o'
    assert sent['temperature'] == 0.2
    assert sent['max_tokens'] == 50
    assert sent['messages'] == msgs


@pytest.mark.asyncio
async def test_missing_choices_yield_empty_text():
    adapter = OpenAIAdapter(api_key='sk', client=FakeClient([], content=None))
    assert await adapter.generate([{'role': 'user', 'content': 'hi'}]) == ''


@pytest.mark.asyncio
async def test_null_content_yields_empty_text():
    adapter = OpenAIAdapter(api_key='sk', client=FakeClient([], content=''))
    assert await adapter.generate([{'role': 'user', 'content': 'hi'}]) == ''


@pytest.mark.asyncio
async def test_api_errors_become_model_service_errors():
    err = openai.APIConnectionError(request=httpx.Request('POST', 'https://openrouter.ai/api/v1'))
    adapter = OpenAIAdapter(api_key='sk', client=FakeClient([], error=err))

    with pytest.raises(ModelServiceError, match='APIConnectionError'):
        await adapter.generate([{'role': 'user', 'content': 'hi'}])


@pytest.mark.asyncio
async def test_failing_call_is_sent_exactly_once():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request.url.path)
        return httpx.Response(500, json={'error': {'message': 'upstream down'}})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = OpenAIAdapter(api_key='sk', base_url='http://llm.test/v1', http_client=http_client)

    with pytest.raises(ModelServiceError, match='InternalServerError'):
        await adapter.generate([{'role': 'user', 'content': 'hi'}])

    assert attempts == ['/v1/chat/completions']
    await http_client.aclose()
