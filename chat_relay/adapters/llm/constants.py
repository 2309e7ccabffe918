from enum import Enum


class Provider(str, Enum):
    OPENAI = 'openai'
    ANTHROPIC = 'anthropic'
    DUMMY = 'dummy'


class AnthropicModels(str, Enum):
    CLAUDE_35 = 'claude-3-5-sonnet-latest'


SYSTEM_PROMPT = (
    'You are a business assistant. '
    'Answer professionally and precisely.'
)
