import abc
from typing import Dict, List


class LLMPort(abc.ABC):
    @abc.abstractmethod
    async def generate(self, messages: List[Dict[str, str]]) -> str:
        """
        Given the full model request (system instruction first, then
        {role, content} turns), return the assistant's reply as plain text.

        Cancelling the awaiting task must abort the underlying request.
        """
        raise NotImplementedError
