"""Interface for AI Language Models (LLMs).

Defines the contract for sending messages to a chat model and getting back
structured responses.
"""

import abc
from typing import List, Optional

from ..models.ai import ChatMessage, StructuredAIResponse
from ..models.common import MessageRole


class AIModel(abc.ABC):
    """Abstract Base Class for AI language model interactions."""

    @abc.abstractmethod
    async def send_messages(
        self,
        messages: List[ChatMessage],
        model: Optional[str] = None,
        json_mode: bool = False,
    ) -> StructuredAIResponse:
        """Sends a list of messages to the AI model asynchronously.

        Args:
            messages: The conversation to send.
            model: Model name overriding the client default.
            json_mode: Ask the provider to constrain the reply to a JSON object.

        Returns:
            A StructuredAIResponse containing the AI's reply and metadata.

        Raises:
            ServiceError: With an ErrorCode describing the upstream failure.
        """
        pass

    async def complete_json(self, prompt: str, model: Optional[str] = None) -> str:
        """Sends a single user prompt in JSON mode and returns the raw reply text."""
        messages: List[ChatMessage] = [ChatMessage(role=MessageRole("user"), content=prompt)]
        response = await self.send_messages(messages, model=model, json_mode=True)
        return response.content
