"""Base agent abstraction."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar, Union

from ..services.xai import Message, XAIClient

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

UserContent = Union[str, list[dict[str, Any]]]


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for AI agents.

    Provides shared functionality for agents that use a Grok chat model.
    Subclasses must implement the `run` method and define their prompts.
    """

    def __init__(
        self,
        client: XAIClient,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: XAIClient used for chat calls.
            model: Model to use. Defaults to the client's chat model.
        """
        self._client = client
        self._model = model or client.chat_model
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @abstractmethod
    async def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task.

        Args:
            input_data: Input data for the agent.

        Returns:
            Structured output from the agent.
        """
        ...

    async def _create_message(
        self,
        system: str,
        content: UserContent,
        temperature: float = 0.7,
        response_format: Optional[dict[str, Any]] = None,
    ) -> str:
        """Send a system prompt and one user turn.

        Args:
            system: The system prompt.
            content: User content, plain text or a list of content parts.
            temperature: Sampling temperature.
            response_format: Optional structured-output constraint.

        Returns:
            The text content of the model's response.
        """
        messages: list[Message] = [
            {"role": "system", "content": system},
            {"role": "user", "content": content},
        ]
        self._logger.debug(f"Creating message with {len(messages)} messages")

        try:
            response = await self._client.chat(
                messages,
                temperature=temperature,
                response_format=response_format,
                model=self._model,
            )
            self._logger.debug(f"Received response of length: {len(response)}")
            return response

        except Exception as e:
            self._logger.error(f"Error creating message: {e}")
            raise
