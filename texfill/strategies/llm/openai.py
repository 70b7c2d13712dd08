"""OpenAI-based text completion client.

Uses the chat completions API of OpenAI or any compatible endpoint
(e.g. OpenRouter via ``base_url``).
"""

import logging

from openai import AsyncOpenAI

from texfill.interfaces.llm import BaseLLMClient

logger = logging.getLogger(__name__)


class OpenAICompletionClient(BaseLLMClient):
    """Single-turn completion client backed by ``AsyncOpenAI``.

    Attributes:
        client: The async OpenAI client instance.
        model: The chat model to use.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        temperature: float = 0.1,
        request_timeout: float = 60.0,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key for the endpoint.
            model: Chat model name.
            base_url: Optional custom base URL for the API.
            temperature: Sampling temperature.
            request_timeout: Transport-level timeout in seconds.
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=request_timeout,
            max_retries=0,
        )
        self._model = model
        self._temperature = temperature

    async def complete(self, prompt: str, max_output_tokens: int) -> str:
        """Send one user message and return the reply text.

        Args:
            prompt: The full prompt text.
            max_output_tokens: Upper bound on the response length.

        Returns:
            The reply text, or "" when the model returned no content.

        Raises:
            OpenAIError: If the API call fails.
        """
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_output_tokens,
            temperature=self._temperature,
        )

        content = response.choices[0].message.content if response.choices else None
        logger.info(f"LLM response received: {len(content) if content else 0} chars")
        return content or ""

    @property
    def model_name(self) -> str:
        return self._model
