"""Language model client interface.

The extractor only needs a single text-in/text-out completion call, so the
model service is hidden behind this narrow interface.
"""

from abc import ABC, abstractmethod


class BaseLLMClient(ABC):
    """Abstract base class for text completion backends."""

    @abstractmethod
    async def complete(self, prompt: str, max_output_tokens: int) -> str:
        """Send a single prompt and return the response text.

        Args:
            prompt: The full prompt text.
            max_output_tokens: Upper bound on the response length.

        Returns:
            The response text (possibly empty).

        Raises:
            Exception: Any transport or API failure of the backend.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier used for completions."""
