"""Language model client implementations."""

from texfill.strategies.llm.openai import OpenAICompletionClient

__all__ = ["OpenAICompletionClient"]
