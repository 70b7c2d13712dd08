"""Concrete strategy implementations."""

from texfill.strategies.compilers import CompilerChain
from texfill.strategies.llm import OpenAICompletionClient
from texfill.strategies.template_engine import LatexInjector, SchemaExtractor

__all__ = [
    "CompilerChain",
    "LatexInjector",
    "OpenAICompletionClient",
    "SchemaExtractor",
]
