"""Abstract base classes for the template-to-PDF pipeline."""

from texfill.interfaces.compiler import (
    BaseCompiler,
    CompilationAttempt,
    CompilationResult,
    CompilerEngine,
)
from texfill.interfaces.llm import BaseLLMClient
from texfill.interfaces.template import BaseSchemaExtractor, BaseTemplateInjector

__all__ = [
    "BaseCompiler",
    "BaseLLMClient",
    "BaseSchemaExtractor",
    "BaseTemplateInjector",
    "CompilationAttempt",
    "CompilationResult",
    "CompilerEngine",
]
