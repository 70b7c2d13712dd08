"""Template engine strategies.

Implements field schema extraction, value injection and structural
validation for LaTeX templates.
"""

from texfill.strategies.template_engine.extractor import SchemaExtractor
from texfill.strategies.template_engine.injector import LatexInjector, escape_latex
from texfill.strategies.template_engine.models import (
    FieldDescriptor,
    FieldSchema,
    TemplateValidation,
)
from texfill.strategies.template_engine.validator import validate_template

__all__ = [
    "FieldDescriptor",
    "FieldSchema",
    "LatexInjector",
    "SchemaExtractor",
    "TemplateValidation",
    "escape_latex",
    "validate_template",
]
