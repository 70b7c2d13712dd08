"""Quick structural validation of LaTeX templates.

Used to give users early feedback before a template is sent for field
extraction. The check is textual; nothing is compiled.
"""

import logging
import re

from texfill.strategies.template_engine.models import TemplateStructure, TemplateValidation

logger = logging.getLogger(__name__)

_NEWCOMMAND = re.compile(r"\\newcommand")
_DEF = re.compile(r"\\def\\")


def validate_template(latex: str) -> TemplateValidation:
    """Check a template for required structure and common issues.

    Args:
        latex: Raw LaTeX source.

    Returns:
        TemplateValidation with errors (fatal) and warnings (advisory).
    """
    structure = TemplateStructure(
        has_document_class="\\documentclass" in latex,
        has_begin_document="\\begin{document}" in latex,
        has_end_document="\\end{document}" in latex,
        has_new_commands=bool(_NEWCOMMAND.search(latex)),
        has_def_commands=bool(_DEF.search(latex)),
    )

    errors: list[str] = []
    warnings: list[str] = []

    if not structure.has_document_class:
        errors.append("Missing \\documentclass declaration")
    if not structure.has_begin_document:
        errors.append("Missing \\begin{document}")
    if not structure.has_end_document:
        errors.append("Missing \\end{document}")

    if not structure.has_new_commands and not structure.has_def_commands:
        warnings.append(
            "No \\newcommand or \\def found - template might not have fillable fields"
        )

    open_braces = latex.count("{")
    close_braces = latex.count("}")
    if open_braces != close_braces:
        warnings.append(f"Unbalanced braces: {open_braces} open, {close_braces} close")

    validation = TemplateValidation(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        structure=structure,
    )
    logger.info(f"LaTeX validation: {'PASS' if validation.valid else 'FAIL'}")
    return validation
