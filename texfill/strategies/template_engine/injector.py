"""Template injector strategy.

Injects user-supplied values into LaTeX templates. Values are escaped for
LaTeX and substituted into every recognized placeholder convention, then the
result is checked for the markers every LaTeX document needs.
"""

import logging
import re
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from texfill.core.exceptions import MissingStructure
from texfill.interfaces.template import BaseTemplateInjector
from texfill.strategies.template_engine.models import FieldDescriptor

logger = logging.getLogger(__name__)

DOCUMENT_CLASS_MARKER = "\\documentclass"
BEGIN_DOCUMENT_MARKER = "\\begin{document}"

_VALID_FIELD_ID = re.compile(r"^[a-z0-9_]+$")

# Definition body: escape pairs, one level of balanced braces, or plain text.
_BODY = r"(?:\\.|\{[^{}]*\}|[^{}\\])*"

# Escape rules, backslash first, then braces, then the remaining reserved
# symbols. Applied in one pass so no rule sees another rule's output.
LATEX_ESCAPES: dict[str, str] = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "$": r"\$",
    "&": r"\&",
    "%": r"\%",
    "#": r"\#",
    "_": r"\_",
    "^": r"\^{}",
    "~": r"\~{}",
}

_ESCAPE_PATTERN = re.compile("|".join(re.escape(char) for char in LATEX_ESCAPES))


def escape_latex(value: str) -> str:
    """Escape a plain-text value so it renders literally in LaTeX.

    Args:
        value: The raw user value.

    Returns:
        The escaped value.
    """
    return _ESCAPE_PATTERN.sub(lambda match: LATEX_ESCAPES[match.group(0)], value)


PLACEHOLDER_CONVENTIONS = ("newcommand", "def", "brace", "var", "angle")


def placeholder_pattern(field_ids: Iterable[str]) -> re.Pattern[str]:
    """Build one pattern matching every placeholder of the given field ids.

    Alternatives follow the convention order. Each alternative is a named
    group (the convention) holding an ``<convention>_id`` group; definition
    conventions also hold a ``<convention>_head`` group that is kept while
    the body after it is replaced.
    """
    keys = "|".join(re.escape(field_id) for field_id in field_ids)
    alternatives = (
        rf"(?P<newcommand>(?P<newcommand_head>\\newcommand\{{\\(?P<newcommand_id>{keys})\}}\{{){_BODY}\}})",
        rf"(?P<def>(?P<def_head>\\def\\(?P<def_id>{keys})\{{){_BODY}\}})",
        rf"(?P<brace>(?<!\\VAR)\{{(?P<brace_id>{keys})\}})",
        rf"(?P<var>\\VAR\{{(?P<var_id>{keys})\}})",
        rf"(?P<angle><<(?P<angle_id>{keys})>>)",
    )
    return re.compile("|".join(alternatives))


class LatexInjector(BaseTemplateInjector):
    """Substitutes escaped values into LaTeX placeholders.

    Supported conventions, tried in this order at each position:

    1. ``\\newcommand{\\id}{body}``: the body is replaced
    2. ``\\def\\id{body}``: the body is replaced
    3. ``{id}``: the whole token is replaced
    4. ``\\VAR{id}``: the whole token is replaced
    5. ``<<id>>``: the whole token is replaced

    Every occurrence of every convention is substituted in a single pass
    over the template, so inserted values are never scanned for placeholders.
    """

    def inject(
        self,
        template: str,
        values: Mapping[str, Any],
        fields: Sequence[FieldDescriptor] | None = None,
    ) -> str:
        """Inject values into the template.

        Args:
            template: Raw LaTeX source.
            values: Mapping of field id to user value. Ids outside the schema
                are ignored; schema ids without a value substitute "".
            fields: Optional field schema. Without it the value keys drive
                substitution.

        Returns:
            The processed document.

        Raises:
            MissingStructure: If \\documentclass or \\begin{document} is
                absent from the processed document.
        """
        replacements = self._resolve_values(values, fields)
        logger.info(f"Injecting {len(replacements)} field values")

        processed = template
        counts: Counter[tuple[str, str]] = Counter()
        if replacements:
            safe_values = {
                field_id: escape_latex(value) for field_id, value in replacements.items()
            }
            processed = placeholder_pattern(safe_values).sub(
                lambda match: self._substitute(match, safe_values, counts), template
            )

        for (convention, field_id), count in counts.items():
            logger.debug(f"Replaced {count} {convention} placeholder(s) for '{field_id}'")

        self._check_structure(processed)

        logger.info(f"Injection complete: {counts.total()} replacements")
        return processed

    @staticmethod
    def _substitute(
        match: re.Match[str],
        safe_values: Mapping[str, str],
        counts: Counter[tuple[str, str]],
    ) -> str:
        convention = next(name for name in PLACEHOLDER_CONVENTIONS if match.group(name))
        field_id = match.group(f"{convention}_id")
        counts[(convention, field_id)] += 1

        head = match.groupdict().get(f"{convention}_head")
        if head is None:
            return safe_values[field_id]
        return f"{head}{safe_values[field_id]}}}"

    @staticmethod
    def _resolve_values(
        values: Mapping[str, Any],
        fields: Sequence[FieldDescriptor] | None,
    ) -> dict[str, str]:
        """Map each field id to be substituted onto its string value."""
        if fields is not None:
            ids = [field.id for field in fields]
            known = set(ids)
            ignored = [key for key in values if key not in known]
        else:
            ids = [key for key in values if _VALID_FIELD_ID.match(key)]
            ignored = [key for key in values if not _VALID_FIELD_ID.match(key)]

        if ignored:
            logger.debug(f"Ignoring unknown field ids: {ignored}")

        resolved: dict[str, str] = {}
        for field_id in ids:
            value = values.get(field_id)
            resolved[field_id] = "" if value is None else str(value)
        return resolved

    @staticmethod
    def _check_structure(document: str) -> None:
        for marker in (DOCUMENT_CLASS_MARKER, BEGIN_DOCUMENT_MARKER):
            if marker not in document:
                logger.warning(f"Processed document is missing {marker}")
                raise MissingStructure(marker)
