"""Schema extractor strategy.

Asks a language model to list the fillable fields of a LaTeX template and
validates the answer into a FieldSchema. The model output is treated as
untrusted text: it is cleaned, the first JSON array is cut out by bracket
matching, parsed with ``json.loads`` and filtered field by field.
"""

import asyncio
import json
import logging
import re
from typing import Any

from texfill.core.exceptions import (
    ExtractionTimeout,
    InvalidModelOutput,
    MalformedTemplate,
    ModelServiceError,
    NoFieldsFound,
)
from texfill.interfaces.llm import BaseLLMClient
from texfill.interfaces.template import BaseSchemaExtractor
from texfill.strategies.template_engine.models import FieldDescriptor, FieldSchema

logger = logging.getLogger(__name__)


# =============================================================================
# Extraction Prompt
# =============================================================================

FIELD_EXTRACTION_PROMPT = """
You are a LaTeX resume parsing assistant. Analyze this LaTeX template and extract ALL user-fillable fields.

Look for these patterns:
1. \\newcommand{{\\fieldname}}{{default value}}
2. \\def\\fieldname{{default value}}
3. {{PLACEHOLDER}} or {{fieldname}}
4. \\VAR{{fieldname}}
5. <<fieldname>> or [fieldname]
6. Any obvious placeholder text like "Your Name", "your.email@domain.com", etc.

For each field found, create a JSON object with:
- id: machine-readable key (lowercase, underscores for spaces, no special chars)
- label: human-readable label (proper case, spaces allowed)
- default: the current value/placeholder text

Return ONLY a valid JSON array. Be comprehensive - extract every fillable field you can identify.

Example output:
[
  {{"id": "name", "label": "Full Name", "default": "John Doe"}},
  {{"id": "email", "label": "Email Address", "default": "john@example.com"}},
  {{"id": "phone", "label": "Phone Number", "default": "(555) 123-4567"}}
]

### LATEX TEMPLATE START ###
{template}
### LATEX TEMPLATE END ###

Return JSON array:
""".strip()

_CODE_FENCE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)\s*```", re.DOTALL)
_DISALLOWED_ID_CHARS = re.compile(r"[^a-z0-9_]")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences and stray backticks around a response."""
    cleaned = text.strip()
    fenced = _CODE_FENCE.search(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    return cleaned.strip("`").strip()


def find_json_array(text: str) -> str | None:
    """Return the first top-level JSON array literal in ``text``.

    Brackets inside JSON string literals are ignored. Returns None when no
    balanced array is present.
    """
    start = text.find("[")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def normalize_field_id(raw_id: str) -> str:
    """Lowercase an id and drop characters outside ``[a-z0-9_]``."""
    return _DISALLOWED_ID_CHARS.sub("", raw_id.lower())


class SchemaExtractor(BaseSchemaExtractor):
    """Extracts fillable fields from LaTeX templates with a language model.

    The model is called exactly once per template; there are no retries and
    no fallback heuristics.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        timeout_seconds: float = 45.0,
        max_output_tokens: int = 4000,
        prompt_template: str | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            llm_client: Text completion backend.
            timeout_seconds: Budget for the model call.
            max_output_tokens: Response length bound passed to the model.
            prompt_template: Custom prompt with a ``{template}`` slot to use
                instead of the default.
        """
        self._llm = llm_client
        self._timeout_seconds = timeout_seconds
        self._max_output_tokens = max_output_tokens
        self._prompt_template = prompt_template or FIELD_EXTRACTION_PROMPT

        logger.info(
            f"SchemaExtractor initialized: model={llm_client.model_name}, "
            f"timeout={timeout_seconds}s"
        )

    def build_prompt(self, template: str) -> str:
        """Embed the raw template in the extraction prompt."""
        return self._prompt_template.format(template=template)

    async def extract(self, template: str) -> FieldSchema:
        """Extract the ordered field schema of a template.

        Args:
            template: Raw LaTeX source.

        Returns:
            FieldSchema with at least one field.

        Raises:
            MalformedTemplate: If the source has no \\documentclass.
            ExtractionTimeout: If the model does not answer in time.
            ModelServiceError: If the model call fails.
            InvalidModelOutput: If the response holds no parseable JSON array.
            NoFieldsFound: If no response entry survives validation.
        """
        if not template.strip():
            raise MalformedTemplate("No LaTeX provided")
        if "\\documentclass" not in template:
            raise MalformedTemplate("Invalid LaTeX template: Missing \\documentclass")

        raw = await self._call_model(self.build_prompt(template))
        logger.info(f"Raw model response preview: {raw[:200]!r}")

        candidates = self._parse_response(raw)
        fields = self._validate_fields(candidates)

        if not fields:
            logger.warning(f"No valid fields among {len(candidates)} candidates")
            raise NoFieldsFound(candidates)

        logger.info(
            f"Successfully parsed {len(fields)} fields: "
            f"{', '.join(field.id for field in fields)}"
        )
        return FieldSchema(fields=fields, candidates_found=len(candidates))

    async def _call_model(self, prompt: str) -> str:
        logger.info(f"Calling {self._llm.model_name} for schema extraction")
        try:
            async with asyncio.timeout(self._timeout_seconds):
                content = await self._llm.complete(prompt, self._max_output_tokens)
        except TimeoutError as e:
            logger.warning(f"Schema extraction timed out after {self._timeout_seconds}s")
            raise ExtractionTimeout(self._timeout_seconds) from e
        except Exception as e:
            logger.error(f"Language model call failed: {e}", exc_info=True)
            raise ModelServiceError(f"AI extraction failed: {e}") from e

        return content or ""

    @staticmethod
    def _parse_response(raw: str) -> list[Any]:
        """Cut the JSON array out of the response and parse it."""
        cleaned = strip_code_fences(raw)
        array_text = find_json_array(cleaned)
        if array_text is None:
            logger.warning("Invalid JSON structure from model")
            raise InvalidModelOutput("AI returned invalid JSON format", raw=raw, cleaned=cleaned)

        try:
            parsed = json.loads(array_text)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {e}")
            raise InvalidModelOutput(
                "Failed to parse AI response as JSON",
                raw=raw,
                cleaned=array_text,
                parse_error=str(e),
            ) from e

        if not isinstance(parsed, list):
            raise InvalidModelOutput(
                f"Expected JSON array from AI, got {type(parsed).__name__}",
                raw=raw,
                cleaned=array_text,
            )
        return parsed

    @staticmethod
    def _validate_fields(candidates: list[Any]) -> list[FieldDescriptor]:
        """Keep well-formed entries, normalized and de-duplicated by id."""
        fields: list[FieldDescriptor] = []
        seen: set[str] = set()

        for item in candidates:
            if not isinstance(item, dict):
                continue
            raw_id = item.get("id")
            raw_label = item.get("label")
            if not isinstance(raw_id, str) or not isinstance(raw_label, str):
                continue

            field_id = normalize_field_id(raw_id)
            label = raw_label.strip()
            if not field_id or not label:
                logger.debug(f"Dropping field with unusable id/label: {item!r}")
                continue
            if field_id in seen:
                logger.debug(f"Dropping duplicate field id: {field_id}")
                continue

            default = item.get("default")
            fields.append(
                FieldDescriptor(
                    id=field_id,
                    label=label,
                    default="" if default is None else str(default).strip(),
                )
            )
            seen.add(field_id)

        return fields
