"""Unit tests for the schema extractor."""

import asyncio
import json

import pytest

from texfill.core.exceptions import (
    ExtractionTimeout,
    InvalidModelOutput,
    MalformedTemplate,
    ModelServiceError,
    NoFieldsFound,
)
from texfill.strategies.template_engine import SchemaExtractor
from texfill.strategies.template_engine.extractor import (
    find_json_array,
    normalize_field_id,
    strip_code_fences,
)
from tests.unit.fakes import FakeLLMClient


def run_extraction(response: str, template: str, **kwargs):
    llm = FakeLLMClient(response=response)
    extractor = SchemaExtractor(llm, **kwargs)
    return asyncio.run(extractor.extract(template)), llm


# =============================================================================
# Response Parsing Helpers
# =============================================================================


class TestResponseHelpers:
    """Test suite for the response cleaning helpers."""

    def test_strip_json_code_fence(self):
        assert strip_code_fences('```json\n[{"id": "a"}]\n```') == '[{"id": "a"}]'

    def test_strip_bare_code_fence(self):
        assert strip_code_fences("```\n[]\n```") == "[]"

    def test_strip_leaves_plain_text(self):
        assert strip_code_fences('  [{"id": "a"}]  ') == '[{"id": "a"}]'

    def test_find_array_in_prose(self):
        text = 'Here you go: [{"id": "a", "label": "A"}] hope that helps'
        assert find_json_array(text) == '[{"id": "a", "label": "A"}]'

    def test_find_array_ignores_brackets_in_strings(self):
        text = '[{"id": "a", "default": "see ] and [ here"}] trailing ]'
        assert json.loads(find_json_array(text)) == [
            {"id": "a", "default": "see ] and [ here"}
        ]

    def test_find_array_handles_escaped_quotes(self):
        text = r'[{"default": "say \"]\" please"}]'
        assert json.loads(find_json_array(text)) == [{"default": 'say "]" please'}]

    def test_find_array_returns_none_when_missing(self):
        assert find_json_array("no array here") is None

    def test_find_array_returns_none_when_unbalanced(self):
        assert find_json_array('[{"id": "a"}') is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Full Name!", "fullname"),
            ("email_address", "email_address"),
            ("Phone-Number 2", "phonenumber2"),
            ("!!!", ""),
        ],
    )
    def test_normalize_field_id(self, raw, expected):
        assert normalize_field_id(raw) == expected


# =============================================================================
# Extraction
# =============================================================================


class TestSchemaExtractor:
    """Test suite for SchemaExtractor.extract."""

    def test_extracts_ordered_fields(self, minimal_template):
        response = json.dumps([
            {"id": "name", "label": "Full Name", "default": "John Doe"},
            {"id": "email", "label": "Email Address", "default": "john@example.com"},
        ])
        schema, llm = run_extraction(response, minimal_template)

        assert schema.ids == ["name", "email"]
        assert schema.fields[0].label == "Full Name"
        assert schema.fields[0].default == "John Doe"
        assert schema.candidates_found == 2
        assert len(llm.prompts) == 1

    def test_prompt_embeds_template(self, minimal_template):
        _, llm = run_extraction('[{"id": "name", "label": "Name"}]', minimal_template)

        prompt = llm.prompts[0]
        assert "### LATEX TEMPLATE START ###" in prompt
        assert minimal_template in prompt
        assert "\\newcommand{\\fieldname}{default value}" in prompt

    def test_custom_prompt_template(self, minimal_template):
        _, llm = run_extraction(
            '[{"id": "name", "label": "Name"}]',
            minimal_template,
            prompt_template="Fields of: {template}",
        )
        assert llm.prompts[0] == f"Fields of: {minimal_template}"

    def test_normalizes_ids(self, minimal_template):
        schema, _ = run_extraction(
            '[{"id": "Full Name!", "label": "Full Name"}]', minimal_template
        )
        assert schema.ids == ["fullname"]

    def test_drops_field_missing_label(self, minimal_template):
        response = json.dumps([
            {"id": "name", "default": "John"},
            {"id": "email", "label": "Email"},
        ])
        schema, _ = run_extraction(response, minimal_template)

        assert schema.ids == ["email"]
        assert schema.candidates_found == 2

    def test_drops_invalid_entries(self, minimal_template):
        response = json.dumps([
            "not an object",
            {"id": 5, "label": "Number"},
            {"id": "!!!", "label": "Symbols"},
            {"id": "blank", "label": "   "},
            {"id": "ok", "label": "Ok"},
        ])
        schema, _ = run_extraction(response, minimal_template)
        assert schema.ids == ["ok"]

    def test_duplicate_ids_keep_first(self, minimal_template):
        response = json.dumps([
            {"id": "name", "label": "First"},
            {"id": "NAME", "label": "Second"},
        ])
        schema, _ = run_extraction(response, minimal_template)

        assert schema.ids == ["name"]
        assert schema.fields[0].label == "First"

    def test_defaults_are_normalized(self, minimal_template):
        response = json.dumps([
            {"id": "a", "label": " A ", "default": None},
            {"id": "b", "label": "B"},
            {"id": "c", "label": "C", "default": 2024},
            {"id": "d", "label": "D", "default": "  padded  "},
        ])
        schema, _ = run_extraction(response, minimal_template)

        assert [field.default for field in schema.fields] == ["", "", "2024", "padded"]
        assert schema.fields[0].label == "A"

    def test_fenced_response(self, minimal_template):
        schema, _ = run_extraction(
            '```json\n[{"id": "name", "label": "Name"}]\n```', minimal_template
        )
        assert schema.ids == ["name"]

    # =========================================================================
    # Failure Modes
    # =========================================================================

    def test_empty_array_raises_no_fields(self, minimal_template):
        with pytest.raises(NoFieldsFound) as exc_info:
            run_extraction("[]", minimal_template)
        assert exc_info.value.extra() == {"candidates_found": 0}

    def test_all_invalid_raises_no_fields(self, minimal_template):
        with pytest.raises(NoFieldsFound) as exc_info:
            run_extraction('[{"id": "x"}]', minimal_template)
        assert exc_info.value.candidates == [{"id": "x"}]

    def test_invalid_json_raises_with_diagnostics(self, minimal_template):
        raw = "[{'id': 'name', 'label': 'Name'}]"
        with pytest.raises(InvalidModelOutput) as exc_info:
            run_extraction(raw, minimal_template)

        error = exc_info.value
        assert error.raw == raw
        assert error.cleaned == raw
        assert error.parse_error
        assert error.status_code == 502

    def test_no_array_raises_invalid_output(self, minimal_template):
        with pytest.raises(InvalidModelOutput) as exc_info:
            run_extraction("I could not find any fields.", minimal_template)
        assert exc_info.value.raw == "I could not find any fields."

    def test_long_raw_output_is_truncated_in_payload(self, minimal_template):
        raw = "x" * 2000
        with pytest.raises(InvalidModelOutput) as exc_info:
            run_extraction(raw, minimal_template)

        preview = exc_info.value.extra()["raw"]
        assert len(preview) == 503
        assert preview.endswith("...")

    def test_missing_document_class_skips_model(self):
        llm = FakeLLMClient(response='[{"id": "a", "label": "A"}]')
        extractor = SchemaExtractor(llm)

        with pytest.raises(MalformedTemplate):
            asyncio.run(extractor.extract("Hello {name}"))
        assert llm.prompts == []

    def test_blank_template_is_malformed(self):
        llm = FakeLLMClient()
        with pytest.raises(MalformedTemplate):
            asyncio.run(SchemaExtractor(llm).extract("   \n"))
        assert llm.prompts == []

    def test_slow_model_times_out(self, minimal_template):
        llm = FakeLLMClient(response="[]", delay=5.0)
        extractor = SchemaExtractor(llm, timeout_seconds=0.05)

        with pytest.raises(ExtractionTimeout) as exc_info:
            asyncio.run(extractor.extract(minimal_template))

        assert exc_info.value.status_code == 504
        assert exc_info.value.timeout_seconds == 0.05

    def test_model_failure_raises_service_error(self, minimal_template):
        llm = FakeLLMClient(error=RuntimeError("quota exceeded"))
        extractor = SchemaExtractor(llm)

        with pytest.raises(ModelServiceError, match="quota exceeded"):
            asyncio.run(extractor.extract(minimal_template))
