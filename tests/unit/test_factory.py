"""Unit tests for settings and the component factory."""

import pytest
from pydantic import ValidationError

from texfill.core.config import Settings
from texfill.core.factory import ComponentFactory
from texfill.core.pipeline import GenerationPipeline
from texfill.strategies.compilers import CompilerChain
from texfill.strategies.llm import OpenAICompletionClient
from texfill.strategies.template_engine import SchemaExtractor
from tests.unit.fakes import FakeLLMClient


class TestSettings:
    """Test suite for Settings validation."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.compiler_engines == ["tectonic-local", "tectonic", "pdflatex"]
        assert settings.extraction_timeout_seconds == 45.0
        assert settings.compile_timeout_seconds == 45.0
        assert settings.log_tail_chars == 3000
        assert settings.max_template_bytes == 200 * 1024
        assert settings.attachment_filename == "resume.pdf"

    def test_settings_are_frozen(self, settings):
        with pytest.raises(ValidationError):
            settings.log_level = "DEBUG"

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_empty_engine_list_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, compiler_engines=[])

    def test_basename_must_be_plain(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, document_basename="../resume")


class TestComponentFactory:
    """Test suite for ComponentFactory."""

    def test_builds_openai_client(self, settings):
        client = ComponentFactory(settings).get_llm_client()

        assert isinstance(client, OpenAICompletionClient)
        assert client.model_name == settings.llm_chat_model

    def test_missing_api_key(self):
        factory = ComponentFactory(Settings(_env_file=None, openai_api_key=""))
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            factory.get_llm_client()

    def test_unknown_provider(self):
        factory = ComponentFactory(Settings(_env_file=None, llm_provider="mystery"))
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            factory.get_llm_client()

    def test_injected_llm_client(self, settings):
        llm = FakeLLMClient()
        extractor = ComponentFactory(settings, llm_client=llm).get_schema_extractor()
        assert isinstance(extractor, SchemaExtractor)

    def test_compiler_follows_settings(self):
        settings = Settings(_env_file=None, compiler_engines=["pdflatex", "xelatex"])
        compiler = ComponentFactory(settings).get_compiler()

        assert isinstance(compiler, CompilerChain)
        assert [engine.name for engine in compiler.engines] == ["pdflatex", "xelatex"]

    def test_unknown_engine_rejected(self):
        factory = ComponentFactory(Settings(_env_file=None, compiler_engines=["word"]))
        with pytest.raises(ValueError):
            factory.get_compiler()

    def test_components_are_cached(self, settings):
        factory = ComponentFactory(settings, llm_client=FakeLLMClient())

        pipeline = factory.get_pipeline()
        assert isinstance(pipeline, GenerationPipeline)
        assert factory.get_pipeline() is pipeline
        assert factory.get_compiler() is factory.get_compiler()

        factory.clear_cache()
        assert factory.get_pipeline() is not pipeline
