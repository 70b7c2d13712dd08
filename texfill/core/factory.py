"""Component Factory for strategy instantiation.

The Factory Pattern builds every pipeline component from one Settings value,
so components never read global configuration themselves.
"""

import logging

from texfill.core.config import Settings, get_settings
from texfill.core.pipeline import GenerationPipeline
from texfill.core.workspace import WorkspaceManager
from texfill.interfaces.compiler import BaseCompiler
from texfill.interfaces.llm import BaseLLMClient
from texfill.interfaces.template import BaseSchemaExtractor, BaseTemplateInjector
from texfill.strategies.compilers import CompilerChain, build_engines
from texfill.strategies.llm import OpenAICompletionClient
from texfill.strategies.template_engine import LatexInjector, SchemaExtractor

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        settings = get_settings()
        factory = ComponentFactory(settings)

        extractor = factory.get_schema_extractor()
        pipeline = factory.get_pipeline()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        llm_client: BaseLLMClient | None = None,
        compiler: BaseCompiler | None = None,
    ) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
            llm_client: Pre-built language model client; bypasses provider
                selection when given.
            compiler: Pre-built compiler; bypasses engine configuration
                when given.
        """
        self._settings = settings or get_settings()
        self._llm_cache: BaseLLMClient | None = llm_client
        self._extractor_cache: BaseSchemaExtractor | None = None
        self._injector_cache: BaseTemplateInjector | None = None
        self._compiler_cache: BaseCompiler | None = compiler
        self._workspace_cache: WorkspaceManager | None = None
        self._pipeline_cache: GenerationPipeline | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_llm_client(self) -> BaseLLMClient:
        """Get the language model client for the configured provider.

        Raises:
            ValueError: If the provider is unknown or its credentials are missing.
        """
        if self._llm_cache is None:
            provider = self._settings.llm_provider

            logger.info(f"Instantiating LLM client: {provider}")

            match provider:
                case "openai":
                    if not self._settings.openai_api_key:
                        raise ValueError("OPENAI_API_KEY is required for field extraction")
                    self._llm_cache = OpenAICompletionClient(
                        api_key=self._settings.openai_api_key,
                        model=self._settings.llm_chat_model,
                        base_url=self._settings.openai_base_url,
                        temperature=self._settings.llm_temperature,
                        request_timeout=self._settings.extraction_timeout_seconds + 15.0,
                    )
                case _:
                    raise ValueError(
                        f"Unknown LLM provider: {provider}. Valid options: 'openai'"
                    )

        return self._llm_cache

    def get_schema_extractor(self) -> BaseSchemaExtractor:
        """Get the schema extractor."""
        if self._extractor_cache is None:
            logger.info("Instantiating schema extractor")

            self._extractor_cache = SchemaExtractor(
                llm_client=self.get_llm_client(),
                timeout_seconds=self._settings.extraction_timeout_seconds,
                max_output_tokens=self._settings.llm_max_output_tokens,
            )

        return self._extractor_cache

    def get_injector(self) -> BaseTemplateInjector:
        """Get the template injector."""
        if self._injector_cache is None:
            logger.info("Instantiating template injector")

            self._injector_cache = LatexInjector()

        return self._injector_cache

    def get_compiler(self) -> BaseCompiler:
        """Get the compiler chain for the configured engines.

        Raises:
            ValueError: If an engine name is unknown.
        """
        if self._compiler_cache is None:
            engines = build_engines(
                self._settings.compiler_engines, self._settings.tectonic_local_path
            )

            logger.info(f"Instantiating compiler chain: {[engine.name for engine in engines]}")

            self._compiler_cache = CompilerChain(
                engines=engines,
                document_basename=self._settings.document_basename,
                timeout_seconds=self._settings.compile_timeout_seconds,
                backoff_seconds=self._settings.compile_backoff_seconds,
                log_tail_chars=self._settings.log_tail_chars,
            )

        return self._compiler_cache

    def get_workspace_manager(self) -> WorkspaceManager:
        """Get the workspace manager."""
        if self._workspace_cache is None:
            self._workspace_cache = WorkspaceManager(
                root=self._settings.workspace_root,
                prefix=self._settings.workspace_prefix,
                cleanup_retries=self._settings.workspace_cleanup_retries,
                retry_delay_seconds=self._settings.workspace_cleanup_delay_seconds,
            )

        return self._workspace_cache

    def get_pipeline(self) -> GenerationPipeline:
        """Get the generation pipeline wired from the other components."""
        if self._pipeline_cache is None:
            logger.info("Instantiating generation pipeline")

            self._pipeline_cache = GenerationPipeline(
                injector=self.get_injector(),
                compiler=self.get_compiler(),
                workspaces=self.get_workspace_manager(),
                attachment_filename=self._settings.attachment_filename,
            )

        return self._pipeline_cache

    def clear_cache(self) -> None:
        """Clear all cached component instances.

        This forces new instances to be created on next access.
        """
        self._llm_cache = None
        self._extractor_cache = None
        self._injector_cache = None
        self._compiler_cache = None
        self._workspace_cache = None
        self._pipeline_cache = None
        logger.debug("Component factory cache cleared")
