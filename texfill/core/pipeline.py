"""Template-to-PDF generation pipeline.

Injects values into a template, then compiles the processed document inside
a scratch workspace that is removed when the request ends.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from texfill.core.exceptions import CompilationFailed
from texfill.core.troubleshooting import compilation_hints
from texfill.core.workspace import WorkspaceManager
from texfill.interfaces.compiler import BaseCompiler, CompilationAttempt
from texfill.interfaces.template import BaseTemplateInjector
from texfill.strategies.template_engine.models import FieldDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedDocument:
    """A compiled PDF ready to be sent to the client."""

    pdf_bytes: bytes
    filename: str
    engine_name: str
    attempts: tuple[CompilationAttempt, ...]


class GenerationPipeline:
    """Runs injection, workspace setup and compilation for one request."""

    def __init__(
        self,
        injector: BaseTemplateInjector,
        compiler: BaseCompiler,
        workspaces: WorkspaceManager,
        attachment_filename: str = "resume.pdf",
    ) -> None:
        self._injector = injector
        self._compiler = compiler
        self._workspaces = workspaces
        self._attachment_filename = attachment_filename

    async def generate(
        self,
        template: str,
        values: Mapping[str, Any],
        fields: Sequence[FieldDescriptor] | None = None,
    ) -> GeneratedDocument:
        """Fill a template and compile it to PDF.

        Args:
            template: Raw LaTeX source.
            values: Mapping of field id to user value.
            fields: Optional field schema restricting substitution.

        Returns:
            GeneratedDocument with the PDF bytes.

        Raises:
            MissingStructure: If the processed document is not valid LaTeX.
            CompilationFailed: If every engine failed; its troubleshooting
                hints are derived from the attempt logs.
        """
        logger.info("Generating PDF...")
        # Injection is pure, so a bad template never creates a workspace.
        document = self._injector.inject(template, values, fields)

        try:
            async with self._workspaces.acquire() as workspace:
                result = await self._compiler.compile(workspace, document)
        except CompilationFailed as e:
            e.troubleshooting = compilation_hints(e.attempts)
            raise

        logger.info(f"PDF generated successfully with {result.engine_name}")
        return GeneratedDocument(
            pdf_bytes=result.pdf_bytes,
            filename=self._attachment_filename,
            engine_name=result.engine_name,
            attempts=result.attempts,
        )
