"""Document compiler interfaces.

Defines the engine descriptor, the per-attempt record and the abstract
compiler used by the generation pipeline.
"""

import shlex
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

OUTDIR_TOKEN = "{outdir}"
SOURCE_TOKEN = "{source}"


@dataclass(frozen=True)
class CompilerEngine:
    """A candidate typesetting engine.

    Attributes:
        name: Short identifier recorded in attempts (e.g. "pdflatex").
        description: Human-readable label for logs.
        argv: Command line template. ``{outdir}`` and ``{source}`` tokens are
            replaced with the workspace directory and the source file path.
    """

    name: str
    description: str
    argv: tuple[str, ...]

    @property
    def executable(self) -> str:
        return self.argv[0]

    def command(self, outdir: Path, source: Path) -> list[str]:
        """Build the argument vector for one invocation."""
        return [
            arg.replace(OUTDIR_TOKEN, str(outdir)).replace(SOURCE_TOKEN, str(source))
            for arg in self.argv
        ]


@dataclass(frozen=True)
class CompilationAttempt:
    """Outcome of one engine invocation.

    Attributes:
        engine_name: Name of the engine that was tried.
        command: The shell-quoted command line.
        succeeded: Whether the engine exited cleanly and produced the PDF.
        error_message: Why the attempt failed, if it did.
        log_tail: Last characters of the compiler log and process output.
    """

    engine_name: str
    command: str
    succeeded: bool
    error_message: str | None
    log_tail: str

    @classmethod
    def for_command(
        cls,
        engine: CompilerEngine,
        argv: list[str],
        succeeded: bool,
        error_message: str | None,
        log_tail: str,
    ) -> "CompilationAttempt":
        return cls(
            engine_name=engine.name,
            command=shlex.join(argv),
            succeeded=succeeded,
            error_message=error_message,
            log_tail=log_tail,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CompilationResult:
    """PDF bytes together with the attempts that led to them."""

    pdf_bytes: bytes
    attempts: tuple[CompilationAttempt, ...]

    @property
    def engine_name(self) -> str:
        return self.attempts[-1].engine_name


class BaseCompiler(ABC):
    """Abstract base class for document compilers."""

    @abstractmethod
    async def compile(self, workspace: Any, document: str) -> CompilationResult:
        """Compile a processed document inside a workspace.

        Args:
            workspace: The request's scratch Workspace.
            document: Processed LaTeX source.

        Returns:
            CompilationResult with the PDF bytes.

        Raises:
            CompilationFailed: If no candidate engine produced a PDF.
        """
