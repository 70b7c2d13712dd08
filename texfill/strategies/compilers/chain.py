"""Fallback compiler chain.

Tries an ordered list of LaTeX engines, one attempt each, until one of them
produces the PDF. Every attempt is recorded so a total failure can be
diagnosed from the returned attempt log.
"""

import asyncio
import contextlib
import logging
import os
from pathlib import Path

from texfill.core.exceptions import CompilationFailed
from texfill.core.workspace import Workspace
from texfill.interfaces.compiler import (
    BaseCompiler,
    CompilationAttempt,
    CompilationResult,
    CompilerEngine,
)

logger = logging.getLogger(__name__)


async def terminate(process: asyncio.subprocess.Process) -> None:
    """Kill the process if it is still running and reap it."""
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()


class CompilerChain(BaseCompiler):
    """Compiles a document with the first engine that succeeds.

    An attempt succeeds only when the engine exits with status 0 AND the
    expected PDF exists; some engines exit cleanly without producing output.
    A PDF left behind by a failed attempt is deleted before the next engine
    runs so it cannot satisfy that engine's success check.
    The same goes for the .log file, which would otherwise be reported as the
    output of an engine that never wrote one.
    """

    def __init__(
        self,
        engines: tuple[CompilerEngine, ...],
        document_basename: str = "resume",
        timeout_seconds: float = 45.0,
        backoff_seconds: float = 1.0,
        log_tail_chars: int = 3000,
    ) -> None:
        """Initialize the chain.

        Args:
            engines: Candidate engines in order of preference.
            document_basename: Basename of the .tex source and .pdf artifact.
            timeout_seconds: Per-attempt timeout.
            backoff_seconds: Pause after a failed attempt.
            log_tail_chars: Characters of output kept per attempt.
        """
        if not engines:
            raise ValueError("CompilerChain needs at least one engine")
        self._engines = tuple(engines)
        self._basename = document_basename
        self._timeout_seconds = timeout_seconds
        self._backoff_seconds = backoff_seconds
        self._log_tail_chars = log_tail_chars

    @property
    def engines(self) -> tuple[CompilerEngine, ...]:
        return self._engines

    async def compile(self, workspace: Workspace, document: str) -> CompilationResult:
        """Materialize the document and compile it.

        Args:
            workspace: The request's scratch workspace.
            document: Processed LaTeX source.

        Returns:
            CompilationResult with the PDF bytes and all attempts.

        Raises:
            CompilationFailed: If every engine failed.
        """
        source_path = workspace.file(self._basename, ".tex")
        pdf_path = workspace.file(self._basename, ".pdf")
        log_path = workspace.file(self._basename, ".log")

        source_path.write_text(document, encoding="utf-8")
        logger.info(f"LaTeX file: {source_path}")

        attempts: list[CompilationAttempt] = []
        for index, engine in enumerate(self._engines):
            logger.info(f"Trying {engine.description}...")
            log_path.unlink(missing_ok=True)
            attempt = await self._attempt(engine, workspace.path, source_path, pdf_path, log_path)
            attempts.append(attempt)

            if attempt.succeeded:
                logger.info(f"Successfully compiled with {engine.name}")
                return CompilationResult(pdf_bytes=pdf_path.read_bytes(), attempts=tuple(attempts))

            logger.info(f"{engine.name} failed: {attempt.error_message or 'Unknown error'}")
            pdf_path.unlink(missing_ok=True)

            if index < len(self._engines) - 1 and self._backoff_seconds > 0:
                await asyncio.sleep(self._backoff_seconds)

        logger.error("All LaTeX compilation attempts failed")
        raise CompilationFailed(attempts)

    async def _attempt(
        self,
        engine: CompilerEngine,
        outdir: Path,
        source_path: Path,
        pdf_path: Path,
        log_path: Path,
    ) -> CompilationAttempt:
        argv = engine.command(outdir, source_path)
        output = ""
        error_message: str | None = None

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=outdir,
                env=os.environ.copy(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            error_message = f"Could not start {engine.executable}: {e}"
        else:
            try:
                stdout, _ = await asyncio.wait_for(
                    process.communicate(), timeout=self._timeout_seconds
                )
                output = stdout.decode("utf-8", errors="replace")
                if process.returncode != 0:
                    error_message = f"Command failed with exit code {process.returncode}"
            except TimeoutError:
                await terminate(process)
                error_message = f"Command timed out after {self._timeout_seconds:g}s"
            except asyncio.CancelledError:
                await asyncio.shield(terminate(process))
                raise

        succeeded = error_message is None and pdf_path.exists()
        if error_message is None and not succeeded:
            error_message = f"Engine exited cleanly but produced no {pdf_path.name}"

        return CompilationAttempt.for_command(
            engine,
            argv,
            succeeded=succeeded,
            error_message=error_message,
            log_tail=self._collect_log(log_path, output),
        )

    def _collect_log(self, log_path: Path, output: str) -> str:
        """Prefix the compiler log file, if any, and keep the tail."""
        full_log = output
        if log_path.exists():
            try:
                full_log = log_path.read_text(encoding="utf-8", errors="replace") + "\n" + output
            except OSError as e:
                logger.debug(f"Could not read {log_path}: {e}")
        return full_log[-self._log_tail_chars :]
