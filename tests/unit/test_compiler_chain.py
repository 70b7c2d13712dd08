"""Unit tests for the compiler fallback chain.

Engines are small Python scripts run with the current interpreter, so no
LaTeX installation is needed.
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from texfill.core.exceptions import CompilationFailed
from texfill.core.troubleshooting import compilation_hints
from texfill.core.workspace import Workspace
from texfill.interfaces.compiler import OUTDIR_TOKEN, SOURCE_TOKEN, CompilerEngine
from texfill.strategies.compilers import CompilerChain, build_engine, build_engines
from texfill.strategies.compilers.chain import terminate
from tests.unit.fakes import (
    EXIT_CLEANLY,
    SLEEP_FOREVER,
    WRITE_PDF,
    WRITE_PDF_THEN_FAIL,
    python_engine,
)

DOCUMENT = "\\documentclass{article}\\begin{document}Hi\\end{document}"


def make_chain(*engines, **kwargs) -> CompilerChain:
    kwargs.setdefault("backoff_seconds", 0)
    kwargs.setdefault("timeout_seconds", 20)
    return CompilerChain(engines=engines, **kwargs)


def compile_in(tmp_path, chain: CompilerChain, document: str = DOCUMENT):
    return asyncio.run(chain.compile(Workspace(path=tmp_path), document))


# =============================================================================
# Fallback Behavior
# =============================================================================


class TestCompilerChain:
    """Test suite for CompilerChain.compile."""

    def test_first_engine_success(self, tmp_path):
        chain = make_chain(python_engine("first", WRITE_PDF), python_engine("second", WRITE_PDF))
        result = compile_in(tmp_path, chain)

        assert result.pdf_bytes == b"%PDF-1.4 ok"
        assert result.engine_name == "first"
        assert len(result.attempts) == 1
        assert result.attempts[0].succeeded is True
        assert result.attempts[0].error_message is None

    def test_falls_back_until_success(self, tmp_path):
        chain = make_chain(
            python_engine("broken", WRITE_PDF_THEN_FAIL),
            python_engine("silent", EXIT_CLEANLY),
            python_engine("working", WRITE_PDF),
        )
        result = compile_in(tmp_path, chain)

        assert result.pdf_bytes == b"%PDF-1.4 ok"
        assert result.engine_name == "working"
        assert [attempt.engine_name for attempt in result.attempts] == [
            "broken",
            "silent",
            "working",
        ]
        assert [attempt.succeeded for attempt in result.attempts] == [False, False, True]

    def test_failed_artifact_does_not_leak(self, tmp_path):
        """A PDF left by a failing engine cannot satisfy the next check."""
        chain = make_chain(
            python_engine("broken", WRITE_PDF_THEN_FAIL),
            python_engine("silent", EXIT_CLEANLY),
        )
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        first, second = exc_info.value.attempts
        assert first.error_message == "Command failed with exit code 1"
        assert second.error_message == "Engine exited cleanly but produced no resume.pdf"
        assert not (tmp_path / "resume.pdf").exists()

    def test_source_written_to_workspace(self, tmp_path):
        compile_in(tmp_path, make_chain(python_engine("ok", WRITE_PDF)))
        assert (tmp_path / "resume.tex").read_text(encoding="utf-8") == DOCUMENT

    def test_custom_basename(self, tmp_path):
        script = (
            "import sys, pathlib\n"
            "src = pathlib.Path(sys.argv[2])\n"
            "src.with_suffix('.pdf').write_bytes(b'cv')\n"
        )
        chain = make_chain(python_engine("ok", script), document_basename="cv")
        result = compile_in(tmp_path, chain)

        assert result.pdf_bytes == b"cv"
        assert (tmp_path / "cv.tex").exists()

    # =========================================================================
    # Attempt Records
    # =========================================================================

    def test_log_file_and_output_captured(self, tmp_path):
        chain = make_chain(python_engine("broken", WRITE_PDF_THEN_FAIL))
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        attempt = exc_info.value.attempts[0]
        assert "! LaTeX Error: Something broke." in attempt.log_tail
        assert str(tmp_path) in attempt.command

    def test_log_of_previous_engine_is_not_reused(self, tmp_path):
        ghost = CompilerEngine(
            name="ghost",
            description="Not installed",
            argv=(str(tmp_path / "no-such-engine"), OUTDIR_TOKEN, SOURCE_TOKEN),
        )
        chain = make_chain(python_engine("broken", WRITE_PDF_THEN_FAIL), ghost)
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        first, second = exc_info.value.attempts
        assert "LaTeX Error" in first.log_tail
        assert "LaTeX Error" not in second.log_tail
        assert "LaTeX syntax error detected - check your template" not in compilation_hints(
            [second]
        )
        assert not (tmp_path / "resume.log").exists()

    def test_log_tail_is_bounded(self, tmp_path):
        script = "import sys\nprint('x' * 5000 + 'END')\nsys.exit(2)\n"
        chain = make_chain(python_engine("noisy", script), log_tail_chars=100)
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        log_tail = exc_info.value.attempts[0].log_tail
        assert len(log_tail) == 100
        assert "END" in log_tail

    def test_missing_executable_is_a_failed_attempt(self, tmp_path):
        ghost = CompilerEngine(
            name="ghost",
            description="Not installed",
            argv=(str(tmp_path / "no-such-engine"), OUTDIR_TOKEN, SOURCE_TOKEN),
        )
        chain = make_chain(ghost, python_engine("ok", WRITE_PDF))
        result = compile_in(tmp_path, chain)

        assert result.engine_name == "ok"
        assert result.attempts[0].succeeded is False
        assert result.attempts[0].error_message.startswith("Could not start")

    def test_timeout_kills_engine(self, tmp_path):
        chain = make_chain(python_engine("slow", SLEEP_FOREVER), timeout_seconds=0.5)
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        assert exc_info.value.attempts[0].error_message == "Command timed out after 0.5s"

    def test_terminate_tolerates_exited_process(self):
        """An engine that exits just before the kill is still reaped."""
        process = Mock()
        process.kill.side_effect = ProcessLookupError
        process.wait = AsyncMock(return_value=0)

        asyncio.run(terminate(process))

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    def test_cancelled_compile_reaps_engine(self, tmp_path):
        chain = make_chain(python_engine("slow", SLEEP_FOREVER))
        spawn_real = asyncio.create_subprocess_exec
        processes = []

        async def spawn(*args, **kwargs):
            process = await spawn_real(*args, **kwargs)
            processes.append(process)
            return process

        async def run_and_cancel():
            task = asyncio.create_task(chain.compile(Workspace(path=tmp_path), DOCUMENT))
            while not processes:
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        with patch("asyncio.create_subprocess_exec", spawn):
            asyncio.run(run_and_cancel())

        assert len(processes) == 1
        assert processes[0].returncode is not None

    def test_exhaustion_payload(self, tmp_path):
        chain = make_chain(
            python_engine("one", EXIT_CLEANLY),
            python_engine("two", EXIT_CLEANLY),
        )
        with pytest.raises(CompilationFailed) as exc_info:
            compile_in(tmp_path, chain)

        extra = exc_info.value.extra()
        assert extra["processors"] == ["one", "two"]
        assert extra["attempts"][0]["succeeded"] is False
        assert exc_info.value.status_code == 500

    def test_requires_engines(self):
        with pytest.raises(ValueError):
            CompilerChain(engines=())


# =============================================================================
# Engine Registry
# =============================================================================


class TestEngineRegistry:
    """Test suite for the known engine builders."""

    def test_default_chain_order(self, tmp_path):
        engines = build_engines(["tectonic-local", "tectonic", "pdflatex"], tmp_path / "tectonic")
        assert [engine.name for engine in engines] == ["tectonic-local", "tectonic", "pdflatex"]

    def test_tectonic_local_uses_configured_path(self, tmp_path):
        engine = build_engine("tectonic-local", tmp_path / "bin" / "tectonic")
        assert engine.executable == str((tmp_path / "bin" / "tectonic").resolve())

    def test_latex_command(self, tmp_path):
        engine = build_engine("pdflatex", tmp_path)
        command = engine.command(tmp_path, tmp_path / "resume.tex")
        assert command == [
            "pdflatex",
            f"-output-directory={tmp_path}",
            "-interaction=nonstopmode",
            str(tmp_path / "resume.tex"),
        ]

    def test_tectonic_command(self, tmp_path):
        command = build_engine("tectonic", tmp_path).command(tmp_path, tmp_path / "resume.tex")
        assert command == ["tectonic", "--outdir", str(tmp_path), str(tmp_path / "resume.tex")]

    def test_unknown_engine(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown compiler engine"):
            build_engine("word", tmp_path)
