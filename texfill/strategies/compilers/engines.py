"""Registry of known LaTeX engines and availability probing."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from texfill.interfaces.compiler import OUTDIR_TOKEN, SOURCE_TOKEN, CompilerEngine

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 5.0


def tectonic_engine(name: str, executable: str, description: str) -> CompilerEngine:
    return CompilerEngine(
        name=name,
        description=description,
        argv=(executable, "--outdir", OUTDIR_TOKEN, SOURCE_TOKEN),
    )


def latex_engine(name: str, description: str) -> CompilerEngine:
    return CompilerEngine(
        name=name,
        description=description,
        argv=(
            name,
            f"-output-directory={OUTDIR_TOKEN}",
            "-interaction=nonstopmode",
            SOURCE_TOKEN,
        ),
    )


def build_engine(name: str, tectonic_local_path: Path) -> CompilerEngine:
    """Create a known engine by name.

    Args:
        name: One of "tectonic-local", "tectonic", "pdflatex", "xelatex", "lualatex".
        tectonic_local_path: Location of the bundled Tectonic binary.

    Returns:
        The engine descriptor.

    Raises:
        ValueError: If the engine name is unknown.
    """
    match name:
        case "tectonic-local":
            return tectonic_engine(
                name, str(tectonic_local_path.resolve()), "Tectonic (local executable)"
            )
        case "tectonic":
            return tectonic_engine(name, "tectonic", "Tectonic (system installation)")
        case "pdflatex":
            return latex_engine(name, "pdfLaTeX (traditional)")
        case "xelatex":
            return latex_engine(name, "XeLaTeX")
        case "lualatex":
            return latex_engine(name, "LuaLaTeX")
        case _:
            raise ValueError(
                f"Unknown compiler engine: {name}. "
                f"Valid options: 'tectonic-local', 'tectonic', 'pdflatex', 'xelatex', 'lualatex'"
            )


def build_engines(names: list[str], tectonic_local_path: Path) -> tuple[CompilerEngine, ...]:
    """Create the ordered engine tuple for the compiler chain."""
    return tuple(build_engine(name, tectonic_local_path) for name in names)


@dataclass(frozen=True)
class EngineAvailability:
    """Whether an engine's executable answered ``--version``."""

    name: str
    available: bool
    version: str | None = None
    error: str | None = None


async def probe_engine(engine: CompilerEngine) -> EngineAvailability:
    """Run ``<executable> --version`` and report the first output line."""
    try:
        process = await asyncio.create_subprocess_exec(
            engine.executable,
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        return EngineAvailability(name=engine.name, available=False, error=str(e))

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=PROBE_TIMEOUT_SECONDS)
    except TimeoutError:
        process.kill()
        await process.wait()
        return EngineAvailability(name=engine.name, available=False, error="Timed out")

    output = stdout.decode("utf-8", errors="replace").strip()
    if process.returncode != 0:
        return EngineAvailability(
            name=engine.name,
            available=False,
            error=f"Exited with code {process.returncode}",
        )

    version = output.splitlines()[0][:80] if output else None
    return EngineAvailability(name=engine.name, available=True, version=version)


async def probe_engines(engines: tuple[CompilerEngine, ...]) -> list[EngineAvailability]:
    """Probe each engine in order."""
    results = []
    for engine in engines:
        result = await probe_engine(engine)
        if result.available:
            logger.info(f"{engine.name}: Available ({result.version})")
        else:
            logger.info(f"{engine.name}: Not available ({result.error})")
        results.append(result)
    return results
