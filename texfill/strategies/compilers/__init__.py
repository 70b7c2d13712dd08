"""Document compiler strategies."""

from texfill.strategies.compilers.chain import CompilerChain
from texfill.strategies.compilers.engines import (
    EngineAvailability,
    build_engine,
    build_engines,
    probe_engines,
)

__all__ = [
    "CompilerChain",
    "EngineAvailability",
    "build_engine",
    "build_engines",
    "probe_engines",
]
