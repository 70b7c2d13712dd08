"""LaTeX engine availability check.

Run this script to see which of the configured compiler engines can be
started on this host.

Usage:
    python -m scripts.check_compilers
    or
    python scripts/check_compilers.py (after pip install -e .)
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from texfill.core.config import get_settings
from texfill.strategies.compilers import build_engines, probe_engines


async def main() -> int:
    """Probe every configured engine and print a summary."""
    settings = get_settings()
    engines = build_engines(settings.compiler_engines, settings.tectonic_local_path)

    print("Checking LaTeX engines...\n")
    results = await probe_engines(engines)
    for engine, result in zip(engines, results):
        if result.available:
            print(f"  [ok]      {engine.description}: {result.version}")
        else:
            print(f"  [missing] {engine.description}: {result.error}")

    available = sum(1 for result in results if result.available)
    print(f"\n{available}/{len(results)} engines available")
    if not available:
        print("Install Tectonic or TeX Live and make sure it is on your PATH.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
