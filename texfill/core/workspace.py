"""Per-request scratch workspaces.

Each generation request owns one uniquely named temporary directory. The
directory is removed when the request finishes, whatever the outcome.
Removal failures are retried and then logged; they never reach the caller.
"""

import asyncio
import logging
import shutil
import tempfile
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from texfill.core.exceptions import WorkspaceError

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class Workspace:
    """An exclusively owned scratch directory."""

    path: Path

    def file(self, basename: str, suffix: str) -> Path:
        """Path of ``<basename><suffix>`` inside the workspace."""
        return self.path / f"{basename}{suffix}"


class WorkspaceManager:
    """Creates and reliably removes scratch workspaces.

    Example:
        ```python
        manager = WorkspaceManager(prefix="latex-")

        async with manager.acquire() as workspace:
            (workspace.path / "resume.tex").write_text(source)
        ```
    """

    def __init__(
        self,
        root: Path | None = None,
        prefix: str = "latex-",
        cleanup_retries: int = 3,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        """Initialize the manager.

        Args:
            root: Parent directory for workspaces (system temp if None).
            prefix: Directory name prefix.
            cleanup_retries: Removal attempts before giving up.
            retry_delay_seconds: Pause between removal attempts.
        """
        if cleanup_retries < 1:
            raise ValueError("cleanup_retries must be at least 1")
        self._root = root
        self._prefix = prefix
        self._cleanup_retries = cleanup_retries
        self._retry_delay_seconds = retry_delay_seconds

    def create(self) -> Workspace:
        """Create a new, uniquely named workspace directory."""
        if self._root is not None:
            self._root.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._root))
        logger.info(f"Working directory: {path}")
        return Workspace(path=path)

    async def release(self, workspace: Workspace) -> bool:
        """Remove a workspace, retrying on failure.

        Args:
            workspace: The workspace to remove.

        Returns:
            True if the directory is gone, False if removal was abandoned.
        """
        last_error: OSError | None = None
        for attempt in range(1, self._cleanup_retries + 1):
            try:
                await asyncio.to_thread(shutil.rmtree, workspace.path)
                logger.info(f"Cleaned up {workspace.path}")
                return True
            except FileNotFoundError:
                return True
            except OSError as e:
                last_error = e
                if attempt < self._cleanup_retries:
                    logger.info(
                        f"Retry cleanup of {workspace.path} "
                        f"({attempt}/{self._cleanup_retries}): {e}"
                    )
                    await asyncio.sleep(self._retry_delay_seconds)

        error = WorkspaceError(str(workspace.path), last_error)
        logger.warning(error.message)
        return False

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Workspace]:
        """Scope a workspace to an ``async with`` block.

        The workspace is released exactly once on every exit path, including
        exceptions and task cancellation.
        """
        workspace = self.create()
        try:
            yield workspace
        finally:
            # Shielded so a cancelled request still removes its directory.
            await asyncio.shield(self.release(workspace))

    async def run(self, fn: Callable[[Workspace], Awaitable[R]]) -> R:
        """Run ``fn`` inside a fresh workspace and return its result."""
        async with self.acquire() as workspace:
            return await fn(workspace)
