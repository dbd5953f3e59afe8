"""
Source acquisition.

Shallow, single-branch clones of tracked sources into isolated working
directories.
"""

import asyncio
import logging
from pathlib import Path

from doc_snapshots.config import TrackedSource

logger = logging.getLogger(__name__)


class CloneError(RuntimeError):
    """Raised when ``git clone`` exits with a non-zero status."""

    def __init__(self, source: TrackedSource, returncode: int, stderr: str = ""):
        self.source = source
        self.returncode = returncode
        self.stderr = stderr
        message = f"Failed to clone {source} (exit {returncode})"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


def source_workdir(temp_root: Path, index: int, source: TrackedSource) -> Path:
    """
    Per-source directory under the shared temp root.

    Keyed by the source's position in the configuration, never by branch:
    branch names may contain slashes and must not nest clones.
    """
    return temp_root / str(index) / source.name


def clone_command(source: TrackedSource, destination: Path) -> list:
    return [
        "git",
        "clone",
        "--progress",
        "--depth", "1",
        "--branch", source.branch,
        "--single-branch",
        source.repo_url,
        str(destination),
    ]


async def clone_source(source: TrackedSource, destination: Path) -> Path:
    """
    Clone one branch of a tracked source.

    Args:
        source: Tracked source to clone
        destination: Empty or missing target directory

    Returns:
        The destination path

    Raises:
        CloneError: if git exits with a non-zero status
    """
    logger.info("Cloning %s into %s", source, destination)

    process = await asyncio.create_subprocess_exec(
        *clone_command(source, destination),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    _, stderr = await process.communicate()

    if process.returncode != 0:
        # git reports progress on stderr too; the tail holds the actual error.
        tail = stderr.decode("utf-8", errors="replace").strip().splitlines()[-5:]
        raise CloneError(source, process.returncode, "\n".join(tail))

    logger.debug("Cloned %s", source)
    return destination
