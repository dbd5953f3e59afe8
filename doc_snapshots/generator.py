"""
Artifact generation.

Runs TypeDoc against a cloned source to get a JSON project reflection, then
rewrites the local source file names inside it into permanent GitHub
contents references anchored to the documented commit.
"""

import asyncio
import json
import logging
import os
import shlex
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional, Union

from doc_snapshots.config import TrackedSource
from doc_snapshots.github_client import GitHubClient

logger = logging.getLogger(__name__)

Reflection = Dict[str, Any]

_OUTPUT_NAME = ".typedoc.json"


class DocumentationError(RuntimeError):
    """Raised when the documentation engine produces no project."""


class TypeDocEngine:
    """
    Documentation engine backed by the TypeDoc command line.

    Any object with a compatible ``generate`` coroutine can stand in for it.

    Args:
        command: TypeDoc invocation, split shell-style. Defaults to the
                 ``TYPEDOC_COMMAND`` env var or ``npx typedoc``.
    """

    def __init__(self, command: str = ""):
        self.command = shlex.split(command or os.getenv("TYPEDOC_COMMAND", "npx typedoc"))

    def build_args(self, entry_point: Path, tsconfig: Path, output: Path) -> list:
        return [
            *self.command,
            "--entryPoints", str(entry_point),
            "--tsconfig", str(tsconfig),
            "--readme", "none",
            "--json", str(output),
        ]

    async def generate(self, entry_point: Path, tsconfig: Path, workdir: Path) -> Reflection:
        """
        Produce the project reflection for one entry point.

        TypeDoc runs with ``workdir`` as its working directory, so the
        source file names it records are relative to the clone.

        Raises:
            DocumentationError: on a non-zero exit or missing/invalid output
        """
        output = workdir / _OUTPUT_NAME
        args = self.build_args(entry_point, tsconfig, output)
        logger.debug("Running %s", " ".join(args))

        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(workdir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        stdout, _ = await process.communicate()
        log = stdout.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            raise DocumentationError(
                f"Project is missing: typedoc exited with {process.returncode} for {entry_point}\n{log}"
            )
        if not output.exists():
            raise DocumentationError(f"Project is missing: typedoc wrote no output for {entry_point}")

        try:
            reflection = json.loads(output.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise DocumentationError(f"Project is missing: invalid typedoc output ({exc})") from exc
        finally:
            output.unlink(missing_ok=True)

        if not isinstance(reflection, dict):
            raise DocumentationError("Project is missing: typedoc output is not an object")
        return reflection


def relative_source_path(file_name: str, source_root: Union[str, Path]) -> Optional[str]:
    """
    Strip the local clone prefix from a recorded source file name.

    Handles names recorded as absolute paths, as paths relative to the current
    directory, and as paths already relative to the clone. Files outside the
    clone have no counterpart in the repository and yield None.

    Examples:
        '/tmp/x/src/main.ts', '/tmp/x'  → 'src/main.ts'
        'src/main.ts', '/tmp/x'         → 'src/main.ts'
        '/tmp/xy/main.ts', '/tmp/x'     → None
    """
    name = file_name.replace("\\", "/")
    root = PurePosixPath(str(source_root).replace("\\", "/"))

    candidates = [root]
    if root.is_absolute():
        try:
            candidates.append(PurePosixPath(os.path.relpath(str(root)).replace("\\", "/")))
        except ValueError:
            pass

    path = PurePosixPath(name)
    for prefix in candidates:
        try:
            return path.relative_to(prefix).as_posix()
        except ValueError:
            continue

    if path.is_absolute() or ".." in path.parts:
        return None
    return path.as_posix()


def rewrite_source_references(
    reflection: Reflection,
    source_root: Union[str, Path],
    source: TrackedSource,
    sha: str,
    client: GitHubClient,
) -> int:
    """
    Point every ``symbolIdMap`` entry at the remote file at ``sha``.

    Modifies ``reflection`` in place.

    Returns:
        Number of rewritten entries
    """
    symbol_map = reflection.get("symbolIdMap") or {}
    rewritten = 0
    for entry in symbol_map.values():
        file_name = entry.get("sourceFileName") if isinstance(entry, dict) else None
        if not isinstance(file_name, str):
            continue
        path = relative_source_path(file_name, source_root)
        if path is None:
            logger.debug("Leaving %s as is: outside the clone of %s", file_name, source)
            continue
        entry["sourceFileName"] = client.content_reference(source, path, sha)
        rewritten += 1

    logger.debug("Rewrote %d source references for %s", rewritten, source)
    return rewritten
