"""Local filesystem store for generated snapshots.

Artifacts are written to an output directory with one subdirectory per
branch holding one JSON file per tracked source, and one metadata file at
the output root mapping branch -> name -> commit SHA.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from doc_snapshots.config import TrackedSource

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Store generated reflections and metadata as local JSON files.

    Args:
        output_dir: Root directory for published artifacts.
                    Defaults to ``OUTPUT_DIR`` env var or ``./dist``.
    """

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir or os.getenv("OUTPUT_DIR", "./dist"))

    def ensure_output_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def branch_dir(self, branch: str) -> Path:
        return self.output_dir / branch

    def artifact_path(self, source: TrackedSource) -> Path:
        return self.branch_dir(source.branch) / f"{source.name}.json"

    # ---- write operations --------------------------------------------------

    def write_reflection(self, source: TrackedSource, reflection: Dict[str, Any]) -> Path:
        """Write one source's reflection to ``<output>/<branch>/<name>.json``."""
        file_path = self.artifact_path(source)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(json.dumps(reflection, indent=2), encoding="utf-8")
        logger.info("Wrote %s", file_path)
        return file_path

    def write_meta(self, meta_file: str, snapshot: Dict[str, Dict[str, str]]) -> Path:
        """Write the metadata snapshot to ``<output>/<meta_file>``."""
        file_path = self.ensure_output_dir() / meta_file
        file_path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        logger.info("Wrote %s", file_path)
        return file_path

    # ---- read operations ---------------------------------------------------

    def read_meta(self, meta_file: str) -> Dict[str, Dict[str, str]]:
        """Read a locally written snapshot; empty if there is none."""
        file_path = self.output_dir / meta_file
        if not file_path.exists():
            return {}
        return json.loads(file_path.read_text(encoding="utf-8"))
