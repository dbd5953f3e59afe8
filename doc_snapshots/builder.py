"""
Snapshot build pipeline.

  1. Resolve the head commit of every tracked source (latest snapshot).
  2. Compare it with the last published snapshot and stop when nothing
     changed, unless forced.
  3. For every source, concurrently: clone the branch into its own temp
     directory, run the documentation engine, rewrite source references to
     the resolved commit and write the artifact.
  4. Write the new metadata snapshot.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Optional

from doc_snapshots.config import (
    DEFAULT_CONFIG,
    BuildConfig,
    Settings,
    TrackedSource,
    load_config,
    validate_config,
)
from doc_snapshots.generator import TypeDocEngine, rewrite_source_references
from doc_snapshots.github_client import GitHubClient
from doc_snapshots.metadata import (
    Snapshot,
    lookup_sha,
    resolve_current,
    resolve_latest,
    should_build,
)
from doc_snapshots.publisher import SnapshotStore
from doc_snapshots.sources import clone_source, source_workdir

logger = logging.getLogger(__name__)

TEMP_PREFIX = "doc-snapshots-"

Cloner = Callable[[TrackedSource, Path], Awaitable[Path]]


class SnapshotBuilder:
    """
    Builds and stores documentation snapshots for every tracked source.

    Collaborators are injectable: ``client`` performs the remote lookups,
    ``engine`` produces reflections, ``store`` persists them and ``cloner``
    acquires sources.
    """

    def __init__(
        self,
        config: BuildConfig = DEFAULT_CONFIG,
        client: Optional[GitHubClient] = None,
        engine=None,
        store: Optional[SnapshotStore] = None,
        cloner: Optional[Cloner] = None,
    ):
        validate_config(config)
        self.config = config
        self.client = client or GitHubClient()
        self.engine = engine or TypeDocEngine()
        self.store = store or SnapshotStore()
        self.cloner = cloner or clone_source

    async def build(self, force: bool = False) -> bool:
        """
        Run the full pipeline.

        Args:
            force: Build even if the published snapshot is up to date

        Returns:
            True if artifacts were written, False on the no-update path
        """
        sources = list(self.config.sources)
        latest = await resolve_latest(self.client, sources)
        logger.debug("Latest snapshot: %s", latest)

        if not force:
            current = await resolve_current(self.client, self.config.meta)
            if not should_build(current, latest, force):
                logger.info("No updates")
                return False

        self.store.ensure_output_dir()
        temp_root = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
        logger.debug("Working in %s", temp_root)

        try:
            results = await asyncio.gather(
                *(
                    self.build_source(source, latest, temp_root, index)
                    for index, source in enumerate(sources)
                ),
                return_exceptions=True,
            )
        finally:
            shutil.rmtree(temp_root, ignore_errors=True)

        failures = [
            (source, result)
            for source, result in zip(sources, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            for source, exc in failures[1:]:
                logger.error("Build failed for %s: %s", source, exc)
            raise failures[0][1]

        self.store.write_meta(self.config.meta.file, latest)
        logger.info("Built %d source(s)", len(sources))
        return True

    async def build_source(
        self, source: TrackedSource, latest: Snapshot, temp_root: Path, index: int = 0
    ) -> Path:
        """
        Build the artifact for one source.

        The per-source temp directory is removed whether or not the build
        succeeds.

        Raises:
            MissingMetadataError: if ``latest`` has no SHA for the source
        """
        sha = lookup_sha(latest, source)
        workdir = source_workdir(temp_root, index, source)
        workdir.parent.mkdir(parents=True, exist_ok=True)

        try:
            await self.cloner(source, workdir)
            reflection = await self.engine.generate(
                workdir / source.entry_point,
                workdir / source.tsconfig,
                workdir,
            )
            rewrite_source_references(reflection, workdir, source, sha, self.client)
            return self.store.write_reflection(source, reflection)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)


def create_builder(settings: Settings, config: Optional[BuildConfig] = None) -> SnapshotBuilder:
    """Wire a builder from runtime settings."""
    if config is None:
        if settings.config_path is not None:
            config = load_config(settings.config_path)
        else:
            config = DEFAULT_CONFIG

    return SnapshotBuilder(
        config=config,
        client=GitHubClient(token=settings.github_token),
        engine=TypeDocEngine(settings.typedoc_command),
        store=SnapshotStore(settings.output_dir),
    )


def run_build(settings: Settings, force: bool = False, config: Optional[BuildConfig] = None) -> bool:
    """Synchronous entry point: build with ``settings`` and wait for the result."""
    builder = create_builder(settings, config)
    return asyncio.run(builder.build(force=force or settings.force))
