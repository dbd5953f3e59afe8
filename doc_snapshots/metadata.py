"""
Metadata snapshots and change detection.

A metadata snapshot maps branch name -> repository name -> commit SHA. The
latest snapshot is resolved from the branch heads of every tracked source;
the current one is whatever was last published. A build runs only when the
two differ, unless forced.
"""

import asyncio
import logging
from typing import Dict, Iterable

from doc_snapshots.config import MetaLocation, TrackedSource
from doc_snapshots.equality import deep_equal
from doc_snapshots.github_client import GitHubClient

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Dict[str, str]]


class MissingMetadataError(LookupError):
    """Raised when a snapshot has no entry for a tracked source."""


async def resolve_latest(client: GitHubClient, sources: Iterable[TrackedSource]) -> Snapshot:
    """
    Resolve the head commit of every tracked source concurrently.

    Each source writes its own ``[branch][name]`` slot, so the tasks never
    touch the same entry. Any failed lookup fails the whole operation.

    Args:
        client: GitHub client used for the branch lookups
        sources: Tracked sources

    Returns:
        The latest metadata snapshot
    """
    snapshot: Snapshot = {}

    async def resolve(source: TrackedSource) -> None:
        branch = snapshot.setdefault(source.branch, {})
        branch[source.name] = await asyncio.to_thread(client.get_branch_sha, source)

    await asyncio.gather(*(resolve(source) for source in sources))
    return snapshot


async def resolve_current(client: GitHubClient, meta: MetaLocation) -> Snapshot:
    """Fetch the last published snapshot; empty when there is none."""
    return await asyncio.to_thread(client.get_published_meta, meta)


def should_build(current: Snapshot, latest: Snapshot, force: bool = False) -> bool:
    """Decide whether the published artifacts are out of date."""
    if force:
        return True
    return not deep_equal(current, latest)


def lookup_sha(snapshot: Snapshot, source: TrackedSource) -> str:
    """
    Return the commit SHA recorded for a source.

    Raises:
        MissingMetadataError: if the branch or the source is absent
    """
    branch = snapshot.get(source.branch)
    if branch is None:
        raise MissingMetadataError(f"Branch {source.branch} is missing")

    sha = branch.get(source.name)
    if sha is None:
        raise MissingMetadataError(f"Commit SHA for {source.name} is missing")

    return sha
