"""Shared test data and fakes for the snapshot test suite."""

import asyncio
import copy
from pathlib import Path

from doc_snapshots.config import BuildConfig, MetaLocation, TrackedSource
from doc_snapshots.generator import DocumentationError
from doc_snapshots.github_client import GitHubClient, MetadataFetchError

DEVELOP = TrackedSource(owner="octo", name="sdk", branch="develop", entry_point="src/main.ts")
MASTER = TrackedSource(owner="octo", name="sdk", branch="master", entry_point="src/main.ts")

META = MetaLocation(owner="octo", name="sdk", branch="dist", file="meta.json")

CONFIG = BuildConfig(meta=META, sources=(DEVELOP, MASTER))

SHAS = {
    "develop": "1111111111111111111111111111111111111111",
    "master": "2222222222222222222222222222222222222222",
}

BRANCH_MARKER = ".branch"

LATEST = {
    "develop": {"sdk": SHAS["develop"]},
    "master": {"sdk": SHAS["master"]},
}

SAMPLE_REFLECTION = {
    "id": 0,
    "name": "sdk",
    "variant": "project",
    "kind": 1,
    "children": [
        {"id": 1, "name": "SDK", "variant": "declaration", "kind": 128},
        {"id": 2, "name": "init", "variant": "declaration", "kind": 64},
    ],
    "symbolIdMap": {
        "0": {"sourceFileName": "src/main.ts", "qualifiedName": ""},
        "1": {"sourceFileName": "src/main.ts", "qualifiedName": "SDK"},
        "2": {"sourceFileName": "src/utils/init.ts", "qualifiedName": "init"},
    },
}


class FakeGitHubClient(GitHubClient):
    """GitHubClient serving branch heads and published metadata from dicts."""

    def __init__(self, shas=None, published=None, fail_for=()):
        super().__init__(token="")
        self.shas = dict(SHAS if shas is None else shas)
        self.published = {} if published is None else published
        self.fail_for = set(fail_for)
        self.branch_lookups = []
        self.meta_lookups = 0

    def get_branch_sha(self, source):
        self.branch_lookups.append(source)
        if source.branch in self.fail_for:
            raise MetadataFetchError(f"Failed to fetch commit SHA for {source.name}")
        return self.shas[source.branch]

    def get_published_meta(self, meta):
        self.meta_lookups += 1
        return copy.deepcopy(self.published)


class FakeCloner:
    """Async stand-in for ``clone_source`` that writes a tiny checkout."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.cloned = []
        self.finished = []

    async def __call__(self, source, destination: Path) -> Path:
        self.cloned.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        (destination / "src").mkdir(parents=True)
        (destination / "src" / "main.ts").write_text("export class SDK {}\n")
        (destination / "tsconfig.json").write_text("{}\n")
        (destination / BRANCH_MARKER).write_text(source.branch)
        self.finished.append(source)
        return destination


class FakeEngine:
    """Documentation engine returning SAMPLE_REFLECTION with absolute paths."""

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.calls = []

    async def generate(self, entry_point: Path, tsconfig: Path, workdir: Path) -> dict:
        self.calls.append((entry_point, tsconfig, workdir))
        await asyncio.sleep(0)
        if (workdir / BRANCH_MARKER).read_text() in self.fail_for:
            raise DocumentationError("Project is missing")
        reflection = copy.deepcopy(SAMPLE_REFLECTION)
        for entry in reflection["symbolIdMap"].values():
            entry["sourceFileName"] = str(workdir / entry["sourceFileName"])
        return reflection
