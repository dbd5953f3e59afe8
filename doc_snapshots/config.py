"""
Build configuration for documentation snapshots.

Static description of what gets documented (tracked sources) and where the
last published metadata lives, plus the runtime settings read from the
environment.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from doc_snapshots.security import SourceValidator


class ConfigError(ValueError):
    """Raised when a build configuration cannot be loaded or is invalid."""


@dataclass(frozen=True)
class TrackedSource:
    """One branch of a remote repository to document."""

    owner: str
    name: str
    branch: str
    entry_point: str
    tsconfig: str = "tsconfig.json"

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}.git"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}@{self.branch}"


@dataclass(frozen=True)
class MetaLocation:
    """Where the previously published metadata snapshot is stored."""

    owner: str
    name: str
    branch: str
    file: str


@dataclass(frozen=True)
class BuildConfig:
    meta: MetaLocation
    sources: Tuple[TrackedSource, ...]


DEFAULT_CONFIG = BuildConfig(
    meta=MetaLocation(
        owner="vanyauhalin",
        name="docspace-sdk-js",
        branch="dist",
        file="meta.json",
    ),
    sources=(
        # TrackedSource("onlyoffice", "docspace-sdk-js", "master", "src/main.ts"),
        TrackedSource(
            owner="onlyoffice",
            name="docspace-sdk-js",
            branch="develop",
            entry_point="src/main.ts",
        ),
    ),
)


@dataclass
class Settings:
    """Runtime settings resolved from the environment and CLI overrides."""

    output_dir: Path = field(default_factory=lambda: Path("dist"))
    github_token: str = ""
    typedoc_command: str = "npx typedoc"
    force: bool = False
    config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Load ``.env`` (if any) and build settings from the environment."""
        load_dotenv()
        config_path = os.getenv("DOCS_CONFIG", "")
        return cls(
            output_dir=Path(os.getenv("OUTPUT_DIR", "./dist")),
            github_token=os.getenv("GITHUB_TOKEN", ""),
            typedoc_command=os.getenv("TYPEDOC_COMMAND", "npx typedoc"),
            force=is_force_build(),
            config_path=Path(config_path) if config_path else None,
        )


FORCE_ENV_VARS = ("BUILD_FORCE", "MAKEFILE_BUILD_FORCE")


def is_force_build() -> bool:
    """
    ``BUILD_FORCE=true`` forces a rebuild regardless of the CLI flag.

    ``MAKEFILE_BUILD_FORCE``, the name set by the publish workflow, is
    honoured too.
    """
    return any(os.getenv(name, "") == "true" for name in FORCE_ENV_VARS)


def validate_config(config: BuildConfig) -> None:
    """Reject sources that would escape the output tree or share a slot."""
    validator = SourceValidator()

    is_valid, error = validator.validate_meta_file(config.meta.file)
    if not is_valid:
        raise ConfigError(f"Invalid meta file {config.meta.file!r}: {error}")

    seen = set()
    for source in config.sources:
        is_valid, error = validator.validate_source(source)
        if not is_valid:
            raise ConfigError(f"Invalid source {source}: {error}")
        slot = (source.branch, source.name)
        if slot in seen:
            raise ConfigError(f"Duplicate source {source.name} on branch {source.branch}")
        seen.add(slot)


def load_config(path: Path) -> BuildConfig:
    """Load a build configuration from a JSON file.

    Expected shape::

        {
          "meta": {"owner": ..., "name": ..., "branch": ..., "file": ...},
          "sources": [
            {"owner": ..., "name": ..., "branch": ..., "entryPoint": ...,
             "tsconfig": "tsconfig.json"}
          ]
        }
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Config must contain an object at the root")

    meta_data = data.get("meta")
    if not isinstance(meta_data, dict):
        raise ConfigError("Config is missing the 'meta' object")
    meta = MetaLocation(
        owner=_require_str(meta_data, "owner", "meta"),
        name=_require_str(meta_data, "name", "meta"),
        branch=_require_str(meta_data, "branch", "meta"),
        file=_require_str(meta_data, "file", "meta"),
    )

    sources_data = data.get("sources")
    if not isinstance(sources_data, list) or not sources_data:
        raise ConfigError("Config must list at least one source")

    sources = []
    for index, item in enumerate(sources_data):
        where = f"sources[{index}]"
        if not isinstance(item, dict):
            raise ConfigError(f"{where} must be an object")
        tsconfig = item.get("tsconfig", "tsconfig.json")
        if not isinstance(tsconfig, str) or not tsconfig:
            raise ConfigError(f"{where}.tsconfig must be a non-empty string")
        sources.append(TrackedSource(
            owner=_require_str(item, "owner", where),
            name=_require_str(item, "name", where),
            branch=_require_str(item, "branch", where),
            entry_point=_require_str(item, "entryPoint", where),
            tsconfig=tsconfig,
        ))

    config = BuildConfig(meta=meta, sources=tuple(sources))
    validate_config(config)
    return config


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{where}.{key} must be a non-empty string")
    return value
