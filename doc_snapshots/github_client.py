"""GitHub client for branch heads and published metadata.

Callers pass a tracked source or a metadata location in and get a commit SHA
or a metadata snapshot back. URL construction, auth headers and response
shape checks are handled internally. There are no retries: a lookup either
succeeds or raises.
"""

import logging
import os
from typing import Dict, Optional

import requests

from doc_snapshots.config import MetaLocation, TrackedSource

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RAW_URL = "https://raw.githubusercontent.com"


class MetadataFetchError(RuntimeError):
    """Raised when a remote lookup fails."""


class MalformedResponseError(MetadataFetchError):
    """Raised when a remote lookup returns a body of an unexpected shape."""


def validate_snapshot(value: object) -> Dict[str, Dict[str, str]]:
    """Check that ``value`` is a ``branch -> name -> sha`` mapping of strings.

    Raises:
        MalformedResponseError: if the shape does not match
    """
    if not isinstance(value, dict):
        raise MalformedResponseError("Metadata snapshot must be an object")
    for branch, names in value.items():
        if not isinstance(names, dict):
            raise MalformedResponseError(f"Metadata for branch {branch!r} must be an object")
        for name, sha in names.items():
            if not isinstance(sha, str):
                raise MalformedResponseError(
                    f"Commit SHA for {name!r} on branch {branch!r} must be a string"
                )
    return value


class GitHubClient:
    """Client for the GitHub REST API and raw content host.

    Args:
        api_url: Base URL of the REST API. Defaults to ``https://api.github.com``.
        raw_url: Base URL of the raw content host.
        token: Bearer token. Defaults to the ``GITHUB_TOKEN`` env var. When
               empty, requests are sent unauthenticated.
        timeout: Per-request timeout in seconds. ``None`` waits indefinitely.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        raw_url: str = DEFAULT_RAW_URL,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self.token = token if token is not None else os.getenv("GITHUB_TOKEN", "")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # ----- urls ------------------------------------------------------------

    def branch_url(self, source: TrackedSource) -> str:
        return f"{self.api_url}/repos/{source.owner}/{source.name}/branches/{source.branch}"

    def meta_url(self, meta: MetaLocation) -> str:
        return f"{self.raw_url}/{meta.owner}/{meta.name}/{meta.branch}/{meta.file}"

    def content_reference(self, source: TrackedSource, path: str, sha: str) -> str:
        """Permanent contents URL for ``path`` at commit ``sha``."""
        path = path.lstrip("/")
        return f"{self.api_url}/repos/{source.owner}/{source.name}/contents/{path}?ref={sha}"

    # ----- lookups ---------------------------------------------------------

    def get_branch_sha(self, source: TrackedSource) -> str:
        """Resolve the current head commit of a tracked branch.

        Raises:
            MetadataFetchError: on a non-200 response
            MalformedResponseError: when the body lacks ``commit.sha``
        """
        url = self.branch_url(source)
        logger.debug("GET %s", url)

        response = requests.get(url, headers=self._headers(), timeout=self.timeout)
        if response.status_code != 200:
            raise MetadataFetchError(
                f"Failed to fetch commit SHA for {source.name} "
                f"(branch {source.branch}): HTTP {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Branch response for {source} is not valid JSON"
            ) from exc

        commit = body.get("commit") if isinstance(body, dict) else None
        sha = commit.get("sha") if isinstance(commit, dict) else None
        if not isinstance(sha, str) or not sha:
            raise MalformedResponseError(f"Branch response for {source} has no commit.sha")

        logger.debug("%s is at %s", source, sha[:8])
        return sha

    def get_published_meta(self, meta: MetaLocation) -> Dict[str, Dict[str, str]]:
        """Fetch the last published metadata snapshot.

        A non-200 response or an unexpected body yields an empty snapshot so
        that a first run with no published history still builds. Transport
        errors propagate.
        """
        url = self.meta_url(meta)
        logger.debug("GET %s", url)

        response = requests.get(url, timeout=self.timeout)
        if response.status_code != 200:
            logger.warning(
                "No published metadata at %s (HTTP %d), treating as empty",
                url, response.status_code,
            )
            return {}

        try:
            return validate_snapshot(response.json())
        except ValueError as exc:
            logger.warning("Published metadata at %s is not valid JSON: %s", url, exc)
            return {}
        except MalformedResponseError as exc:
            logger.warning("Published metadata at %s is malformed: %s", url, exc)
            return {}
