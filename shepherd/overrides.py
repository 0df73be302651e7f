"""
overrides.py

Responsibility: read per-repository build overrides from a commit.

Two optional files are looked up in parallel at the pushed sha:
- `buildspec.yml`: when present, CodeBuild uses the repository's own build spec
- `.bundle-shepherd.json`: `{"image": ..., "size": ...}` overrides for the build environment

Both lookups finish before the result is assembled.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from shepherd.github_client import Absent, ContentResult, FetchFailed, FileContent, GitHubClient

logger = logging.getLogger(__name__)

BUILDSPEC_PATH = "buildspec.yml"
CONFIG_PATH = ".bundle-shepherd.json"

DEFAULT_IMAGE = "nodejs6.x"
DEFAULT_SIZE = "small"


class OverrideError(ValueError):
    pass


@dataclass(frozen=True)
class RepoOverrides:
    uses_custom_buildspec: bool = False
    image: str = DEFAULT_IMAGE
    size: str = DEFAULT_SIZE

    def as_dict(self) -> dict[str, Any]:
        return {"buildspec": self.uses_custom_buildspec, "image": self.image, "size": self.size}


def parse_config(text: str) -> dict[str, str]:
    """
    Parse `.bundle-shepherd.json`, keeping only the non-empty `image` / `size` fields.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise OverrideError(f"{CONFIG_PATH} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise OverrideError(f"{CONFIG_PATH} must be a JSON object.")

    out: dict[str, str] = {}
    for key in ("image", "size"):
        value = data.get(key)
        if not value:
            continue
        if not isinstance(value, str):
            raise OverrideError(f"{CONFIG_PATH}: `{key}` must be a string.")
        out[key] = value
    return out


def _settle(result: ContentResult, *, strict: bool) -> ContentResult:
    if not isinstance(result, FetchFailed):
        return result
    if strict:
        raise OverrideError(f"Could not fetch {result.path}: {result.error}")
    logger.warning("Treating %s as absent, fetch failed: %s", result.path, result.error)
    return Absent(result.path)


def resolve_overrides(
    client: GitHubClient,
    org: str,
    repo: str,
    sha: str,
    *,
    strict: bool = False,
) -> RepoOverrides:
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="overrides") as pool:
        buildspec_future = pool.submit(client.get_contents, org, repo, BUILDSPEC_PATH, sha)
        config_future = pool.submit(client.get_contents, org, repo, CONFIG_PATH, sha)
        buildspec = buildspec_future.result()
        config = config_future.result()

    buildspec = _settle(buildspec, strict=strict)
    config = _settle(config, strict=strict)

    fields: dict[str, str] = {}
    if isinstance(config, FileContent):
        try:
            text = config.text
        except UnicodeDecodeError as e:
            raise OverrideError(f"{CONFIG_PATH} is not UTF-8 text.") from e
        fields = parse_config(text)

    result = RepoOverrides(uses_custom_buildspec=isinstance(buildspec, FileContent), **fields)
    logger.info("Override result for %s/%s@%s: %s", org, repo, sha, json.dumps(result.as_dict()))
    return result
