"""
handler.py

Responsibility: Lambda entrypoint for GitHub push notifications delivered through SNS.

High-level flow (one event, one build):
1) Parse the SNS-wrapped push payload -> `CommitEvent`
2) Read overrides from the pushed commit (`overrides.py`)
3) Resolve the image URI (`images.py`)
4) Find or create the CodeBuild project (`codebuild.py`)
5) Load the default build spec unless the repository ships one (`buildspec.py`)
6) Start the build

The first error at any step aborts the invocation; redelivery is up to the caller.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any

from shepherd.buildspec import load_default_buildspec
from shepherd.codebuild import BuildInfo, CodeBuild
from shepherd.config import Settings, configure_logging
from shepherd.github_client import GitHubClient
from shepherd.images import resolve_image_uri
from shepherd.overrides import resolve_overrides

logger = logging.getLogger(__name__)


class EventError(ValueError):
    pass


@dataclass(frozen=True)
class CommitEvent:
    org: str
    repo: str
    sha: str


def parse_push_payload(payload: dict[str, Any]) -> CommitEvent:
    try:
        repository = payload["repository"]
        org = repository["owner"]["name"]
        repo = repository["name"]
        sha = payload["after"]
    except (KeyError, TypeError) as e:
        raise EventError(f"Push payload is missing a required field: {e}") from e
    if not (org and repo and sha):
        raise EventError("Push payload has an empty owner, repository or sha.")
    return CommitEvent(org=str(org), repo=str(repo), sha=str(sha))


def parse_event(event: dict[str, Any]) -> CommitEvent:
    try:
        message = event["Records"][0]["Sns"]["Message"]
    except (KeyError, IndexError, TypeError) as e:
        raise EventError("Event is not an SNS notification.") from e
    try:
        payload = json.loads(message)
    except (json.JSONDecodeError, TypeError) as e:
        raise EventError("SNS message is not a JSON push payload.") from e
    return parse_push_payload(payload)


def trigger(
    commit: CommitEvent,
    settings: Settings,
    *,
    github: GitHubClient | None = None,
    codebuild: CodeBuild | None = None,
) -> BuildInfo:
    github = github or GitHubClient(settings.github_token, api_base=settings.github_api)
    codebuild = codebuild or CodeBuild.for_region(settings.region)

    logger.info("Looking for repo overrides: %s/%s@%s", commit.org, commit.repo, commit.sha)
    overrides = resolve_overrides(github, commit.org, commit.repo, commit.sha, strict=settings.strict_fetch)

    image_uri = resolve_image_uri(overrides.image, settings.account_id, settings.region)
    logger.info("Looking for existing project: image=%s size=%s", image_uri, overrides.size)

    project, created = codebuild.find_or_create_project(
        org=commit.org,
        repo=commit.repo,
        image_uri=image_uri,
        size=overrides.size,
        bucket=settings.bucket,
        prefix=settings.prefix,
        role=settings.role,
    )
    if created:
        logger.info("Created project %s", project.name)

    buildspec = None
    if not overrides.uses_custom_buildspec:
        buildspec = load_default_buildspec(
            overrides.image,
            context={
                "org": commit.org,
                "repo": commit.repo,
                "sha": commit.sha,
                "image_name": overrides.image,
                "image_uri": image_uri,
            },
        )

    build = codebuild.run_build(
        org=commit.org,
        repo=commit.repo,
        image_uri=image_uri,
        sha=commit.sha,
        bucket=settings.bucket,
        prefix=settings.prefix,
        buildspec=buildspec,
    )
    logger.info("Started build %s for %s/%s@%s", build.id, commit.org, commit.repo, commit.sha)
    return build


def lambda_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    commit = parse_event(event)
    return asdict(trigger(commit, settings))
