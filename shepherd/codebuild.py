"""
codebuild.py

Responsibility: Isolate all direct AWS CodeBuild interaction.

Projects are keyed by `naming.project_name(org, repo, image_uri)`. Each repository gets a
GitHub-sourced project (OAuth auth) writing ZIP artifacts to `s3://bucket/prefix/repo`;
each build writes `<sha>.zip` there.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import ClientError

from shepherd.naming import project_name

logger = logging.getLogger(__name__)

COMPUTE_SIZES = ("small", "medium", "large")


class CodeBuildError(ValueError):
    pass


@dataclass(frozen=True)
class ProjectInfo:
    name: str
    arn: str | None = None
    image: str | None = None
    compute_type: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ProjectInfo:
        environment = data.get("environment") or {}
        return cls(
            name=data["name"],
            arn=data.get("arn"),
            image=environment.get("image"),
            compute_type=environment.get("computeType"),
        )


@dataclass(frozen=True)
class BuildInfo:
    id: str
    arn: str | None = None
    project_name: str | None = None
    source_version: str | None = None
    status: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> BuildInfo:
        return cls(
            id=data["id"],
            arn=data.get("arn"),
            project_name=data.get("projectName"),
            source_version=data.get("sourceVersion"),
            status=data.get("buildStatus"),
        )


def compute_type(size: str) -> str:
    if size.lower() not in COMPUTE_SIZES:
        raise CodeBuildError(f"Unknown compute size {size!r} (expected one of: {', '.join(COMPUTE_SIZES)})")
    return f"BUILD_GENERAL1_{size.upper()}"


def _s3_artifacts(bucket: str, prefix: str, repo: str) -> dict[str, str]:
    return {
        "type": "S3",
        "packaging": "ZIP",
        "location": bucket,
        "path": f"{prefix}/{repo}",
    }


class CodeBuild:
    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def for_region(cls, region: str) -> CodeBuild:
        return cls(boto3.client("codebuild", region_name=region))

    def find_project(self, org: str, repo: str, image_uri: str) -> ProjectInfo | None:
        name = project_name(org, repo, image_uri)
        logger.info("Find project args: %s", json.dumps({"names": [name]}))
        data = self._client.batch_get_projects(names=[name])
        projects = data.get("projects") or []
        if not projects:
            return None
        return ProjectInfo.from_api(projects[0])

    def create_project(
        self,
        *,
        org: str,
        repo: str,
        image_uri: str,
        size: str,
        bucket: str,
        prefix: str,
        role: str,
    ) -> ProjectInfo:
        params = {
            "name": project_name(org, repo, image_uri),
            "description": f"Lambda builds for {org}/{repo}",
            "serviceRole": role,
            "source": {
                "type": "GITHUB",
                "location": f"https://github.com/{org}/{repo}",
                "auth": {"type": "OAUTH"},
            },
            "artifacts": _s3_artifacts(bucket, prefix, repo),
            "environment": {
                "type": "LINUX_CONTAINER",
                "image": image_uri,
                "computeType": compute_type(size),
            },
        }
        logger.info("Create project: %s", json.dumps(params))
        data = self._client.create_project(**params)
        return ProjectInfo.from_api(data["project"])

    def find_or_create_project(
        self,
        *,
        org: str,
        repo: str,
        image_uri: str,
        size: str,
        bucket: str,
        prefix: str,
        role: str,
    ) -> tuple[ProjectInfo, bool]:
        """
        Return (project, created).

        A concurrent invocation may create the project between lookup and creation; in that
        case CodeBuild reports ResourceAlreadyExistsException and the project is looked up again.
        """
        existing = self.find_project(org, repo, image_uri)
        if existing is not None:
            logger.info("Found existing project %s", existing.name)
            return existing, False

        try:
            project = self.create_project(
                org=org,
                repo=repo,
                image_uri=image_uri,
                size=size,
                bucket=bucket,
                prefix=prefix,
                role=role,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceAlreadyExistsException":
                raise
            existing = self.find_project(org, repo, image_uri)
            if existing is None:
                raise
            logger.info("Project %s was created concurrently", existing.name)
            return existing, False
        return project, True

    def run_build(
        self,
        *,
        org: str,
        repo: str,
        image_uri: str,
        sha: str,
        bucket: str,
        prefix: str,
        buildspec: str | None = None,
    ) -> BuildInfo:
        params: dict[str, Any] = {
            "projectName": project_name(org, repo, image_uri),
            "sourceVersion": sha,
            "artifactsOverride": {**_s3_artifacts(bucket, prefix, repo), "name": f"{sha}.zip"},
        }
        if buildspec:
            params["buildspecOverride"] = buildspec

        logger.info("Run a build: %s", json.dumps(params))
        data = self._client.start_build(**params)
        return BuildInfo.from_api(data["build"])
