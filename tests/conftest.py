from __future__ import annotations

import base64
import json
from typing import Any

import boto3
import pytest
import requests
from botocore.stub import Stubber

from shepherd.codebuild import CodeBuild
from shepherd.config import Settings
from shepherd.github_client import GitHubClient


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


def file_payload(path: str, text: str) -> dict[str, Any]:
    encoded = base64.encodebytes(text.encode("utf-8")).decode("ascii")
    return {"type": "file", "path": path, "encoding": "base64", "content": encoded}


class FakeGitHub:
    """
    Replaces `requests.request` and answers contents lookups by file path.

    Unknown paths get a 404, like GitHub does for missing files.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    def add_file(self, path: str, text: str) -> None:
        self.routes[path] = FakeResponse(200, file_payload(path, text))

    def add_response(self, path: str, status_code: int, payload: Any = None) -> None:
        self.routes[path] = FakeResponse(status_code, payload)

    def add_exception(self, path: str, exc: Exception) -> None:
        self.routes[path] = exc

    def __call__(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        path = url.split("/contents/", 1)[-1]
        route = self.routes.get(path)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(404, {"message": "Not Found"})
        return route


@pytest.fixture()
def fake_github(monkeypatch: pytest.MonkeyPatch) -> FakeGitHub:
    fake = FakeGitHub()
    monkeypatch.setattr(requests, "request", fake)
    return fake


@pytest.fixture()
def github_client() -> GitHubClient:
    return GitHubClient("test-token")


@pytest.fixture()
def codebuild_client() -> Any:
    return boto3.client(
        "codebuild",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture()
def stubber(codebuild_client: Any):
    with Stubber(codebuild_client) as s:
        yield s
        s.assert_no_pending_responses()


@pytest.fixture()
def codebuild(codebuild_client: Any) -> CodeBuild:
    return CodeBuild(codebuild_client)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        github_token="test-token",
        account_id="123456789012",
        region="us-east-1",
        bucket="bundles",
        prefix="lambda",
        role="arn:aws:iam::123456789012:role/bundle-shepherd",
    )
