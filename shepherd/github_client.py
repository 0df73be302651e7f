"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Contents lookups never raise: they return one of `FileContent`, `Absent` or
`FetchFailed` so the caller decides what a failed fetch means.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Union

import requests

USER_AGENT = "github.com/mapbox/bundle-shepherd"


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class FileContent:
    path: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class Absent:
    """The path does not exist at the ref, or is not a regular file."""

    path: str


@dataclass(frozen=True)
class FetchFailed:
    """The lookup itself failed (transport error, auth, rate limit, 5xx...)."""

    path: str
    error: str


ContentResult = Union[FileContent, Absent, FetchFailed]


def _decode_content(data: dict[str, Any]) -> bytes:
    raw = data.get("content") or ""
    encoding = (data.get("encoding") or "base64").lower()
    if encoding == "base64":
        try:
            return base64.b64decode(raw)
        except (binascii.Error, ValueError) as e:
            raise GitHubError(f"Invalid base64 content for {data.get('path')}") from e
    if encoding in ("utf-8", "utf8"):
        return raw.encode("utf-8")
    raise GitHubError(f"Unsupported content encoding {encoding!r} for {data.get('path')}")


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com", timeout: float = 30) -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }

    def _request(self, method: str, path: str, *, params: dict[str, str] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        r = requests.request(method, url, headers=self._headers(), params=params, timeout=self._timeout)
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        if r.status_code == 204:
            return None
        return r.json()

    def get_contents(self, org: str, repo: str, path: str, ref: str) -> ContentResult:
        """
        Look up a single file in org/repo at ref.

        A 404 or a non-file entry (directory, symlink, submodule) is `Absent`; any other
        failure is `FetchFailed`.
        """
        try:
            data = self._request("GET", f"/repos/{org}/{repo}/contents/{path}", params={"ref": ref})
        except GitHubError as e:
            if e.status_code == 404:
                return Absent(path)
            return FetchFailed(path, str(e))
        except requests.RequestException as e:
            return FetchFailed(path, f"{type(e).__name__}: {e}")

        # Directories come back as a JSON list.
        if not isinstance(data, dict) or data.get("type") != "file":
            return Absent(path)
        try:
            return FileContent(path, _decode_content(data))
        except GitHubError as e:
            return FetchFailed(path, str(e))
