"""
naming.py

Responsibility: derive the CodeBuild project name for a repository and build image.

The name is used both to look a project up and to create it, so it must stay stable
across processes and releases.
"""

from __future__ import annotations


def image_segment(image_uri: str) -> str:
    """
    Last path segment of an image reference with ':' and '.' replaced by '_'.
    """
    segment = image_uri.rsplit("/", 1)[-1]
    return segment.replace(":", "_").replace(".", "_")


def project_name(org: str, repo: str, image_uri: str) -> str:
    return f"{org}_{repo}_{image_segment(image_uri)}"
