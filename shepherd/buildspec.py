"""
buildspec.py

Responsibility: load the packaged default build spec for a default image.

Rules:
- Build specs ship as package data under `shepherd/buildspecs/`.
- `*.yml` resources are returned exactly as packaged, whatever characters they contain.
- Only `*.j2` resources are Jinja2 templates, rendered against the commit context (StrictUndefined).
- The result must be a YAML mapping with a `version` key.
"""

from __future__ import annotations

from importlib import resources
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError

from shepherd.images import DefaultImage, get_default_image

TEMPLATE_SUFFIX = ".j2"


class BuildspecError(RuntimeError):
    pass


def is_template(filename: str) -> bool:
    return filename.endswith(TEMPLATE_SUFFIX)


def render_buildspec(filename: str, text: str, context: dict[str, Any] | None = None) -> str:
    if not is_template(filename):
        return text
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    try:
        return env.from_string(text).render(**(context or {}))
    except TemplateError as e:
        raise BuildspecError(f"Failed rendering build spec {filename}: {e}") from e


def validate_buildspec(text: str) -> None:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise BuildspecError(f"Build spec is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise BuildspecError("Build spec must be a mapping at the top level.")
    if "version" not in data:
        raise BuildspecError("Build spec must define `version`.")


def read_packaged(filename: str) -> str:
    resource = resources.files("shepherd").joinpath("buildspecs").joinpath(filename)
    if not resource.is_file():
        raise BuildspecError(f"Packaged build spec not found: {filename}")
    # Bytes, so line endings are not translated.
    return resource.read_bytes().decode("utf-8")


def load_default_buildspec(
    image_name: str,
    context: dict[str, Any] | None = None,
    images: dict[str, DefaultImage] | None = None,
) -> str:
    """
    Return the build spec text CodeBuild should use for a default image.

    Raises BuildspecError when `image_name` has no packaged build spec, e.g. a custom image
    from `.bundle-shepherd.json` in a repository without its own `buildspec.yml`.
    """
    image = get_default_image(image_name, images)
    if image is None:
        raise BuildspecError(
            f"No default build spec for image {image_name!r}; add a buildspec.yml to the repository."
        )
    text = render_buildspec(image.buildspec, read_packaged(image.buildspec), context)
    validate_buildspec(text)
    return text
