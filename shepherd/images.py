"""
images.py

Responsibility: map symbolic image names to concrete ECR image URIs.

Each default image pairs a URI template with the packaged build spec used when a
repository does not ship its own `buildspec.yml`. Any name missing from the table is
treated as a full image reference supplied by the repository.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DefaultImage:
    name: str
    uri_template: str
    buildspec: str

    def uri(self, account_id: str, region: str) -> str:
        return self.uri_template.format(account_id=account_id, region=region)


DEFAULT_IMAGES: dict[str, DefaultImage] = {}


def register_image(image: DefaultImage, images: dict[str, DefaultImage] | None = None) -> DefaultImage:
    table = DEFAULT_IMAGES if images is None else images
    table[image.name] = image
    return image


register_image(
    DefaultImage(
        name="nodejs6.x",
        uri_template="{account_id}.dkr.ecr.{region}.amazonaws.com/bundle-shepherd:nodejs6.x",
        buildspec="nodejs6.x.yml",
    )
)


def get_default_image(image_name: str, images: dict[str, DefaultImage] | None = None) -> DefaultImage | None:
    table = DEFAULT_IMAGES if images is None else images
    return table.get(image_name)


def resolve_image_uri(
    image_name: str,
    account_id: str,
    region: str,
    images: dict[str, DefaultImage] | None = None,
) -> str:
    default = get_default_image(image_name, images)
    if default is None:
        return image_name
    return default.uri(account_id, region)
