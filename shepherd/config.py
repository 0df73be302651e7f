"""
config.py

Responsibility: build `Settings` from the environment once per invocation.

Inner modules never read the environment; they receive values from `Settings`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Environment variable -> Settings field
REQUIRED_ENV = {
    "GITHUB_ACCESS_TOKEN": "github_token",
    "AWS_ACCOUNT_ID": "account_id",
    "AWS_DEFAULT_REGION": "region",
    "S3_BUCKET": "bucket",
    "S3_PREFIX": "prefix",
    "PROJECT_ROLE": "role",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    github_token: str = field(repr=False)
    account_id: str
    region: str
    bucket: str
    prefix: str
    role: str
    log_level: str = "INFO"
    strict_fetch: bool = False
    github_api: str = "https://api.github.com"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_ENV if not (env.get(name) or "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        values = {attr: env[name].strip() for name, attr in REQUIRED_ENV.items()}

        log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Invalid LOG_LEVEL: {log_level}")

        strict_raw = (env.get("SHEPHERD_STRICT_FETCH") or "").strip().lower()
        if strict_raw in _TRUE:
            strict_fetch = True
        elif strict_raw in _FALSE:
            strict_fetch = False
        else:
            raise ConfigError(f"Invalid SHEPHERD_STRICT_FETCH: {strict_raw}")

        return cls(
            **values,
            log_level=log_level,
            strict_fetch=strict_fetch,
            github_api=(env.get("GITHUB_API_URL") or "https://api.github.com").strip(),
        )


def configure_logging(level: str = "INFO") -> None:
    # The Lambda runtime installs its own handler; basicConfig is then a no-op.
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
