# services/pitchprint_relay/config.py

import hashlib
import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_PORT = 3001
DEFAULT_UPLOAD_URL = "https://api.pitchprint.io/runtime/file_upload"


class ConfigError(ValueError):
    """Startup configuration is missing or unusable."""


class RelayConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str
    secret_key: str
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    upload_url: str = DEFAULT_UPLOAD_URL
    digest: str = "md5"
    upstream_timeout: float = 60.0
    log_level: str = "INFO"


def load_config(environ: Optional[Mapping[str, str]] = None) -> RelayConfig:
    """Build the process-wide config from environment variables.

    Raises ConfigError when API_KEY or SECRET_KEY is missing/empty, or when
    an optional value cannot be used.
    """
    env = os.environ if environ is None else environ

    api_key = env.get("API_KEY", "")
    secret_key = env.get("SECRET_KEY", "")
    if not api_key or not secret_key:
        raise ConfigError("API_KEY or SECRET_KEY is missing from the environment")

    try:
        port = int(env.get("PORT") or DEFAULT_PORT)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {env.get('PORT')!r}")

    try:
        timeout = float(env.get("UPSTREAM_TIMEOUT") or 60.0)
    except ValueError:
        raise ConfigError(f"UPSTREAM_TIMEOUT must be a number, got {env.get('UPSTREAM_TIMEOUT')!r}")
    if timeout <= 0:
        raise ConfigError("UPSTREAM_TIMEOUT must be positive")

    digest = (env.get("SIGNATURE_DIGEST") or "md5").lower()
    # must be a fixed-length hashlib digest (shake_* needs a length for hexdigest)
    try:
        hashlib.new(digest).hexdigest()
    except (ValueError, TypeError):
        raise ConfigError(f"SIGNATURE_DIGEST {digest!r} is not a fixed-length hashlib digest")

    log_level = (env.get("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"LOG_LEVEL {log_level!r} is not a logging level")

    return RelayConfig(
        api_key=api_key,
        secret_key=secret_key,
        host=env.get("HOST") or "0.0.0.0",
        port=port,
        upload_url=env.get("PITCHPRINT_UPLOAD_URL") or DEFAULT_UPLOAD_URL,
        digest=digest,
        upstream_timeout=timeout,
        log_level=log_level,
    )
