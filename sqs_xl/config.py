"""
Configuration for the extended SQS client.

Two layers:
- ExtendedConfig: the large-payload policy read by the send/receive/delete
  paths (enabled?, threshold, always-through-S3, key prefixing, S3 handle).
- ExtendedSettings: plain settings loaded from YAML + environment variables,
  used by ExtendedSQSClient.from_settings() to build boto3-backed adapters.

Reconfigure at setup time only; the paths read the policy without locking.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from .constants import (
    DEFAULT_SIZE_THRESHOLD,
    ENV_ALWAYS_THROUGH_S3,
    ENV_BUCKET,
    ENV_CONFIG_PATH,
    ENV_ENDPOINT_URL,
    ENV_LOG_LEVEL,
    ENV_PREFIX_KEY_WITH_QUEUE,
    ENV_REGION,
    ENV_SIZE_THRESHOLD,
)
from .errors import ConfigurationError


# ============================================================================
# LARGE-PAYLOAD POLICY
# ============================================================================

class ExtendedConfig:
    """
    Large-payload policy for one (or several) extended clients.

    A fresh config always starts with large-payload support disabled.
    Enabling requires both a blob store and a bucket name.
    """

    def __init__(
        self,
        *,
        size_threshold_bytes: int = DEFAULT_SIZE_THRESHOLD,
        always_through_store: bool = False,
        prefix_key_with_queue_id: bool = True,
    ):
        self.disable_large_payload_support()
        self.set_size_threshold(size_threshold_bytes)
        self.set_always_through_store(always_through_store)
        self.set_prefix_key_with_queue_id(prefix_key_with_queue_id)

    @classmethod
    def from_settings(cls, settings: "ExtendedSettings", store: Any = None) -> "ExtendedConfig":
        """Build a policy from loaded settings; enabled iff store and bucket are both given."""
        config = cls(
            size_threshold_bytes=settings.size_threshold_bytes,
            always_through_store=settings.always_through_store,
            prefix_key_with_queue_id=settings.prefix_key_with_queue_id,
        )
        if store is not None and settings.bucket:
            config.enable_large_payload_support(store, settings.bucket)
        return config

    # ------------------------------------------------------------------------
    # ENABLE / DISABLE
    # ------------------------------------------------------------------------

    def enable_large_payload_support(self, store: Any, container_name: str) -> None:
        if not store or not container_name:
            raise ConfigurationError(
                "enable_large_payload_support: S3 store and bucket name are both required"
            )
        self.store = store
        self.container_name = container_name
        self._large_payload_support = True

    def disable_large_payload_support(self) -> None:
        # Empty string, not None, so key/URI building never sees None
        self.store = None
        self.container_name = ""
        self._large_payload_support = False

    def is_large_payload_support_enabled(self) -> bool:
        return self._large_payload_support

    # ------------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------------

    def is_always_through_store(self) -> bool:
        return self._always_through_store

    def set_always_through_store(self, value: bool) -> None:
        self._always_through_store = bool(value)

    def get_size_threshold(self) -> int:
        return self._size_threshold_bytes

    def set_size_threshold(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"size threshold must be a non-negative int, got {value!r}")
        self._size_threshold_bytes = value

    def is_prefix_key_with_queue_id(self) -> bool:
        return self._prefix_key_with_queue_id

    def set_prefix_key_with_queue_id(self, value: bool) -> None:
        self._prefix_key_with_queue_id = bool(value)

    def __repr__(self) -> str:
        return (
            f"ExtendedConfig(enabled={self._large_payload_support}, bucket={self.container_name!r}, "
            f"threshold={self._size_threshold_bytes}, always_through_store={self._always_through_store}, "
            f"prefix_key_with_queue_id={self._prefix_key_with_queue_id})"
        )


# ============================================================================
# SETTINGS (YAML + ENV)
# ============================================================================

@dataclass
class ExtendedSettings:
    """Settings for building an extended client from the environment."""
    bucket: str = ""
    region: Optional[str] = None
    endpoint_url: Optional[str] = None  # for MinIO/LocalStack
    size_threshold_bytes: int = DEFAULT_SIZE_THRESHOLD
    always_through_store: bool = False
    prefix_key_with_queue_id: bool = True
    log_level: str = "INFO"


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(f"{name}: expected a boolean, got {value!r}")


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}") from e
    if parsed < 0:
        raise ConfigurationError(f"{name}: must be non-negative, got {parsed}")
    return parsed


def load_yaml_file(path: str) -> Dict[str, Any]:
    """Parse a YAML settings file. Missing file → {} (not an error)."""
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top-level YAML must be a mapping")
    # Accept either a flat mapping or one nested under "sqs_xl"
    if "sqs_xl" not in data:
        return data
    nested = data["sqs_xl"]
    if nested is None:
        return {}
    if not isinstance(nested, dict):
        raise ConfigurationError(f"{path}: 'sqs_xl' section must be a mapping")
    return nested


def load_env_vars(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Read SQS_XL_* (and AWS_REGION) overrides; only keys that are set."""
    env = os.environ if environ is None else environ
    mapping = {
        ENV_BUCKET: "bucket",
        ENV_REGION: "region",
        ENV_ENDPOINT_URL: "endpoint_url",
        ENV_SIZE_THRESHOLD: "size_threshold_bytes",
        ENV_ALWAYS_THROUGH_S3: "always_through_store",
        ENV_PREFIX_KEY_WITH_QUEUE: "prefix_key_with_queue_id",
        ENV_LOG_LEVEL: "log_level",
    }
    return {field: env[var] for var, field in mapping.items() if var in env}


def parse_settings(raw: Dict[str, Any]) -> ExtendedSettings:
    """Convert a raw dict to typed ExtendedSettings (unknown keys rejected)."""
    known = set(ExtendedSettings.__dataclass_fields__)
    unknown = set(raw) - known
    if unknown:
        raise ConfigurationError(f"Unknown settings: {sorted(unknown)}")

    settings = ExtendedSettings()
    if "bucket" in raw:
        settings.bucket = str(raw["bucket"] or "").strip()
    if raw.get("region"):
        settings.region = str(raw["region"])
    if raw.get("endpoint_url"):
        settings.endpoint_url = str(raw["endpoint_url"])
    if "size_threshold_bytes" in raw:
        settings.size_threshold_bytes = _parse_int("size_threshold_bytes", raw["size_threshold_bytes"])
    if "always_through_store" in raw:
        settings.always_through_store = _parse_bool("always_through_store", raw["always_through_store"])
    if "prefix_key_with_queue_id" in raw:
        settings.prefix_key_with_queue_id = _parse_bool("prefix_key_with_queue_id", raw["prefix_key_with_queue_id"])
    if "log_level" in raw:
        level = str(raw["log_level"]).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ConfigurationError(f"log_level: invalid level {raw['log_level']!r}")
        settings.log_level = level
    return settings


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> ExtendedSettings:
    """
    Load settings. Priority (highest to lowest):
    1. Environment variables (SQS_XL_*, AWS_REGION)
    2. YAML file at `path`, or $SQS_XL_CONFIG
    3. Dataclass defaults
    """
    env = os.environ if environ is None else environ
    if path is None:
        path = env.get(ENV_CONFIG_PATH)

    raw: Dict[str, Any] = {}
    if path:
        raw.update(load_yaml_file(path))
    raw.update(load_env_vars(env))
    return parse_settings(raw)


__all__ = [
    "ExtendedConfig", "ExtendedSettings",
    "load_settings", "load_yaml_file", "load_env_vars", "parse_settings",
]
