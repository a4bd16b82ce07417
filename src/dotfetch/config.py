# src/dotfetch/config.py
"""
Configuration loading and validation for dotfetch.

Settings come from built-in defaults, then the YAML configuration file, then
command-line flags. The resulting FetchConfig is passed explicitly to the
orchestrator.
"""

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import platformdirs
import yaml

from dotfetch.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_CHANNELS,
    DEFAULT_FEED,
    DEFAULT_FORMATS,
    DEFAULT_KINDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PLATFORMS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_UNCACHED_FEED,
)
from dotfetch.download.interfaces import ArtifactKind, PackageFormat, Platform
from dotfetch.exceptions import ConfigFileError, ConfigValidationError

E = TypeVar("E", bound=Enum)

CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

# YAML key -> FetchConfig attribute
CONFIG_KEYS = {
    "CHANNELS": "channels",
    "KINDS": "kinds",
    "PLATFORMS": "platforms",
    "FORMATS": "formats",
    "DOWNLOAD_DIR": "output_dir",
    "FEED": "feed",
    "UNCACHED_FEED": "uncached_feed",
    "PROXY_ADDRESS": "proxy_address",
    "PROXY_USE_DEFAULT_CREDENTIALS": "proxy_use_default_credentials",
    "USE_UNCACHED_FEED": "use_uncached_feed",
    "DRY_RUN": "dry_run",
    "MAX_ATTEMPTS": "max_attempts",
    "RETRY_DELAY_SECONDS": "retry_delay",
    "LOG_LEVEL": "log_level",
    "LOG_DIR": "log_dir",
}

LIST_FIELDS = ("channels", "kinds", "platforms", "formats")


def _as_list(value: Any) -> List[Any]:
    """Wrap a scalar in a list and split comma-separated strings."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    result: List[Any] = []
    for item in items:
        if isinstance(item, str):
            result.extend(part.strip() for part in item.split(",") if part.strip())
        else:
            result.append(item)
    return result


def parse_enum_list(values: Any, enum_type: Type[E], label: str) -> List[E]:
    """
    Convert strings (case-insensitive) to members of `enum_type`.

    Raises:
        ConfigValidationError: A value is not a member of `enum_type`.
    """
    parsed: List[E] = []
    for value in _as_list(values):
        if isinstance(value, enum_type):
            parsed.append(value)
            continue
        try:
            parsed.append(enum_type(str(value).strip().lower()))
        except ValueError:
            choices = ", ".join(member.value for member in enum_type)
            raise ConfigValidationError(
                f"Invalid {label}: {value}", details=f"choose from {choices}"
            ) from None
    return parsed


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass
class FetchConfig:
    """Everything the download pipeline needs for one run."""

    channels: List[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))
    kinds: List[ArtifactKind] = field(
        default_factory=lambda: [ArtifactKind(k) for k in DEFAULT_KINDS]
    )
    platforms: List[Platform] = field(
        default_factory=lambda: [Platform(p) for p in DEFAULT_PLATFORMS]
    )
    formats: List[PackageFormat] = field(
        default_factory=lambda: [PackageFormat(f) for f in DEFAULT_FORMATS]
    )
    output_dir: str = DEFAULT_OUTPUT_DIR
    feed: str = DEFAULT_FEED
    uncached_feed: str = DEFAULT_UNCACHED_FEED
    proxy_address: Optional[str] = None
    proxy_use_default_credentials: bool = False
    use_uncached_feed: bool = False
    dry_run: bool = False
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    log_level: Optional[str] = None
    log_dir: Optional[str] = None

    @property
    def download_feed(self) -> str:
        """Feed used for artifact downloads."""
        return self.uncached_feed if self.use_uncached_feed else self.feed

    @property
    def metadata_feed(self) -> str:
        """Feed used for latest.version lookups; always the origin so results are fresh."""
        return self.uncached_feed

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], base: Optional["FetchConfig"] = None
    ) -> "FetchConfig":
        """
        Build a FetchConfig from a YAML-style mapping layered over `base` (or the defaults).

        Unknown keys are ignored. A scalar given for a list key becomes a one-item list.

        Raises:
            ConfigValidationError: A value cannot be converted.
        """
        config = base if base is not None else cls()
        overrides: Dict[str, Any] = {}
        for key, value in mapping.items():
            attr = CONFIG_KEYS.get(str(key).upper())
            if attr is None:
                continue
            overrides[attr] = value
        return config.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> "FetchConfig":
        """
        Return a copy with the given attributes replaced; None values are ignored.

        Raises:
            ConfigValidationError: A value cannot be converted.
        """
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for name, value in overrides.items():
            if name not in known:
                raise ConfigValidationError(f"Unknown configuration option: {name}")
            if value is None:
                continue
            changes[name] = self._coerce(name, value)
        return replace(self, **changes)

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "channels":
            return [str(v) for v in _as_list(value)]
        if name == "kinds":
            return parse_enum_list(value, ArtifactKind, "artifact kind")
        if name == "platforms":
            return parse_enum_list(value, Platform, "platform")
        if name == "formats":
            return parse_enum_list(value, PackageFormat, "package format")
        if name in ("proxy_use_default_credentials", "use_uncached_feed", "dry_run"):
            return _as_bool(value)
        try:
            if name == "max_attempts":
                return int(value)
            if name == "retry_delay":
                return float(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(
                f"Invalid value for {name}: {value!r}"
            ) from None
        return str(value)

    def validate(self) -> None:
        """
        Check the configuration before any network or filesystem activity.

        Raises:
            ConfigValidationError: A required list is empty or a retry setting is out of range.
        """
        for name in LIST_FIELDS:
            if not getattr(self, name):
                raise ConfigValidationError(
                    f"At least one value is required for {name}"
                )
        if self.max_attempts < 1:
            raise ConfigValidationError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.retry_delay < 0:
            raise ConfigValidationError(
                f"retry_delay must not be negative, got {self.retry_delay}"
            )


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the dotfetch YAML configuration.

    Parameters:
        path (str | None): Explicit configuration file. When omitted, the platformdirs
            location is used and a missing file yields an empty mapping.

    Returns:
        dict: The parsed configuration mapping.

    Raises:
        ConfigFileError: An explicit file is missing, or a file cannot be read or parsed,
            or its top level is not a mapping.
    """
    config_path = path or CONFIG_FILE
    if not os.path.exists(config_path):
        if path:
            raise ConfigFileError(f"Configuration file not found: {config_path}")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(
            f"Failed to load configuration from {config_path}", details=str(e)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Configuration in {config_path} must be a mapping",
            details=f"got {type(data).__name__}",
        )
    return data
