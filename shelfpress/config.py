"""Configuration model and loaders for shelfpress.

Responsibilities:
- Define storage roots, tool names, and tool limits as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ShelfpressConfig`: normalized runtime settings shared by every pipeline run.
- `ConfigLoader`: static construction helpers for `ShelfpressConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .io.storage import StorageLayout
from .parsing import normalize_optional_string, parse_positive_float
from .runtime_tools import DEFAULT_TOOL_TIMEOUT_SECONDS
from .stages.descriptor import DEFAULT_TRACKERS


@dataclass(slots=True)
class ShelfpressConfig:
    """Runtime configuration for the artifact pipeline.

    Attributes:
        uploads_dir: Parent directory of the default per-kind roots.
        documents_dir: Override for the sanitized document root.
        covers_dir: Override for the cover image root.
        reflow_dir: Override for the reflowable edition root.
        descriptors_dir: Override for the distribution descriptor root.
        staging_dir: Override for the staging root; keep it on the same filesystem.
        trackers: Announce endpoints embedded in descriptors.
        tool_timeout_seconds: Hard limit for one external tool invocation.
        exiftool: Metadata tool executable name.
        ebook_convert: Conversion tool executable name.
        transmission_create: Descriptor tool executable name.
    """

    uploads_dir: Path = Path("uploads")
    documents_dir: Path | None = None
    covers_dir: Path | None = None
    reflow_dir: Path | None = None
    descriptors_dir: Path | None = None
    staging_dir: Path | None = None
    trackers: tuple[str, ...] = DEFAULT_TRACKERS
    tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS
    exiftool: str = "exiftool"
    ebook_convert: str = "ebook-convert"
    transmission_create: str = "transmission-create"

    def validate(self) -> None:
        """Validate configuration values before pipeline construction."""

        if not self.trackers:
            raise ValueError("`trackers` must list at least one announce URL.")
        for tracker in self.trackers:
            if normalize_optional_string(tracker) is None:
                raise ValueError("`trackers` must not contain blank entries.")
        if self.tool_timeout_seconds <= 0:
            raise ValueError("`tool_timeout_seconds` must be a positive number.")
        self._require_non_empty(self.exiftool, "exiftool")
        self._require_non_empty(self.ebook_convert, "ebook_convert")
        self._require_non_empty(self.transmission_create, "transmission_create")

    def layout(self) -> StorageLayout:
        """Build the storage layout, applying per-kind overrides."""

        defaults = StorageLayout.under(self.uploads_dir)
        return StorageLayout(
            documents_root=self.documents_dir or defaults.documents_root,
            covers_root=self.covers_dir or defaults.covers_root,
            reflow_root=self.reflow_dir or defaults.reflow_root,
            descriptors_root=self.descriptors_dir or defaults.descriptors_root,
            staging_root=self.staging_dir or defaults.staging_root,
        )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        if normalize_optional_string(value) is None:
            raise ValueError(f"`{field_name}` must be a non-empty executable name.")


class ConfigLoader:
    """Factory methods for constructing `ShelfpressConfig` objects."""

    _PATH_KEYS = (
        "uploads_dir",
        "documents_dir",
        "covers_dir",
        "reflow_dir",
        "descriptors_dir",
        "staging_dir",
    )
    _EXECUTABLE_KEYS = ("exiftool", "ebook_convert", "transmission_create")
    _SUPPORTED_YAML_KEYS = frozenset(
        {*_PATH_KEYS, *_EXECUTABLE_KEYS, "trackers", "tool_timeout_seconds"}
    )
    _ENV_PREFIX = "SHELFPRESS_"

    @staticmethod
    def from_yaml(path: Path) -> ShelfpressConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ShelfpressConfig:
        """Create a validated config from `SHELFPRESS_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS:
            value = normalize_optional_string(env_map.get(f"{ConfigLoader._ENV_PREFIX}{key.upper()}"))
            if value is None:
                continue
            if key == "trackers":
                payload[key] = [item for item in value.split(",") if item.strip()]
            else:
                payload[key] = value
        return ConfigLoader._build_config_from_mapping(payload, source_label="environment")

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> ShelfpressConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        config = ShelfpressConfig()
        for key in ConfigLoader._PATH_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                setattr(config, key, Path(value))
        for key in ConfigLoader._EXECUTABLE_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                setattr(config, key, value)

        if "tool_timeout_seconds" in payload:
            try:
                config.tool_timeout_seconds = parse_positive_float(
                    payload["tool_timeout_seconds"], "tool_timeout_seconds"
                )
            except ValueError as exc:
                raise ValueError(f"{source_label} field {exc}") from exc

        if "trackers" in payload:
            config.trackers = ConfigLoader._trackers(payload["trackers"], source_label)

        config.validate()
        return config

    @staticmethod
    def _trackers(raw: object, source_label: str) -> tuple[str, ...]:
        """Read a non-empty list of announce URLs."""

        if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
            raise ValueError(f"{source_label} field `trackers` must be a list of URLs.")
        trackers: list[str] = []
        for item in raw:
            value = normalize_optional_string(item)
            if value is None:
                raise ValueError(f"{source_label} field `trackers` contains a blank entry.")
            trackers.append(value)
        if not trackers:
            raise ValueError(f"{source_label} field `trackers` must list at least one URL.")
        return tuple(trackers)
