"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to every setting an image build needs
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Cross-field checks (base image, user data) live next to the fields they
  check and raise ConfigError, so a bad config never reaches the cloud
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import base64
import binascii
import dataclasses
import json
import logging
import os
import time

from surrogate.domain.errors import ConfigError
from surrogate.domain.value_objects.launch_source import BaseImage
from surrogate.domain.value_objects.placement import Placement
from surrogate.domain.value_objects.wait_policy import WaitPolicy

logger = logging.getLogger(__name__)

PROVIDERS = ("simulated", "oci")
ROOT_KEYS = ("log_level", "json_logs")


@dataclass(frozen=True)
class ProviderConfig:
    """Which compute backend to drive, and where its credentials live."""
    name: str = "simulated"
    config_file: str = "~/.oci/config"
    profile: str = "DEFAULT"


@dataclass(frozen=True)
class InstanceConfig:
    """Placement and launch settings of the build instance."""
    availability_domain: str = ""
    compartment_id: str = ""
    shape: str = ""
    subnet_id: str = ""
    display_name: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    user_data: str = ""
    user_data_file: str = ""
    use_private_ip: bool = False

    def placement(self) -> Placement:
        try:
            return Placement(self.availability_domain, self.compartment_id)
        except ValueError as e:
            raise ConfigError(str(e)) from e


@dataclass(frozen=True)
class SourceConfig:
    """Base image the build instance boots from."""
    image_id: str = ""
    image_name: str = ""
    boot_volume_size_in_gbs: Optional[int] = None

    def base_image(self) -> BaseImage:
        if not self.image_id and not self.image_name:
            raise ConfigError("One of source.image_id or source.image_name is required")
        return BaseImage(
            image_id=self.image_id or None, display_name=self.image_name or None
        )


def _default_image_name() -> str:
    return f"surrogate-{int(time.time())}"


@dataclass(frozen=True)
class ImageConfig:
    """Name and tags of the captured image."""
    display_name: str = field(default_factory=_default_image_name)
    freeform_tags: dict[str, str] = field(default_factory=dict)
    defined_tags: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class WaitConfig:
    """State polling cadence. max_retries of 0 polls until cancelled."""
    delay_seconds: float = 5.0
    max_retries: int = 0

    def policy(self) -> WaitPolicy:
        try:
            return WaitPolicy(max_retries=self.max_retries, delay_seconds=self.delay_seconds)
        except ValueError as e:
            raise ConfigError(str(e)) from e


@dataclass(frozen=True)
class BuildConfig:
    """Optional build behaviours."""
    clone_boot_volume: bool = False
    capture_from_terminating_instance: bool = False


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry metrics export. Empty endpoint keeps metrics local."""
    endpoint: str = ""
    service_name: str = "surrogate"
    insecure: bool = False


@dataclass(frozen=True)
class SurrogateConfig:
    """Root configuration for one image build."""
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    instance: InstanceConfig = field(default_factory=InstanceConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    wait: WaitConfig = field(default_factory=WaitConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"
    json_logs: bool = False


def resolve_user_data(instance: InstanceConfig) -> Optional[str]:
    """Return the base64 user data for the launch metadata, if any.

    user_data_file is read from disk; either way the result is base64-encoded
    unless it already decodes as base64.
    """
    if instance.user_data and instance.user_data_file:
        raise ConfigError("Only one of instance.user_data or instance.user_data_file can be set")

    user_data = instance.user_data
    if instance.user_data_file:
        path = Path(instance.user_data_file).expanduser()
        try:
            user_data = path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot read user data file {path}: {e}") from e
    if not user_data:
        return None

    try:
        base64.b64decode(user_data, validate=True)
    except (binascii.Error, ValueError):
        return base64.b64encode(user_data.encode()).decode()
    return user_data


def _env_override(data: dict, prefix: str = "SURROGATE") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern SURROGATE_SECTION_KEY.
    For example: SURROGATE_WAIT_MAX_RETRIES=60, SURROGATE_SOURCE_IMAGE_NAME=base
    Root keys are matched whole: SURROGATE_LOG_LEVEL=DEBUG.
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        if name in ROOT_KEYS:
            data[name] = value
            continue
        parts = name.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict when it does not exist."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e


def _coerce(type_name: str, field_name: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        if type_name == "int":
            return int(value)
        if type_name == "Optional[int]":
            return int(value) if value.strip() else None
        if type_name == "float":
            return float(value)
        if type_name == "bool":
            return value.lower() in ("true", "1", "yes")
        if type_name.startswith("dict"):
            decoded = json.loads(value) if value.strip() else {}
            if not isinstance(decoded, dict):
                raise ValueError("expected a JSON object")
            return decoded
    except ValueError as e:
        raise ConfigError(f"Invalid value for {field_name}: {value!r} ({e})") from e
    return value


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name: f for f in dataclasses.fields(cls)}
    filtered = {
        k: _coerce(valid_fields[k].type, k, v)
        for k, v in data.items()
        if k in valid_fields
    }
    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "SURROGATE",
) -> SurrogateConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (SURROGATE_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to surrogate.json in CWD.
        env_prefix: Environment variable prefix. Defaults to SURROGATE.
    """
    config_path = Path(path) if path else Path("surrogate.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    config = SurrogateConfig(
        provider=_build_sub_config(ProviderConfig, data.get("provider", {})),
        instance=_build_sub_config(InstanceConfig, data.get("instance", {})),
        source=_build_sub_config(SourceConfig, data.get("source", {})),
        image=_build_sub_config(ImageConfig, data.get("image", {})),
        wait=_build_sub_config(WaitConfig, data.get("wait", {})),
        build=_build_sub_config(BuildConfig, data.get("build", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=data.get("log_level", "WARNING"),
        json_logs=_coerce("bool", "json_logs", data.get("json_logs", False)),
    )
    if config.provider.name not in PROVIDERS:
        raise ConfigError(
            f"Unknown provider {config.provider.name!r}, expected one of {PROVIDERS}"
        )
    return config
