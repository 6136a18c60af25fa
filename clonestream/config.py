"""Configuration loading for clonestream (.clonestream.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .detection.chunker import DEFAULT_CHUNK_SIZE

CONFIG_FILENAME = ".clonestream.yml"
ENV_CHUNK_SIZE_KEYS = ("CLONESTREAM_CHUNK_SIZE", "CHUNKSIZE")
DEFAULT_EXTENSIONS = (".java",)


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be parsed or is invalid."""


@dataclass
class StoreConfig:
    """Where the file and clone corpus is kept."""

    backend: str = "memory"
    path: Optional[Path] = None


@dataclass
class ServiceConfig:
    """Ingestion service settings."""

    host: str = "0.0.0.0"
    port: int = 8080
    stats_frequency: int = 100
    max_samples: int = 5000
    monitor_interval: float = 5.0


@dataclass
class DetectorConfig:
    """Represents the settings defined in .clonestream.yml."""

    root: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    store: StoreConfig = field(default_factory=StoreConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)


def load_config(
    config_path: Path, *, environ: Mapping[str, str] | None = None
) -> DetectorConfig:
    """Load configuration from disk, then apply environment overrides."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    config = DetectorConfig(root=root)

    chunk_size = data.get("chunk_size")
    if chunk_size is not None:
        config.chunk_size = _as_positive_int(chunk_size, "chunk_size")

    extensions = _as_str_list(data.get("extensions"))
    if extensions:
        config.extensions = extensions

    store_data = _as_dict(data.get("store"))
    if store_data:
        backend = _as_str(store_data.get("backend")) or "memory"
        if backend not in {"memory", "json"}:
            raise ConfigError(f"Unknown store backend: {backend}")
        path_str = _as_str(store_data.get("path"))
        config.store = StoreConfig(
            backend=backend,
            path=(root / path_str) if path_str else None,
        )
        if backend == "json" and config.store.path is None:
            config.store.path = root / ".clonestream"

    service_data = _as_dict(data.get("service"))
    if service_data:
        service = ServiceConfig()
        service.host = _as_str(service_data.get("host")) or service.host
        if service_data.get("port") is not None:
            service.port = _as_positive_int(service_data.get("port"), "service.port")
        if service_data.get("stats_frequency") is not None:
            service.stats_frequency = _as_positive_int(
                service_data.get("stats_frequency"), "service.stats_frequency"
            )
        if service_data.get("max_samples") is not None:
            service.max_samples = _as_positive_int(
                service_data.get("max_samples"), "service.max_samples"
            )
        interval = _as_float(service_data.get("monitor_interval"))
        if interval is not None:
            service.monitor_interval = interval
        config.service = service

    for key in ENV_CHUNK_SIZE_KEYS:
        value = env.get(key)
        if value:
            config.chunk_size = _as_positive_int(value, key)
            break

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    else:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    if number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DetectorConfig",
    "ServiceConfig",
    "StoreConfig",
    "load_config",
]
