"""
zbootcheck - Configuration

Loads settings from:
  1. Defaults
  2. Global config ($ZBOOTCHECK_HOME/config.json, default ~/.zbootcheck/config.json)
  3. Explicit config file (CLI --config)
  4. Environment variables

CLI flags are applied on top by the caller via Settings.replace().
"""
from __future__ import annotations

import copy
import dataclasses
import hashlib
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .catalog import DEFAULT_CATALOG, FeatureCatalog
from .errors import ConfigError
from .evidence import DEFAULT_CHUNK_SIZE, DEFAULT_HASH_ALGORITHM, DEFAULT_SCAN_LIMIT
from .utils import get_config_home

LOGGER = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = "/boot/gptzfsboot"

DEFAULT_CONFIG: dict[str, Any] = {
    "reference_path": DEFAULT_REFERENCE_PATH,
    "identity_check": True,
    "scan_limit": DEFAULT_SCAN_LIMIT,
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "hash_algorithm": DEFAULT_HASH_ALGORITHM,
    "parallel": False,
    "zpool_command": "zpool",
    "zpool_timeout": 30.0,
    "boot_method": None,
    # feature name -> scan token; overrides or extends the built-in catalog
    "features": {},
}


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one run."""
    reference_path: str = DEFAULT_REFERENCE_PATH
    identity_check: bool = True
    scan_limit: int = DEFAULT_SCAN_LIMIT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    parallel: bool = False
    zpool_command: str = "zpool"
    zpool_timeout: float = 30.0
    boot_method: Optional[str] = None
    features: dict[str, str] = field(default_factory=dict)

    def catalog(self) -> FeatureCatalog:
        if not self.features:
            return DEFAULT_CATALOG
        return DEFAULT_CATALOG.with_overrides(self.features)

    def replace(self, **changes: Any) -> "Settings":
        """Copy with non-None changes applied, then re-validated."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return _validate(dataclasses.replace(self, **changes))


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from defaults, config files and the environment."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    # Tests must not depend on the real ~/.zbootcheck existing.
    is_pytest = bool(os.environ.get("PYTEST_CURRENT_TEST"))
    global_path: Optional[Path] = get_config_home() / "config.json"
    if is_pytest and not os.environ.get("ZBOOTCHECK_HOME"):
        global_path = None
    if global_path is not None and global_path.exists():
        config = _merge(config, _read_json(global_path))
        LOGGER.debug("loaded config from %s", global_path)

    if config_path is not None:
        if not Path(config_path).exists():
            raise ConfigError(f"{config_path}: config file not found")
        config = _merge(config, _read_json(Path(config_path)))
        LOGGER.debug("loaded config from %s", config_path)

    _apply_env_overrides(config)
    return _from_dict(config)


def _read_json(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from e
    except OSError as e:
        raise ConfigError(f"{path}: cannot read config: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a JSON object")
    return data


def _merge(base: dict, override: dict) -> dict:
    """Deep merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict) -> None:
    """Apply explicit env var overrides after file/default loading."""
    reference = os.environ.get("ZBOOTCHECK_REFERENCE")
    if reference:
        config["reference_path"] = reference

    scan_limit = os.environ.get("ZBOOTCHECK_SCAN_LIMIT")
    if scan_limit:
        try:
            config["scan_limit"] = int(scan_limit)
        except ValueError:
            raise ConfigError(f"invalid ZBOOTCHECK_SCAN_LIMIT={scan_limit!r}") from None

    zpool = os.environ.get("ZBOOTCHECK_ZPOOL")
    if zpool:
        config["zpool_command"] = zpool

    boot_method = os.environ.get("ZBOOTCHECK_BOOT_METHOD")
    if boot_method:
        config["boot_method"] = boot_method

    algorithm = os.environ.get("ZBOOTCHECK_HASH")
    if algorithm:
        config["hash_algorithm"] = algorithm.strip().lower()

    parallel = os.environ.get("ZBOOTCHECK_PARALLEL")
    if parallel is not None:
        config["parallel"] = _to_bool(parallel)


def _from_dict(config: dict) -> Settings:
    known = {f.name for f in dataclasses.fields(Settings)}
    unknown = sorted(set(config) - known)
    if unknown:
        LOGGER.warning("ignoring unknown config keys: %s", ", ".join(unknown))
    features = config.get("features") or {}
    if not isinstance(features, dict) or not all(
        isinstance(k, str) and isinstance(v, str) and k and v for k, v in features.items()
    ):
        raise ConfigError("'features' must map feature names to non-empty token strings")
    reference_path = config["reference_path"]
    if not isinstance(reference_path, str) or not reference_path.strip():
        raise ConfigError(f"'reference_path' must be a non-empty string, got {reference_path!r}")
    boot_method = config.get("boot_method")
    if boot_method is not None and not isinstance(boot_method, str):
        raise ConfigError(f"'boot_method' must be a string or null, got {boot_method!r}")
    try:
        settings = Settings(
            reference_path=reference_path,
            identity_check=_as_bool(config["identity_check"]),
            scan_limit=int(config["scan_limit"]),
            chunk_size=int(config["chunk_size"]),
            hash_algorithm=str(config["hash_algorithm"]),
            parallel=_as_bool(config["parallel"]),
            zpool_command=str(config["zpool_command"]),
            zpool_timeout=float(config["zpool_timeout"]),
            boot_method=boot_method,
            features=dict(features),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid config value: {e}") from e
    return _validate(settings)


def _validate(settings: Settings) -> Settings:
    if settings.scan_limit <= 0:
        raise ConfigError(f"scan_limit must be positive, got {settings.scan_limit}")
    if settings.chunk_size <= 0:
        raise ConfigError(f"chunk_size must be positive, got {settings.chunk_size}")
    if settings.zpool_timeout <= 0:
        raise ConfigError(f"zpool_timeout must be positive, got {settings.zpool_timeout}")
    if settings.hash_algorithm not in hashlib.algorithms_available:
        raise ConfigError(f"unsupported hash_algorithm {settings.hash_algorithm!r}")
    return settings


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return _to_bool(value)
    return bool(value)
