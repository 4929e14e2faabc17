from __future__ import annotations
import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PHP_VERSIONS = ["7.4", "8.0", "8.1", "8.2", "8.3"]
DEFAULT_WP_VERSIONS = ["6.3", "6.4", "6.5", "6.6"]
DEFAULT_SEVERITIES = ["error"]
ALL_ERRORS_SEVERITIES = ["error", "warning"]


def deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``overlay`` merged in; nested dicts merge, other values replace."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_json_config(path: Optional[Path], strict: bool = False) -> Dict[str, Any]:
    """Read a JSON config object, returning ``{}`` (and logging why) when it is unusable.

    With ``strict`` a missing or malformed file raises :class:`ConfigError` instead.
    """
    if path is None:
        return {}
    path = Path(path)
    if not path.is_file():
        if strict:
            raise ConfigError(f"Config file {path} not found")
        logger.warning("Config file %s not found; using built-in defaults", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        if strict:
            raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
        logger.warning("Ignoring malformed config file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        if strict:
            raise ConfigError(f"Config file {path}: top level must be an object")
        logger.warning("Ignoring config file %s: top level must be an object", path)
        return {}
    return data


@dataclass
class ScanOptions:
    php_versions: List[str] = field(default_factory=lambda: list(DEFAULT_PHP_VERSIONS))
    wp_versions: List[str] = field(default_factory=lambda: list(DEFAULT_WP_VERSIONS))
    severities: List[str] = field(default_factory=lambda: list(DEFAULT_SEVERITIES))
    detect_ecosystems: bool = True
    forced_ecosystems: List[str] = field(default_factory=list)
    ignore_dependency_errors: bool = False
    workers: int = 8
    show_progress: bool = True
    verbose: bool = False
    php_binary: Optional[str] = "php"
    reporting_mode: Optional[str] = None
