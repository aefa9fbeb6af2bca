from __future__ import annotations

"""Configuration loading and validation for galaxykiro.

Loads YAML configuration, applies section defaults, and replaces
unsupported enumeration values with a warning.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

ALLOWED_BACKENDS = {"json", "memory"}
ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or the packaged defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    for section in ("storage", "engine", "adaptive", "logging", "explain"):
        if not isinstance(cfg.get(section), dict):
            cfg[section] = {}

    storage = cfg["storage"]
    engine = cfg["engine"]
    adaptive = cfg["adaptive"]
    log_cfg = cfg["logging"]
    explain = cfg["explain"]

    storage.setdefault("backend", "json")
    storage.setdefault("progress_path", "./data/progress.json")
    storage.setdefault("results_dir", "./data/results")

    engine.setdefault("definitions_dir", None)
    engine.setdefault("record_results", True)

    adaptive.setdefault("optimal_response_time_ms", 15000)
    adaptive.setdefault("fatigue_threshold", 30)
    adaptive.setdefault("attention_span_window", 5)
    adaptive.setdefault("mid_assessment_break", 25)
    adaptive.setdefault("energy_floor", 20)

    log_cfg.setdefault("level", "WARNING")
    explain.setdefault("enabled", False)

    backend = storage.get("backend")
    if backend not in ALLOWED_BACKENDS:
        logger.warning("Unsupported storage backend '%s', using 'json'.", backend)
        storage["backend"] = "json"

    level = str(log_cfg.get("level", "")).upper()
    if level not in ALLOWED_LOG_LEVELS:
        logger.warning("Unsupported log level '%s', using 'WARNING'.", log_cfg.get("level"))
        level = "WARNING"
    log_cfg["level"] = level

    for key in ("optimal_response_time_ms", "fatigue_threshold", "attention_span_window", "mid_assessment_break"):
        try:
            value = float(adaptive[key])
        except (TypeError, ValueError):
            raise ConfigError(f"adaptive.{key} must be a number, got {adaptive[key]!r}") from None
        if value <= 0:
            raise ConfigError(f"adaptive.{key} must be > 0")
        adaptive[key] = int(value) if key != "optimal_response_time_ms" else value

    try:
        floor = float(adaptive["energy_floor"])
    except (TypeError, ValueError):
        raise ConfigError(f"adaptive.energy_floor must be a number, got {adaptive['energy_floor']!r}") from None
    if not 0 <= floor < 100:
        raise ConfigError("adaptive.energy_floor must be >= 0 and < 100")
    adaptive["energy_floor"] = floor

    engine["record_results"] = bool(engine.get("record_results"))
    explain["enabled"] = bool(explain.get("enabled"))
    return cfg
