"""
Configuration loader for wordvec.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.exceptions import ConfigError
from ..core.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "model": {
        "path": None,
        "max_dimension": 2000,
        "encoding": "utf-8",
    },
    "query": {
        "top_k": 40,
        # Rank only strictly positive similarities, like a zero-filled buffer
        "legacy_zero_floor": False,
    },
    "logging": {
        "level": "INFO",
        "structured": False,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge `override` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class WordVecConfig:
    """
    Configuration for model loading and queries.
    
    Loads YAML configuration files over built-in defaults, then applies
    WORDVEC_* environment overrides.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.
        
        Args:
            config_path: Path to YAML config file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        loaded = self._load_config() if self.config_path else {}
        self.config = _merge(DEFAULT_CONFIG, loaded)
        self._apply_env_overrides()
        self._validate()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        logger.info(f"Loading config from: {self.config_path}")
        
        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e
        
        if config is not None and not isinstance(config, dict):
            raise ConfigError(f"Config root must be a mapping: {self.config_path}")
        return config or {}

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        overrides = {
            "WORDVEC_MODEL_PATH": ("model", "path"),
            "WORDVEC_MAX_DIMENSION": ("model", "max_dimension"),
            "WORDVEC_TOP_K": ("query", "top_k"),
            "WORDVEC_LOG_LEVEL": ("logging", "level"),
        }
        for env_name, (section, key) in overrides.items():
            value = os.environ.get(env_name)
            if value:
                self.config.setdefault(section, {})[key] = value

    def _validate(self) -> None:
        self.get_max_dimension()
        self.get_top_k()
        self.get_log_level()

    def _get_int(self, key: str, minimum: int) -> int:
        value = self.get(key)
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{key} must be an integer, got {value!r}") from None
        if number < minimum:
            raise ConfigError(f"{key} must be >= {minimum}, got {number}")
        return number

    def get_model_path(self) -> Optional[Path]:
        """Get the model file path, if configured."""
        path = self.get("model.path")
        return Path(path) if path else None

    def get_max_dimension(self) -> int:
        return self._get_int("model.max_dimension", 1)

    def get_encoding(self) -> str:
        return self.get("model.encoding", "utf-8")

    def get_top_k(self) -> int:
        return self._get_int("query.top_k", 0)

    def get_floor(self) -> float:
        """Score floor for ranking: 0.0 in legacy mode, else -inf."""
        return 0.0 if self.get("query.legacy_zero_floor", False) else float("-inf")

    def get_log_level(self) -> int:
        level = self.get("logging.level", "INFO")
        if isinstance(level, int):
            return level
        resolved = logging.getLevelName(str(level).upper())
        if not isinstance(resolved, int):
            raise ConfigError(f"Unknown log level: {level!r}")
        return resolved

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        
        return value if value is not None else default
