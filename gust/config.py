"""
State machine configuration from YAML files and environment variables.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "GUST_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class MachineConfig:
    """Settings applied by StateMachineFactory"""
    name: str = "gust"
    log_transitions: bool = True
    log_level: str = "INFO"
    dev_mode: bool = False  # keeps a transition history
    history_limit: int = 20
    metrics_enabled: bool = False

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")
        if not isinstance(self.history_limit, int) or self.history_limit <= 0:
            raise ConfigError(f"history_limit must be a positive integer, got {self.history_limit!r}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MachineConfig":
        """Build a config from a mapping, rejecting unknown keys"""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        return cls(**data)

    @classmethod
    def from_env(cls, base: Optional["MachineConfig"] = None) -> "MachineConfig":
        """Apply GUST_* environment overrides on top of base"""
        config = base or cls()
        overrides: Dict[str, Any] = {}

        for f in fields(cls):
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue

            if f.type in (bool, "bool"):
                overrides[f.name] = raw.lower() == 'true'
            elif f.type in (int, "int"):
                try:
                    overrides[f.name] = int(raw)
                except ValueError:
                    raise ConfigError(f"{ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}")
            else:
                overrides[f.name] = raw

        if overrides:
            logger.debug(f"Environment overrides: {sorted(overrides)}")
        return replace(config, **overrides)


def load_config(config_file: Union[str, Path]) -> MachineConfig:
    """
    Load configuration from a YAML file.

    The settings may sit at the top level or under a 'state_machine' key.
    An empty file gives the defaults.
    """
    config_file = Path(config_file)

    with open(config_file, 'r') as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict) and 'state_machine' in data:
        data = data['state_machine']

    config = MachineConfig.from_dict(data)
    logger.debug(f"Loaded configuration from {config_file}: {config}")
    return config
