"""
Builds state machines with the observers selected by a MachineConfig.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from prometheus_client import REGISTRY, CollectorRegistry

from .config import MachineConfig, load_config
from .core import StateMachine
from .observers import HistoryObserver, LoggingObserver, MetricsObserver

logger = logging.getLogger(__name__)


class StateMachineFactory:
    """Creates StateMachine instances from configuration"""

    @staticmethod
    def create(config: Optional[MachineConfig] = None,
               registry: CollectorRegistry = REGISTRY) -> StateMachine:
        """
        Create a state machine and attach observers.

        Args:
            config: Settings, defaults when omitted
            registry: Prometheus registry for metrics when enabled. Machines
                with the same name on one registry share their metrics.
        """
        config = config or MachineConfig()
        machine = StateMachine(name=config.name)

        if config.log_transitions:
            machine.register_observers(LoggingObserver(config.name, level=config.log_level))

        if config.dev_mode:
            machine.register_observers(HistoryObserver(limit=config.history_limit))

        if config.metrics_enabled:
            machine.register_observers(MetricsObserver(config.name, registry=registry))

        logger.info(
            f"Created state machine {config.name} "
            f"(dev_mode={config.dev_mode}, metrics={config.metrics_enabled})"
        )
        return machine

    @staticmethod
    def from_file(config_file: Union[str, Path],
                  registry: CollectorRegistry = REGISTRY) -> StateMachine:
        """Create a state machine from a YAML file plus GUST_* environment overrides"""
        config = MachineConfig.from_env(load_config(config_file))
        return StateMachineFactory.create(config, registry=registry)
