"""
gust

A minimal finite state machine runtime where each state picks its successor.
"""

__version__ = "0.1.0"

from .core import (
    State,
    HaveName,
    Observer,
    StateMachine,
    contains,
)

from .exceptions import StateMachineError, InvalidTargetStateError, ConfigError
from .observers import LoggingObserver, HistoryObserver, MetricsObserver, TransitionRecord
from .config import MachineConfig, load_config
from .factory import StateMachineFactory

__all__ = [
    "State",
    "HaveName",
    "Observer",
    "StateMachine",
    "contains",
    "StateMachineError",
    "InvalidTargetStateError",
    "ConfigError",
    "LoggingObserver",
    "HistoryObserver",
    "MetricsObserver",
    "TransitionRecord",
    "MachineConfig",
    "load_config",
    "StateMachineFactory",
]
