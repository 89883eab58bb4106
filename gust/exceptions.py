"""
Exceptions raised by the state machine runtime.
"""

from typing import Any


class StateMachineError(Exception):
    """Base class for errors raised by gust itself"""
    pass


class InvalidTargetStateError(StateMachineError):
    """A state returned a successor that was never registered with add_state"""

    def __init__(self, state: Any):
        super().__init__(f"invalid target state {state!r}")
        self.state = state


class ConfigError(StateMachineError, ValueError):
    """Invalid state machine configuration"""
    pass
