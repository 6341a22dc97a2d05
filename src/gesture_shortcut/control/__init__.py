"""Cooldown gating, action dispatch and input sinks."""
from .session import HandSessionState
from .debouncer import CooldownGate, DebouncerConfig
from .actions import ActionCommand, ActionPolicy
from .action_sink import ActionSink, SimulatedSink, XdotoolSink, create_sink
from .action_dispatcher import ActionDispatcher, DispatcherConfig

__all__ = [
    "HandSessionState",
    "CooldownGate",
    "DebouncerConfig",
    "ActionCommand",
    "ActionPolicy",
    "ActionSink",
    "SimulatedSink",
    "XdotoolSink",
    "create_sink",
    "ActionDispatcher",
    "DispatcherConfig",
]
