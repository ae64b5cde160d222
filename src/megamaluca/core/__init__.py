"""Core framework components for Mega Sena Maluca."""

from .state import GameContext, State, StateMachine
from .events import EventBus, Event, EventType

__all__ = ["GameContext", "State", "StateMachine", "EventBus", "Event", "EventType"]
