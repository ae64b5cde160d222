"""
State machine for a Mega Sena Maluca game.

States:
    IDLE: Empty ticket, nothing drawn
    COLLECTING: Player is picking numbers
    DRAWING: Outcome is being revealed number by number
    SETTLING: All numbers shown, waiting on commentary/image/speech
    WON: Player hit all six numbers
    LOST: Near miss; the ticket can be changed or drawn again
    RESET: Transient state while a new game is set up
"""

from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Callable, Any
import logging

from megamaluca.audio.pcm import AudioBuffer
from megamaluca.game.draw import ChaosLevel, DrawOutcome, Ticket

logger = logging.getLogger(__name__)


class State(Enum):
    """Game states."""
    IDLE = auto()
    COLLECTING = auto()
    DRAWING = auto()
    SETTLING = auto()
    WON = auto()
    LOST = auto()
    RESET = auto()


@dataclass
class GameContext:
    """Data carried through the game states."""
    ticket: Ticket = field(default_factory=Ticket)
    chaos_level: ChaosLevel = ChaosLevel.WILD
    outcome: DrawOutcome | None = None
    revealed: tuple[int, ...] = ()
    reveal_index: int = 0
    status_message: str = ""
    headline: str = ""
    commentary: str = ""
    image: bytes | None = None
    speech_payload: str | None = None
    speech: AudioBuffer | None = None
    is_editing: bool = False
    generation: int = 0

    def clear_draw(self) -> None:
        """Forget everything produced by the previous draw."""
        self.outcome = None
        self.revealed = ()
        self.reveal_index = 0
        self.headline = ""
        self.commentary = ""
        self.image = None
        self.speech_payload = None
        self.speech = None
        self.is_editing = False


class StateMachine:
    """
    Manages game state and transitions.

    Only listed transitions are allowed; listeners are told about every
    accepted one.
    """

    # Valid state transitions
    VALID_TRANSITIONS: list[tuple[State, State]] = [
        # From IDLE
        (State.IDLE, State.COLLECTING),

        # From COLLECTING
        (State.COLLECTING, State.COLLECTING),  # Another toggle
        (State.COLLECTING, State.IDLE),        # Last number removed
        (State.COLLECTING, State.DRAWING),

        # From DRAWING
        (State.DRAWING, State.DRAWING),        # Reveal step
        (State.DRAWING, State.SETTLING),

        # From SETTLING
        (State.SETTLING, State.WON),
        (State.SETTLING, State.LOST),

        # From LOST
        (State.LOST, State.COLLECTING),        # Change the ticket
        (State.LOST, State.DRAWING),           # Same ticket again
        (State.LOST, State.IDLE),

        # From WON
        (State.WON, State.WON),                # Image edited

        # From RESET
        (State.RESET, State.IDLE),
    ]

    def __init__(self, initial_state: State = State.IDLE) -> None:
        self._state = initial_state
        self._context = GameContext()
        self._listeners: list[Callable[[State, State, GameContext], None]] = []
        self._valid_transitions = set(self.VALID_TRANSITIONS)
        # Every state may start a new game
        self._valid_transitions.update((s, State.RESET) for s in State)
        logger.info(f"StateMachine initialized with state: {initial_state.name}")

    @property
    def state(self) -> State:
        """Get current state."""
        return self._state

    @property
    def context(self) -> GameContext:
        """Get current context."""
        return self._context

    @property
    def is_busy(self) -> bool:
        """A draw is running and the ticket and chaos level are locked."""
        return self._state in (State.DRAWING, State.SETTLING)

    def can_transition(self, to_state: State) -> bool:
        """Check if transition to given state is valid."""
        return (self._state, to_state) in self._valid_transitions

    def transition(self, to_state: State, **context_updates: Any) -> bool:
        """
        Attempt to transition to a new state.

        Args:
            to_state: Target state
            **context_updates: Context attributes to set

        Returns:
            True if transition successful, False otherwise
        """
        if not self.can_transition(to_state):
            logger.warning(
                f"Invalid transition: {self._state.name} -> {to_state.name}"
            )
            return False

        old_state = self._state
        self._state = to_state

        for key, value in context_updates.items():
            if hasattr(self._context, key):
                setattr(self._context, key, value)
            else:
                logger.warning(f"Ignoring unknown context field: {key}")

        if old_state != to_state:
            logger.info(f"State transition: {old_state.name} -> {to_state.name}")

        self._notify(old_state, to_state)
        return True

    def add_listener(
        self,
        callback: Callable[[State, State, GameContext], None]
    ) -> None:
        """Add a state change listener."""
        self._listeners.append(callback)

    def remove_listener(
        self,
        callback: Callable[[State, State, GameContext], None]
    ) -> None:
        """Remove a state change listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def reset(self) -> None:
        """Start a new game: pass through RESET and land in IDLE.

        The chaos level and the draw generation survive the reset.
        """
        old = self._context
        self.transition(State.RESET)
        self._context = GameContext(
            chaos_level=old.chaos_level,
            generation=old.generation,
        )
        self.transition(State.IDLE)
        logger.info("StateMachine reset to IDLE")

    def _notify(self, old_state: State, new_state: State) -> None:
        for listener in self._listeners:
            try:
                listener(old_state, new_state, self._context)
            except Exception as e:
                logger.error(f"Error in state listener: {e}")
