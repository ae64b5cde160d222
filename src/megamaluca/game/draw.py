"""Draw engine for Mega Sena Maluca.

The draw is rigged: with probability ``1 - threshold`` the outcome
is exactly the player's ticket, otherwise the player gets a near miss that
always matches five of the six numbers.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

MIN_NUMBER = 1
MAX_NUMBER = 60
TICKET_SIZE = 6


class InvalidTicket(ValueError):
    """Ticket does not satisfy the draw precondition."""


class ChaosLevel(Enum):
    """Chaos levels, labelled as shown to the player."""

    RELAXED = "Tranquilo"
    WILD = "Malucão"
    APOCALYPTIC = "Apocalíptico"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "ChaosLevel":
        """Resolve a level from its name or its label, ignoring case."""
        key = text.strip().casefold()
        for level in cls:
            if key in (level.name.casefold(), level.value.casefold()):
                return level
        raise ValueError(f"Unknown chaos level: {text!r}")


DEFAULT_THRESHOLDS = {
    ChaosLevel.RELAXED: 0.80,       # 20% win chance
    ChaosLevel.WILD: 0.90,          # 10% win chance
    ChaosLevel.APOCALYPTIC: 0.99,   # 1% win chance
}


class OutcomeKind(Enum):
    """Verdict of a draw."""

    WIN = "win"
    LOSE = "lose"


def validate_ticket(numbers: Iterable[int]) -> Tuple[int, ...]:
    """Check a ticket can be drawn and return it sorted.

    Raises:
        InvalidTicket: unless there are exactly 6 distinct ints in [1, 60]
    """
    numbers = list(numbers)
    if len(numbers) != TICKET_SIZE:
        raise InvalidTicket(f"Ticket needs {TICKET_SIZE} numbers, got {len(numbers)}")
    if len(set(numbers)) != TICKET_SIZE:
        raise InvalidTicket(f"Ticket numbers must be distinct: {numbers}")
    for number in numbers:
        if isinstance(number, bool) or not isinstance(number, int):
            raise InvalidTicket(f"Ticket number is not an integer: {number!r}")
        if not MIN_NUMBER <= number <= MAX_NUMBER:
            raise InvalidTicket(
                f"Ticket number {number} outside {MIN_NUMBER}-{MAX_NUMBER}"
            )
    return tuple(sorted(numbers))


class Ticket:
    """The player's selection, built one number at a time."""

    def __init__(self, numbers: Iterable[int] = ()) -> None:
        self._numbers: set[int] = set()
        for number in numbers:
            self.toggle(number)

    def toggle(self, number: int) -> bool:
        """Select or deselect a number.

        A full ticket ignores new numbers.

        Returns:
            True if the selection changed
        """
        if isinstance(number, bool) or not isinstance(number, int):
            raise InvalidTicket(f"Ticket number is not an integer: {number!r}")
        if not MIN_NUMBER <= number <= MAX_NUMBER:
            raise InvalidTicket(f"Ticket number {number} outside {MIN_NUMBER}-{MAX_NUMBER}")

        if number in self._numbers:
            self._numbers.remove(number)
            return True
        if len(self._numbers) < TICKET_SIZE:
            self._numbers.add(number)
            return True
        return False

    def clear(self) -> None:
        self._numbers.clear()

    @property
    def is_complete(self) -> bool:
        return len(self._numbers) == TICKET_SIZE

    def sorted(self) -> Tuple[int, ...]:
        return tuple(sorted(self._numbers))

    def __len__(self) -> int:
        return len(self._numbers)

    def __contains__(self, number: object) -> bool:
        return number in self._numbers

    def __iter__(self) -> Iterator[int]:
        return iter(self.sorted())

    def __repr__(self) -> str:
        return f"Ticket({list(self.sorted())})"


@dataclass(frozen=True)
class DrawOutcome:
    """Result of one draw.

    Attributes:
        numbers: The 6 drawn numbers, ascending
        ticket: The player's ticket, ascending
        won: True iff every ticket number was drawn
    """

    numbers: Tuple[int, ...]
    ticket: Tuple[int, ...]
    won: bool

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.WIN if self.won else OutcomeKind.LOSE

    @property
    def hits(self) -> Tuple[int, ...]:
        """Ticket numbers that were drawn."""
        return tuple(n for n in self.numbers if n in self.ticket)

    @property
    def misses(self) -> Tuple[int, ...]:
        """Drawn numbers that are not on the ticket."""
        return tuple(n for n in self.numbers if n not in self.ticket)

    def prefixes(self) -> Iterator[Tuple[int, ...]]:
        """Yield the outcome revealed one more number at a time.

        Every call starts again from the first number.
        """
        for i in range(1, len(self.numbers) + 1):
            yield self.numbers[:i]


def draw(
    ticket: Sequence[int],
    level: ChaosLevel,
    rng: Callable[[], float] = random.random,
    thresholds: Optional[Mapping[ChaosLevel, float]] = None,
) -> DrawOutcome:
    """Run a draw for a valid ticket.

    The ticket must already hold exactly 6 distinct numbers in range
    (see ``validate_ticket``).

    Args:
        ticket: The player's 6 numbers, any order
        level: Chaos level deciding the miss threshold
        rng: Uniform source in [0, 1)
        thresholds: Override for ``DEFAULT_THRESHOLDS``

    Returns:
        The drawn outcome
    """
    user_numbers = sorted(ticket)
    threshold = (thresholds or DEFAULT_THRESHOLDS)[level]

    if rng() > threshold:
        numbers = list(user_numbers)
    else:
        pool = [n for n in range(MIN_NUMBER, MAX_NUMBER + 1) if n not in user_numbers]
        index = min(int(rng() * len(pool)), len(pool) - 1)
        numbers = user_numbers[:TICKET_SIZE - 1] + [pool[index]]
        numbers.sort()

    outcome_set = set(numbers)
    won = all(n in outcome_set for n in user_numbers)

    logger.debug(f"Draw at {level.name}: {numbers} (won={won})")
    return DrawOutcome(numbers=tuple(numbers), ticket=tuple(user_numbers), won=won)
