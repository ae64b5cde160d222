"""Step-by-step reveal of a draw outcome."""

import asyncio
import logging
from typing import Tuple

from megamaluca.game.draw import DrawOutcome

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_DELAY = 0.6


class TimedReveal:
    """Async iterator over the outcome prefixes, one per ``delay`` seconds.

    Each step waits first, then yields the next longer prefix, so the
    first number appears ``delay`` seconds after iteration starts. The
    sequence runs once; ``cancel()`` ends it right away, also while a
    step is waiting.

    Usage:
        reveal = TimedReveal(outcome, delay=0.6)
        async for revealed in reveal:
            show(revealed)
    """

    def __init__(self, outcome: DrawOutcome, delay: float = DEFAULT_REVEAL_DELAY) -> None:
        if delay < 0:
            raise ValueError(f"Reveal delay must be >= 0, got {delay}")
        self.outcome = outcome
        self.delay = delay
        self._index = 0
        self._cancelled = asyncio.Event()

    @property
    def index(self) -> int:
        """How many numbers have been revealed."""
        return self._index

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self.cancelled or self._index >= len(self.outcome.numbers)

    def cancel(self) -> None:
        if not self.done:
            logger.debug(f"Reveal cancelled at step {self._index}")
        self._cancelled.set()

    def __aiter__(self) -> "TimedReveal":
        return self

    async def __anext__(self) -> Tuple[int, ...]:
        if self.done:
            raise StopAsyncIteration

        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.delay)
        except asyncio.TimeoutError:
            pass

        if self.done:
            raise StopAsyncIteration

        self._index += 1
        return self.outcome.numbers[:self._index]
