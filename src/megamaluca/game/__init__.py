"""Game rules for Mega Sena Maluca.

The session lives in ``megamaluca.game.session``.
"""

from .draw import (
    ChaosLevel,
    DrawOutcome,
    InvalidTicket,
    OutcomeKind,
    Ticket,
    draw,
    validate_ticket,
)
from .reveal import TimedReveal

__all__ = [
    "ChaosLevel",
    "DrawOutcome",
    "InvalidTicket",
    "OutcomeKind",
    "Ticket",
    "draw",
    "validate_ticket",
    "TimedReveal",
]
