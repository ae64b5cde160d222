"""Game session - one player's table.

Flow:
1. Collect: player toggles six numbers and picks a chaos level
2. Draw: outcome computed at once, revealed one number per delay
3. Settle: commentary requested; on a win the image and speech are
   requested together and the speech is played
4. Won/Lost: winners may edit the image or replay the speech; losers
   may change the ticket or draw again
5. Reset: back to an empty ticket

Each draw and reset bumps the context's generation; any AI answer that
arrives for an older generation is dropped.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Dict, Optional

from megamaluca.ai.capabilities import CapabilityResult, ChaosCapabilities
from megamaluca.audio.pcm import AudioBuffer, MalformedAudioPayload, decode_speech_payload
from megamaluca.audio.player import SpeechPlayer
from megamaluca.config.settings import Settings, get_settings
from megamaluca.core.events import Event, EventBus, EventType, ai_error_event, revealed_event
from megamaluca.core.state import GameContext, State, StateMachine
from megamaluca.game import messages
from megamaluca.game.draw import ChaosLevel, DrawOutcome, draw, validate_ticket
from megamaluca.game.reveal import TimedReveal

logger = logging.getLogger(__name__)


class GameSession:
    """Drives one game through the state machine."""

    def __init__(
        self,
        capabilities: ChaosCapabilities,
        settings: Optional[Settings] = None,
        event_bus: Optional[EventBus] = None,
        speech_player: Optional[SpeechPlayer] = None,
        rng: Callable[[], float] = random.random,
    ):
        self.settings = settings or get_settings()
        self.capabilities = capabilities
        self.event_bus = event_bus or EventBus()
        self.state_machine = StateMachine()
        self._speech_player = speech_player
        self._rng = rng
        self._reveal: Optional[TimedReveal] = None

        self.context.chaos_level = ChaosLevel.parse(self.settings.game.default_chaos_level)
        self.context.status_message = messages.WELCOME

    @property
    def state(self) -> State:
        return self.state_machine.state

    @property
    def context(self) -> GameContext:
        return self.state_machine.context

    @property
    def thresholds(self) -> Dict[ChaosLevel, float]:
        game = self.settings.game
        return {
            ChaosLevel.RELAXED: game.relaxed_threshold,
            ChaosLevel.WILD: game.wild_threshold,
            ChaosLevel.APOCALYPTIC: game.apocalyptic_threshold,
        }

    def _emit(self, event_type: EventType, **data) -> None:
        self.event_bus.emit(Event(event_type, data=data, source="session"))

    def _is_stale(self, generation: int) -> bool:
        return generation != self.context.generation

    def _next_generation(self) -> int:
        """Invalidate whatever the previous draw still has in flight."""
        if self._reveal is not None:
            self._reveal.cancel()
            self._reveal = None
        self.context.generation += 1
        return self.context.generation

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def toggle_number(self, number: int) -> bool:
        """Select or deselect a number on the ticket.

        Returns:
            True if the ticket changed
        """
        if self.state not in (State.IDLE, State.COLLECTING, State.LOST):
            logger.debug(f"Ticket locked in {self.state.name}")
            return False

        if not self.context.ticket.toggle(number):
            return False

        target = State.COLLECTING if len(self.context.ticket) else State.IDLE
        self.state_machine.transition(target)
        self._emit(EventType.TICKET_CHANGED, ticket=self.context.ticket.sorted())
        return True

    def set_chaos_level(self, level: ChaosLevel) -> bool:
        """Change the chaos level; refused while a draw is running."""
        if self.state_machine.is_busy:
            logger.debug("Chaos level locked during draw")
            return False

        self.context.chaos_level = level
        self._emit(EventType.CHAOS_LEVEL_CHANGED, level=level)
        logger.info(f"Chaos level set to {level.name}")
        return True

    async def start_draw(self) -> Optional[DrawOutcome]:
        """Draw, reveal and settle.

        Returns:
            The outcome, or None if the draw was refused or superseded

        Raises:
            InvalidTicket: if the ticket does not hold six numbers
        """
        if self.state_machine.is_busy or self.state == State.WON:
            logger.warning(f"Cannot start a draw in {self.state.name}")
            return None

        ticket = validate_ticket(self.context.ticket.sorted())
        level = self.context.chaos_level
        generation = self._next_generation()

        outcome = draw(ticket, level, self._rng, self.thresholds)
        self.context.clear_draw()
        self.state_machine.transition(
            State.DRAWING,
            outcome=outcome,
            status_message=messages.DRAWING,
        )
        self._emit(EventType.DRAW_STARTED, ticket=ticket, level=level, generation=generation)

        reveal = TimedReveal(outcome, delay=self.settings.game.reveal_delay)
        self._reveal = reveal
        async for revealed in reveal:
            self.reveal_step(revealed)

        if reveal.cancelled or self._is_stale(generation):
            logger.info("Draw superseded during reveal")
            return None

        self._reveal = None
        return await self.settle(generation)

    def reveal_step(self, revealed: tuple) -> None:
        """Show one more drawn number."""
        self.state_machine.transition(
            State.DRAWING,
            revealed=revealed,
            reveal_index=len(revealed),
        )
        self._emit_event(revealed_event(revealed, self.context.generation))

    async def settle(self, generation: int) -> Optional[DrawOutcome]:
        """Collect commentary (and winner media) after the last number."""
        outcome = self.context.outcome
        if outcome is None or not self.state_machine.transition(State.SETTLING):
            return None

        kind = outcome.kind
        commentary = await self._request(
            "commentary",
            lambda: self.capabilities.generate_commentary(
                kind, outcome.ticket, self.context.chaos_level
            ),
        )
        if self._is_stale(generation):
            return None

        image = None
        payload = None
        speech = None
        if outcome.won:
            image_result, speech_result = await asyncio.gather(
                self._request("celebration_image", self.capabilities.generate_celebration_image),
                self._request("celebration_speech", self.capabilities.generate_celebration_speech),
            )
            if self._is_stale(generation):
                return None
            image = image_result.unwrap_or(None)
            payload = speech_result.unwrap_or(None)
            if payload:
                speech = self._decode_speech(payload)

        text = commentary.unwrap_or(messages.FALLBACK_COMMENTARY[kind])
        self.state_machine.transition(
            State.WON if outcome.won else State.LOST,
            commentary=text,
            headline=messages.HEADLINES[kind],
            status_message=text,
            image=image,
            speech_payload=payload,
            speech=speech,
        )
        self._emit(
            EventType.DRAW_SETTLED,
            outcome=outcome,
            commentary=text,
            has_image=image is not None,
            has_speech=speech is not None,
        )

        if speech is not None:
            self._play(speech)
        return outcome

    async def edit_image(self, instruction: str) -> bool:
        """Ask for an edit of the winner image.

        The current image stays if the edit fails.

        Returns:
            True if the image was replaced
        """
        ctx = self.context
        if self.state != State.WON or ctx.image is None or ctx.is_editing:
            return False
        if not instruction.strip():
            return False

        generation = ctx.generation
        self.state_machine.transition(State.WON, is_editing=True)
        result = await self._request(
            "edit_image",
            lambda: self.capabilities.edit_image(ctx.image, instruction),
        )
        if self._is_stale(generation):
            return False

        if result.ok:
            self.state_machine.transition(State.WON, image=result.value, is_editing=False)
            self._emit(EventType.IMAGE_EDITED, instruction=instruction)
            return True

        self.state_machine.transition(State.WON, is_editing=False)
        return False

    def replay_speech(self) -> bool:
        """Play the winner speech again."""
        if self.state != State.WON or self.context.speech is None:
            return False
        return self._play(self.context.speech)

    def reset(self) -> None:
        """Start a new game, dropping anything still in flight."""
        self._next_generation()
        if self._speech_player is not None:
            self._speech_player.stop()
        self.state_machine.reset()
        self.context.status_message = messages.WELCOME
        self._emit(EventType.GAME_RESET, generation=self.context.generation)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit_event(self, event: Event) -> None:
        self.event_bus.emit(event)

    async def _request(
        self,
        capability: str,
        request: Callable[[], Awaitable[CapabilityResult]],
    ) -> CapabilityResult:
        """Await one capability; never raises so gathered calls stay independent."""
        self._emit(EventType.AI_REQUEST_START, capability=capability)
        try:
            result = await request()
        except Exception as e:
            logger.error(f"{capability} raised: {e}")
            result = CapabilityResult.failure(capability, str(e))

        if result.ok:
            self._emit(EventType.AI_REQUEST_COMPLETE, capability=capability)
        else:
            logger.warning(f"AI fallback for {result.error}")
            self._emit_event(ai_error_event(capability, result.error.reason))
        return result

    def _decode_speech(self, payload: str) -> Optional[AudioBuffer]:
        audio = self.settings.audio
        try:
            return decode_speech_payload(payload, audio.sample_rate, audio.channels)
        except MalformedAudioPayload as e:
            logger.warning(f"Skipping speech playback: {e}")
            self._emit(EventType.ERROR, error=str(e))
            return None

    def _play(self, speech: AudioBuffer) -> bool:
        if self._speech_player is None or not self.settings.audio.enabled:
            return False
        started = self._speech_player.play(speech)
        if started:
            self._emit(EventType.SPEECH_PLAY, duration=speech.duration)
        return started
