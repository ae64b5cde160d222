"""
Main entry point for Mega Sena Maluca.

Plays one ticket in the terminal: numbers are revealed one by one, the
Chaos Master comments, and winners get an image saved to disk and a
spoken celebration.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from megamaluca.ai.capabilities import GeminiCapabilities
from megamaluca.audio.player import get_speech_player
from megamaluca.config.settings import Settings, get_settings
from megamaluca.core.events import Event, EventType
from megamaluca.core.state import State
from megamaluca.game import messages
from megamaluca.game.draw import ChaosLevel, InvalidTicket
from megamaluca.game.session import GameSession

logger = logging.getLogger(__name__)

REPLAY_COMMAND = "ouvir"


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="megamaluca",
        description="Mega Sena Maluca - onde a lógica morre e o azar é garantido.",
    )
    parser.add_argument("numbers", nargs=6, type=int, metavar="N",
                        help="six distinct numbers from 1 to 60")
    parser.add_argument("--chaos", default=None,
                        help="relaxed/wild/apocalyptic (or Tranquilo/Malucão/Apocalíptico)")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="where the winner image is saved")
    parser.add_argument("--no-audio", action="store_true", help="do not play speech")
    parser.add_argument("--interactive", action="store_true",
                        help=f"after a win, read image edits (or '{REPLAY_COMMAND}') from stdin")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def print_event(event: Event) -> None:
    """Console rendering of session events."""
    if event.type == EventType.DRAW_STARTED:
        print(f"\n{messages.DRAWING}")
    elif event.type == EventType.NUMBER_REVEALED:
        revealed = " ".join(f"{n:02d}" for n in event.data["revealed"])
        print(f"  Resultado do Globo: {revealed}")


def save_image(image: bytes, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"winner_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
    path.write_bytes(image)
    return path


async def winner_loop(session: GameSession, output_dir: Path) -> None:
    """Read edit instructions until an empty line."""
    print(f"Quer mudar a foto? Digite a edição ('{REPLAY_COMMAND}' repete o áudio, Enter sai).")
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        instruction = line.strip()
        if not instruction:
            return
        if instruction.lower() == REPLAY_COMMAND:
            if not session.replay_speech():
                print("Sem áudio para tocar.")
            continue
        if await session.edit_image(instruction):
            print(f"Foto editada: {save_image(session.context.image, output_dir)}")
        else:
            print("A edição falhou, a foto continua a mesma.")


async def play(args: argparse.Namespace, settings: Settings) -> int:
    """Play one ticket."""
    player = None
    if settings.audio.enabled and not args.no_audio:
        player = get_speech_player(settings.audio.sample_rate, settings.audio.channels)

    session = GameSession(
        capabilities=GeminiCapabilities(settings.ai),
        settings=settings,
        speech_player=player,
    )
    session.event_bus.subscribe_all(print_event)

    if args.chaos:
        try:
            session.set_chaos_level(ChaosLevel.parse(args.chaos))
        except ValueError as e:
            print(e, file=sys.stderr)
            return 2

    for number in args.numbers:
        try:
            session.toggle_number(number)
        except InvalidTicket as e:
            print(e, file=sys.stderr)
            return 2

    ctx = session.context
    print(f"Seu Bilhete: {' '.join(f'{n:02d}' for n in ctx.ticket.sorted())}"
          f"  (Nível de Caos: {ctx.chaos_level.label})")

    try:
        outcome = await session.start_draw()
    except InvalidTicket as e:
        print(e, file=sys.stderr)
        return 2

    if outcome is None:
        return 1

    print(f"\n{ctx.headline}")
    print(f"Mestre do Caos: \"{ctx.commentary}\"")

    if session.state == State.WON:
        print(f"\"{messages.CELEBRATION_CAPTION}\"")
        output_dir = args.output_dir or settings.output_dir
        if ctx.image is not None:
            print(f"Prêmio salvo em {save_image(ctx.image, output_dir)}")
        if args.interactive and ctx.image is not None:
            await winner_loop(session, output_dir)
        elif ctx.speech is not None and player is not None:
            # Let the speech finish before the process exits
            await asyncio.sleep(ctx.speech.duration)

    if player is not None:
        player.shutdown()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Console entry point."""
    load_dotenv()
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(args.debug or settings.debug)

    if not settings.ai_enabled:
        logger.warning("GEMINI_API_KEY not set, using canned commentary")

    try:
        return asyncio.run(play(args, settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
