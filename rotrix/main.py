#!/usr/bin/env python3
"""
Rotrix: falling blocks with a gravity that flips.
Command-line interface: headless demo games and the highscore table.
"""

import argparse
import logging
import random
import sys
import time
from datetime import datetime

from .config import GameConfig
from .controls import Intent
from .game import GameController
from .highscores import HighscoreManager, JsonFileStore, MemoryStore
from .rendering import TextRenderer

DEFAULT_HIGHSCORE_FILE = 'rotrix_highscores.json'


def _highscore_manager(path):
    store = JsonFileStore(path) if path else MemoryStore()
    return HighscoreManager(store)


def demo_game(args):
    """Autoplay a game through the text renderer."""
    print("Rotrix Demo")
    print("=" * 50)

    rng = random.Random(args.seed)
    config = GameConfig()
    renderer = TextRenderer(flash_frames=2 if args.delay else 0)
    highscores = _highscore_manager(args.file)
    game = GameController(config, renderer=renderer, highscores=highscores, rng=rng)

    moves = [Intent.MOVE_LEFT, Intent.MOVE_RIGHT, Intent.ROTATE]
    start_time = time.time()
    placed = 0

    while not game.state.game_over and placed < args.pieces:
        for _ in range(rng.randint(0, 4)):
            intent = rng.choice(moves)
            if intent == Intent.MOVE_LEFT:
                game.move_left()
            elif intent == Intent.MOVE_RIGHT:
                game.move_right()
            else:
                game.rotate()

        game.hard_drop()
        while game.busy:
            game.update()
            if args.delay:
                time.sleep(args.delay)
        game.draw()
        placed += 1

    duration = time.time() - start_time
    state = game.state

    print("\n" + "=" * 50)
    print("GAME OVER" if state.game_over else "DEMO FINISHED")
    print("=" * 50)
    print(f"Final Score: {state.score}")
    print(f"Lines Cleared: {state.total_lines}")
    print(f"Level Reached: {state.level}")
    print(f"Pieces Placed: {state.pieces_placed}")
    print(f"Gravity Flips: {state.flips}")
    print(f"Game Duration: {duration:.2f} seconds")

    if state.game_over and game.qualifies_for_highscore():
        game.submit_highscore(args.name)
        print(f"New highscore for {args.name}!")


def show_highscores(args):
    """Print the stored highscore table."""
    manager = _highscore_manager(args.file)
    entries = manager.get_highscores()
    if not entries:
        print("No highscores yet.")
        return
    print(f"{'#':>2}  {'Name':<20} {'Score':>8} {'Level':>5} {'Lines':>5}  Date")
    for rank, entry in enumerate(entries, start=1):
        date = datetime.fromtimestamp(entry.date).strftime('%Y-%m-%d') if entry.date else '-'
        print(f"{rank:>2}  {entry.name:<20} {entry.score:>8} {entry.level:>5} {entry.lines:>5}  {date}")


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Rotrix: falling blocks with a gravity that flips")
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Autoplay a demo game')
    demo_parser.add_argument('--seed', type=int, default=None, help='Random seed')
    demo_parser.add_argument('--pieces', type=int, default=200, help='Maximum pieces to place')
    demo_parser.add_argument('--delay', type=float, default=0.0, help='Seconds between animation frames')
    demo_parser.add_argument('--name', default='demo', help='Name for a qualifying highscore')
    demo_parser.add_argument('--file', default=DEFAULT_HIGHSCORE_FILE, help='Highscore file')

    # Highscores command
    scores_parser = subparsers.add_parser('highscores', help='Show the highscore table')
    scores_parser.add_argument('--file', default=DEFAULT_HIGHSCORE_FILE, help='Highscore file')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='[ROTRIX] %(asctime)s %(name)s %(levelname)s - %(message)s',
    )

    if args.command == 'demo':
        demo_game(args)
    elif args.command == 'highscores':
        show_highscores(args)
    else:
        parser.print_help()
        print("\nFor a quick demo, run: rotrix demo")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
