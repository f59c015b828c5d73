"""
Match Simulator

Plays complete Whist matches between automated seats and prints the results.

Usage:
    # One 4-seat match
    python -m whist.simulate --seats 4

    # Ten reproducible 6-seat matches with per-hand tables
    python -m whist.simulate --seats 6 --matches 10 --seed 7 --show-hands

    # Seat bounds from a saved room config
    python -m whist.simulate --seats 5 --config configs/room.json
"""

import argparse
import logging
import random
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from whist.config import RoomConfig, get_production_config
from whist.game.constants import SUIT_NAMES
from whist.game.session import GameSession, Phase
from whist.room import bot


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Simulate Romanian Whist matches between automated seats",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        '--seats',
        type=int,
        required=True,
        help='Number of seats at the table (3-6)',
    )
    parser.add_argument(
        '--matches',
        type=int,
        default=1,
        help='Number of matches to play',
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible deals',
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to room config JSON file',
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level',
    )
    parser.add_argument(
        '--show-hands',
        action='store_true',
        help='Print a scoring table for every hand',
    )

    return parser.parse_args(argv)


def setup_logging(log_level: str = 'INFO'):
    """
    Setup console logging.

    Args:
        log_level: Logging level
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def play_match(num_seats: int, rng: random.Random, dealer: int = 0) -> GameSession:
    """
    Play one match to completion with every seat run by the bot policy.

    Args:
        num_seats: Seats at the table
        rng: Random source for shuffling
        dealer: Dealer seat for the first hand

    Returns:
        The finished session (phase 'game_end')
    """
    seats = [f"Bot {i + 1}" for i in range(num_seats)]
    session = GameSession(seats, dealer=dealer, rng=rng)
    session.start_hand()

    while session.phase != Phase.GAME_END:
        if session.phase == Phase.TRICK_PAUSE:
            session.resume_after_trick()
        elif session.phase == Phase.HAND_END:
            session.next_hand()
        else:
            seat = session.turn_holder
            bot.apply_decision(session, seat, bot.decide(session, seat))

    return session


def hand_table(session: GameSession, record: dict) -> Table:
    """Scoring table for one entry of session.hand_history."""
    trump = SUIT_NAMES.get(record['trump'], record['trump'])
    table = Table(title=f"Hand {record['hand_number']}: {record['hand_size']} card(s), trump {trump}")
    table.add_column("Seat", style="cyan", no_wrap=True)
    table.add_column("Bid", justify="right")
    table.add_column("Won", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Streak", justify="right")
    table.add_column("Score", justify="right", style="bold")

    for row in record['seats']:
        delta_style = "green" if row['delta'] > 0 else "red"
        table.add_row(
            session.seats[row['seat']],
            str(row['bid']),
            str(row['tricks_won']),
            f"[{delta_style}]{row['delta']:+d}[/{delta_style}]",
            f"{row['streak_bonus']:+d}" if row['streak_bonus'] else "",
            str(row['score']),
        )
    return table


def leaderboard_table(session: GameSession, match_number: int) -> Table:
    """Final standings of one match."""
    table = Table(title=f"Match {match_number} leaderboard")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Seat", style="cyan", no_wrap=True)
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Hands made", justify="right")

    made = {identity: 0 for identity in session.seats}
    for record in session.hand_history:
        for row in record['seats']:
            if row['bid'] == row['tricks_won']:
                made[session.seats[row['seat']]] += 1

    for place, row in enumerate(session.leaderboard(), start=1):
        table.add_row(
            str(place),
            row['identity'],
            str(row['score']),
            f"{made[row['identity']]}/{len(session.hand_history)}",
        )
    return table


def run_simulation(
    num_seats: int,
    num_matches: int,
    seed: Optional[int] = None,
    show_hands: bool = False,
    console: Optional[Console] = None,
) -> List[GameSession]:
    """
    Play num_matches matches, rotating the first dealer between matches.

    Returns:
        Finished sessions in play order
    """
    logger = logging.getLogger(__name__)
    console = console or Console()
    rng = random.Random(seed)
    finished = []

    for match_idx in range(num_matches):
        session = play_match(num_seats, rng, dealer=match_idx % num_seats)
        finished.append(session)
        logger.info(
            f"Match {match_idx + 1}/{num_matches} finished after "
            f"{len(session.hand_history)} hands: {session.leaderboard()}"
        )

        if show_hands:
            for record in session.hand_history:
                console.print(hand_table(session, record))
        console.print(leaderboard_table(session, match_idx + 1))

    return finished


def main(argv: Optional[List[str]] = None):
    """Simulator entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    if args.config:
        config = RoomConfig.from_file(args.config)
        logger.info(f"Loaded config from {args.config}")
    else:
        config = get_production_config()
    config.validate()

    if not config.min_seats <= args.seats <= config.max_seats:
        logger.error(f"--seats must be between {config.min_seats} and {config.max_seats}")
        sys.exit(2)
    if args.matches < 1:
        logger.error("--matches must be at least 1")
        sys.exit(2)

    run_simulation(args.seats, args.matches, seed=args.seed, show_hands=args.show_hands)


if __name__ == '__main__':
    main()
