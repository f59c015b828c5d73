"""
Automated seat policy.

A deliberately simple, predictable player:

- bid: number of high cards (J and above), clamped to the hand size and
  nudged off the dealer's forbidden value
- trump: most numerous suit in the whole hand
- play: lowest legal card

decide() returns the action for whichever seat holds the turn, so the
orchestrator and the simulator can drive bots the same way.
"""

import logging
from collections import Counter
from typing import Tuple, Union

from whist.game.cards import Card
from whist.game.constants import HIGH_CARD_RANK, SUITS
from whist.game.exceptions import GameStateException
from whist.game.session import GameSession, Phase

logger = logging.getLogger(__name__)


def choose_bid(session: GameSession, seat: int) -> int:
    """
    Estimate tricks from high cards.

    Examples:
        >>> # 3-card hand [9S, JH, AD], not dealer
        >>> choose_bid(session, seat)
        2
    """
    hand_size = session.hand_size
    estimate = sum(1 for card in session.hands[seat] if card.rank >= HIGH_CARD_RANK)
    estimate = max(0, min(hand_size, estimate))

    if estimate == session.forbidden_bid(seat):
        estimate = hand_size - 1 if estimate == hand_size else estimate + 1

    return estimate


def choose_trump(session: GameSession, seat: int) -> str:
    """Most numerous suit in the hand; ties go to the earlier suit in S, H, D, C."""
    counts = Counter(card.suit for card in session.hands[seat])
    return max(SUITS, key=lambda suit: counts[suit])


def choose_card(session: GameSession, seat: int) -> Card:
    """Lowest legal card, ties broken by suit order."""
    legal = session.legal_plays(seat)
    if not legal:
        raise GameStateException(f"Seat {seat} has no legal play")
    return min(legal, key=lambda card: (card.rank, SUITS.index(card.suit)))


def decide(session: GameSession, seat: int) -> Tuple[str, Union[int, str]]:
    """
    Pick the action for the seat holding the turn.

    Returns:
        ('trump', suit), ('bid', value) or ('play', card_token)

    Raises:
        GameStateException: If the seat is not due to act
    """
    if session.turn_holder != seat:
        raise GameStateException(f"Seat {seat} is not due to act")

    if session.phase == Phase.CHOOSE_TRUMP:
        action = ("trump", choose_trump(session, seat))
    elif session.phase == Phase.BIDDING:
        action = ("bid", choose_bid(session, seat))
    else:
        action = ("play", choose_card(session, seat).token)

    logger.debug(f"Seat {seat} decides {action[0]} {action[1]}")
    return action


def apply_decision(session: GameSession, seat: int, action: Tuple[str, Union[int, str]]):
    """Apply an action returned by decide() to the session."""
    kind, value = action
    if kind == "trump":
        return session.choose_trump(seat, value)
    if kind == "bid":
        return session.place_bid(seat, value)
    return session.play_card(seat, value)
