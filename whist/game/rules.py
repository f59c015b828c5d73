"""
Stateless rules for bidding, trick play and scoring.

All functions here are pure: they take the relevant slice of match state and
either answer a question or raise. GameSession composes them and owns all
mutation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from whist.game.cards import Card
from whist.game.constants import EXACT_BID_BONUS, STREAK_LENGTH, STREAK_BONUS, SUITS
from whist.game.exceptions import IllegalPlayException, InvalidBidException


# ============================================================================
# Bidding
# ============================================================================


def bidding_order(dealer: int, num_seats: int) -> List[int]:
    """Seats in bidding (and first-trick) order, starting left of the dealer."""
    return [(dealer + 1 + i) % num_seats for i in range(num_seats)]


def forbidden_bid(hand_size: int, other_bids_total: int) -> Optional[int]:
    """
    Calculate the dealer's forbidden bid (the "hook").

    The dealer cannot bid such that the sum of all bids equals the hand
    size, so at least one seat fails every hand.

    Args:
        hand_size: Cards dealt to each seat this hand
        other_bids_total: Sum of the bids of every non-dealer seat

    Returns:
        The forbidden value, or None if it falls outside [0, hand_size]

    Examples:
        >>> forbidden_bid(5, 3)
        2
        >>> forbidden_bid(5, 6) is None
        True
    """
    forbidden = hand_size - other_bids_total
    if forbidden < 0 or forbidden > hand_size:
        return None
    return forbidden


def is_valid_bid(bid: int, hand_size: int, is_dealer: bool, other_bids_total: int) -> bool:
    """
    Validate a bid.

    Rules:
    1. General: 0 <= bid <= hand_size
    2. Dealer only: bid != hand_size - other_bids_total
    """
    if bid < 0 or bid > hand_size:
        return False
    if is_dealer and bid == forbidden_bid(hand_size, other_bids_total):
        return False
    return True


def validate_bid(bid: int, hand_size: int, is_dealer: bool, other_bids_total: int) -> None:
    """
    Raise if a bid is illegal.

    Raises:
        InvalidBidException: If the bid is out of range or hooked
    """
    if bid < 0 or bid > hand_size:
        raise InvalidBidException(f"Bid must be an integer 0..{hand_size}")
    if is_dealer and bid == forbidden_bid(hand_size, other_bids_total):
        raise InvalidBidException(
            f"Dealer cannot bid {bid}: total bids would equal {hand_size}"
        )


# ============================================================================
# Trick play
# ============================================================================


def legal_plays(hand: Sequence[Card], lead_suit: Optional[str], trump: Optional[str]) -> List[Card]:
    """
    Get the cards a seat may legally play.

    Rules:
    - Leading a trick: any card
    - Holding the lead suit: must follow suit
    - Void in the lead suit but holding trump: must play trump
    - Otherwise: any card

    Examples:
        >>> # Hand [9H, KH, 10C], hearts led
        >>> legal_plays(hand, 'H', 'S')
        [Card('H', 9), Card('H', 13)]
    """
    if lead_suit is None:
        return list(hand)

    following = [card for card in hand if card.suit == lead_suit]
    if following:
        return following

    if trump is not None:
        trumps = [card for card in hand if card.suit == trump]
        if trumps:
            return trumps

    return list(hand)


def validate_play(
    seat: int,
    card: Card,
    hand: Sequence[Card],
    lead_suit: Optional[str],
    trump: Optional[str],
) -> None:
    """
    Strictly validate a card play.

    Raises:
        IllegalPlayException: If the card is not held or breaks the
            follow-suit / must-trump obligation
    """
    if card not in hand:
        raise IllegalPlayException(seat, card.token, "You do not have that card")

    if lead_suit is None or card.suit == lead_suit:
        return

    if any(held.suit == lead_suit for held in hand):
        raise IllegalPlayException(seat, card.token, f"You must follow suit {lead_suit}")

    if trump is not None and card.suit != trump and any(held.suit == trump for held in hand):
        raise IllegalPlayException(
            seat, card.token, "You must play trump if you do not have the lead suit"
        )


def trick_order_key(card: Card, lead_suit: Optional[str], trump: Optional[str]) -> Tuple[int, int, int]:
    """
    Sort key giving a strict total order over the cards of one trick.

    Trumps outrank lead-suit cards, which outrank everything else; rank
    breaks ties inside a tier. Off-suit cards are ordered only so the
    order stays total, they can never win a trick.
    """
    if trump is not None and card.suit == trump:
        tier = 2
    elif card.suit == lead_suit:
        tier = 1
    else:
        tier = 0
    return (tier, card.rank, -SUITS.index(card.suit))


def trick_winner(entries: Sequence[Tuple[int, Card]], trump: Optional[str]) -> int:
    """
    Determine the winning seat of a trick.

    Args:
        entries: (seat, card) pairs in play order; the first card sets the lead suit
        trump: Trump suit for the hand

    Returns:
        Seat that played the highest card under trick_order_key
    """
    if not entries:
        raise ValueError("Cannot determine winner: no cards played")

    lead_suit = entries[0][1].suit
    seat, _ = max(entries, key=lambda entry: trick_order_key(entry[1], lead_suit, trump))
    return seat


# ============================================================================
# Scoring
# ============================================================================


class StreakType(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NONE = "none"


@dataclass(frozen=True)
class Streak:
    """A seat's run of consecutive same-outcome hands."""

    type: StreakType = StreakType.NONE
    count: int = 0

    def to_dict(self) -> dict:
        return {"type": self.type.value, "count": self.count}


@dataclass(frozen=True)
class HandScore:
    """
    Scoring outcome of one hand for one seat.

    Attributes:
        base: Exact-bid reward or miss penalty
        streak_bonus: +STREAK_BONUS / -STREAK_BONUS when a streak completes, else 0
        streak: Streak state after this hand
    """

    bid: int
    tricks_won: int
    base: int
    streak_bonus: int
    streak: Streak

    @property
    def delta(self) -> int:
        return self.base + self.streak_bonus

    @property
    def success(self) -> bool:
        return self.bid == self.tricks_won


def score_hand(bid: int, tricks_won: int, streak: Streak) -> HandScore:
    """
    Score one seat's hand and advance its streak.

    Exact bid scores EXACT_BID_BONUS + tricks won; a miss loses the
    distance between bid and tricks. STREAK_LENGTH equal outcomes in a
    row add (success) or subtract (failure) STREAK_BONUS once, then the
    streak resets.

    Examples:
        >>> score_hand(3, 3, Streak()).delta
        8
        >>> score_hand(1, 3, Streak()).delta
        -2
    """
    success = bid == tricks_won
    base = EXACT_BID_BONUS + tricks_won if success else -abs(bid - tricks_won)

    outcome = StreakType.SUCCESS if success else StreakType.FAILURE
    count = streak.count + 1 if streak.type == outcome else 1

    bonus = 0
    if count >= STREAK_LENGTH:
        bonus = STREAK_BONUS if success else -STREAK_BONUS
        next_streak = Streak()
    else:
        next_streak = Streak(outcome, count)

    return HandScore(bid, tricks_won, base, bonus, next_streak)
