"""
Game constants for Romanian Whist.

This module defines all the core constants used throughout the game,
including card definitions, match structure, bidding and scoring rules.
"""

from typing import List

# Card definitions
SUITS = ['S', 'H', 'D', 'C']
SUIT_NAMES = {
    'S': 'Spades',
    'H': 'Hearts',
    'D': 'Diamonds',
    'C': 'Clubs'
}

RANKS = list(range(2, 15))  # 11=J, 12=Q, 13=K, 14=A
RANK_TOKENS = {rank: str(rank) for rank in range(2, 11)}
RANK_TOKENS.update({11: 'J', 12: 'Q', 13: 'K', 14: 'A'})
TOKEN_RANKS = {token: rank for rank, token in RANK_TOKENS.items()}

# Placeholder sent in place of a card a viewer may not see
HIDDEN_CARD = 'HIDDEN'

# Game constraints
MIN_SEATS = 3
MAX_SEATS = 6
MAX_HAND_SIZE = 8  # base deck holds MAX_HAND_SIZE cards per seat

# Hands of this size have no dealt trump; the first bidder chooses one
TRUMP_CHOICE_HAND_SIZE = 8
# Cards the trump chooser may see before choosing
TRUMP_CHOICE_VISIBLE_CARDS = 5

# Scoring
EXACT_BID_BONUS = 5  # exact bid scores EXACT_BID_BONUS + tricks won
STREAK_LENGTH = 5
STREAK_BONUS = 10

# Automated bidding counts cards at or above this rank as likely tricks
HIGH_CARD_RANK = 11


def min_rank_for_seats(num_seats: int) -> int:
    """
    Lowest rank kept in the base deck for a seat count.

    Every suit contributes 2 * num_seats cards, taken from the top ranks,
    so the deck holds exactly MAX_HAND_SIZE cards per seat.

    Examples:
        >>> min_rank_for_seats(3)
        9
        >>> min_rank_for_seats(6)
        3
    """
    return 15 - 2 * num_seats


def generate_hand_schedule(num_seats: int) -> List[int]:
    """
    Generate the hand sizes for a full match.

    With X seats the match plays X one-card hands, one hand each of
    2..7 cards, X eight-card hands, one hand each of 7..2 cards and
    finally X more one-card hands, 3X + 12 hands in total.

    Args:
        num_seats: Number of seats in the match (3-6)

    Returns:
        List of cards dealt per seat, indexed by hand index

    Raises:
        ValueError: If num_seats not in valid range [MIN_SEATS, MAX_SEATS]

    Examples:
        >>> generate_hand_schedule(3)
        [1, 1, 1, 2, 3, 4, 5, 6, 7, 8, 8, 8, 7, 6, 5, 4, 3, 2, 1, 1, 1]
    """
    if num_seats < MIN_SEATS or num_seats > MAX_SEATS:
        raise ValueError(
            f"num_seats must be between {MIN_SEATS} and {MAX_SEATS}, "
            f"got {num_seats}"
        )

    one_card_hands = [1] * num_seats
    ascending = list(range(2, MAX_HAND_SIZE))
    full_hands = [MAX_HAND_SIZE] * num_seats
    descending = list(range(MAX_HAND_SIZE - 1, 1, -1))

    return one_card_hands + ascending + full_hands + descending + one_card_hands
