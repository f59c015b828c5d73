"""
Cards and the seat-sized Whist deck.

Cards travel over the wire as a rank token followed by a suit letter
('AS', '10H', 'QD'). The deck is trimmed from the top ranks so that it
always holds eight cards per seat, whatever the current hand size.
"""

import random
from dataclasses import dataclass
from typing import List, Optional

from whist.game.constants import (
    SUITS,
    RANKS,
    RANK_TOKENS,
    TOKEN_RANKS,
    MIN_SEATS,
    MAX_SEATS,
    MAX_HAND_SIZE,
    min_rank_for_seats,
)
from whist.game.exceptions import DeckSizeException, InvalidInputException


# ============================================================================
# Card Class
# ============================================================================


@dataclass(frozen=True)
class Card:
    """
    Immutable playing card with suit and rank.

    Attributes:
        suit: Card suit ('S', 'H', 'D', 'C')
        rank: Numeric rank 2-14 (11=J, 12=Q, 13=K, 14=A)
    """

    suit: str
    rank: int

    def __post_init__(self):
        """Validate card creation."""
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}. Must be one of {SUITS}")
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}. Must be 2-14")

    @property
    def token(self) -> str:
        """Wire encoding: rank token followed by suit letter."""
        return f"{RANK_TOKENS[self.rank]}{self.suit}"

    @classmethod
    def from_token(cls, token: str) -> "Card":
        """
        Decode a wire token such as 'AS' or '10H'.

        Raises:
            InvalidInputException: If the token is not a valid card
        """
        if not isinstance(token, str) or len(token) < 2:
            raise InvalidInputException(f"Invalid card: {token!r}")

        suit = token[-1]
        if suit not in SUITS:
            raise InvalidInputException(f"Invalid suit in card {token!r}")

        rank = TOKEN_RANKS.get(token[:-1])
        if rank is None:
            raise InvalidInputException(f"Invalid rank in card {token!r}")

        return cls(suit, rank)

    def sort_key(self):
        """Display order: grouped by suit letter, ascending rank."""
        return (self.suit, self.rank)

    def __str__(self) -> str:
        return self.token

    def __repr__(self) -> str:
        return f"Card('{self.suit}', {self.rank})"


def build_deck(num_seats: int) -> List[Card]:
    """
    Build the unshuffled base deck for a seat count.

    Keeps ranks 15 - 2n .. 14 in every suit, giving 2n cards per suit
    and 8n cards overall.

    Raises:
        DeckSizeException: If num_seats is outside 3..6
    """
    needed = MAX_HAND_SIZE * num_seats
    min_rank = min_rank_for_seats(num_seats)
    cards = [Card(suit, rank) for suit in SUITS for rank in RANKS if rank >= min_rank]

    if num_seats < MIN_SEATS or num_seats > MAX_SEATS or len(cards) != needed:
        raise DeckSizeException(
            f"Deck size mismatch for {num_seats} seats. "
            f"Expected {needed}, got {len(cards)} (min rank {min_rank})"
        )
    return cards


# ============================================================================
# Deck Class
# ============================================================================


class Deck:
    """
    Base deck for one match, reshuffled for every hand.

    Attributes:
        num_seats: Seat count the deck was sized for
        cards: Cards not yet dealt (the stock once dealing finishes)
    """

    def __init__(self, num_seats: int):
        self.num_seats = num_seats
        self.cards: List[Card] = []
        self.reset()

    def reset(self) -> None:
        """Return all cards to the deck."""
        self.cards = build_deck(self.num_seats)

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Randomize card order."""
        (rng or random).shuffle(self.cards)

    def deal(self, num_cards: int) -> List[List[Card]]:
        """
        Deal round-robin from the top of the deck.

        Args:
            num_cards: Number of cards each seat receives

        Returns:
            One list per recipient, in dealing order

        Raises:
            ValueError: If not enough cards available
        """
        total_needed = num_cards * self.num_seats
        if total_needed > len(self.cards):
            raise ValueError(
                f"Cannot deal {num_cards} cards to {self.num_seats} seats "
                f"(need {total_needed}, only {len(self.cards)} available)"
            )

        hands: List[List[Card]] = [[] for _ in range(self.num_seats)]
        for _ in range(num_cards):
            for recipient in range(self.num_seats):
                hands[recipient].append(self.cards.pop(0))
        return hands

    def remaining_cards(self) -> int:
        """Return number of cards left in the stock."""
        return len(self.cards)
