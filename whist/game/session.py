"""
Match state machine for Romanian Whist.

GameSession owns one match: the seat list, the hand schedule, and every
per-hand and per-match counter. All internal state is indexed by seat
position; external identities only appear in the seat list, so rebinding a
reconnected player touches a single slot.

Phase flow:
    waiting -> choose_trump (8-card hands) | bidding -> playing
    playing <-> trick_pause
    playing -> hand_end -> (next hand) ... -> game_end
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from whist.game.cards import Card, Deck
from whist.game.constants import (
    SUITS,
    TRUMP_CHOICE_HAND_SIZE,
    generate_hand_schedule,
)
from whist.game.exceptions import (
    GameStateException,
    InvalidInputException,
    TurnException,
)
from whist.game.rules import (
    Streak,
    bidding_order,
    forbidden_bid,
    is_valid_bid,
    legal_plays,
    score_hand,
    trick_winner,
    validate_bid,
    validate_play,
)

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    WAITING = "waiting"
    CHOOSE_TRUMP = "choose_trump"
    BIDDING = "bidding"
    PLAYING = "playing"
    TRICK_PAUSE = "trick_pause"
    HAND_END = "hand_end"
    GAME_END = "game_end"


@dataclass(frozen=True)
class PlayResult:
    """
    Outcome of a single card play.

    Attributes:
        card: The card that was played
        trick_complete: True if this card filled the trick
        winner: Seat that won the trick (None unless trick_complete)
    """

    card: Card
    trick_complete: bool = False
    winner: Optional[int] = None


class GameSession:
    """
    One full match of Whist between a fixed set of seats.

    Attributes:
        seats: External identity occupying each seat (index = turn position)
        schedule: Hand sizes for the whole match
        hand_index: Index into schedule (0-based)
        dealer: Dealer seat for the current hand
        phase: Current Phase
        trump: Trump suit for the current hand (None until chosen)
        hands: Cards held per seat
        bids: Bid per seat (None until placed)
        tricks_won: Tricks taken per seat this hand
        current_trick: (seat, card) pairs of the trick in flight
        lead_suit: Suit of the first card of the current trick
        scores: Cumulative score per seat
        streaks: Outcome streak per seat
        stock: Cards left undealt this hand
        played_this_hand: Every card played so far this hand
        hand_history: Scoring record of every finished hand
    """

    def __init__(
        self,
        seats: Sequence[str],
        dealer: int = 0,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize a match.

        Args:
            seats: Identities in turn order (3-6)
            dealer: Dealer seat for the first hand
            rng: Random source for shuffling (defaults to the random module)

        Raises:
            DeckSizeException: If the seat count cannot produce a valid deck
            ValueError: If identities repeat or dealer is out of range
        """
        self.seats: List[str] = list(seats)
        if len(set(self.seats)) != len(self.seats):
            raise ValueError(f"Seat identities must be unique, got {self.seats}")

        self.deck = Deck(len(self.seats))
        self.schedule: List[int] = generate_hand_schedule(self.num_seats)

        if not 0 <= dealer < self.num_seats:
            raise ValueError(f"dealer must be a seat index, got {dealer}")

        self.rng = rng
        self.hand_index = 0
        self.dealer = dealer
        self.phase = Phase.WAITING

        self.scores: List[int] = [0] * self.num_seats
        self.streaks: List[Streak] = [Streak() for _ in self.seats]
        self.hand_history: List[Dict] = []

        self._reset_hand_state()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def num_seats(self) -> int:
        return len(self.seats)

    @property
    def hand_size(self) -> int:
        return self.schedule[self.hand_index]

    @property
    def is_last_hand(self) -> bool:
        return self.hand_index >= len(self.schedule) - 1

    @property
    def current_bidder(self) -> Optional[int]:
        """Seat due to bid, or to choose trump before bidding."""
        if self.phase in (Phase.CHOOSE_TRUMP, Phase.BIDDING):
            return self.bid_turn
        return None

    @property
    def current_player(self) -> Optional[int]:
        """Seat due to play a card."""
        if self.phase == Phase.PLAYING:
            return self.play_turn
        return None

    @property
    def turn_holder(self) -> Optional[int]:
        """Seat expected to act next in any phase, or None."""
        if self.current_bidder is not None:
            return self.current_bidder
        return self.current_player

    def seat_of(self, identity: str) -> Optional[int]:
        """Seat index occupied by identity, or None."""
        try:
            return self.seats.index(identity)
        except ValueError:
            return None

    def cards_in_play(self) -> int:
        """Cards held by all seats plus cards already played this hand."""
        return sum(len(hand) for hand in self.hands) + len(self.played_this_hand)

    # ------------------------------------------------------------------
    # Hand lifecycle
    # ------------------------------------------------------------------

    def _reset_hand_state(self) -> None:
        self.trump: Optional[str] = None
        self.hands: List[List[Card]] = [[] for _ in self.seats]
        self.bids: List[Optional[int]] = [None] * self.num_seats
        self.tricks_won: List[int] = [0] * self.num_seats
        self.current_trick: List[Tuple[int, Card]] = []
        self.lead_suit: Optional[str] = None
        self.stock: List[Card] = []
        self.played_this_hand: List[Card] = []
        self.bid_turn = (self.dealer + 1) % self.num_seats
        self.play_turn: Optional[int] = None
        self.next_leader: Optional[int] = None

    def start_hand(self) -> None:
        """
        Shuffle and deal the current hand.

        Cards are dealt round-robin starting left of the dealer. For hands
        below eight cards the trump is the suit of the last undealt card;
        eight-card hands deal the whole deck and leave the trump to the
        first bidder.

        Raises:
            GameStateException: If not in 'waiting' phase
        """
        self._require_phase(Phase.WAITING, "start a hand")

        self._reset_hand_state()
        self.deck.reset()
        self.deck.shuffle(self.rng)

        dealt = self.deck.deal(self.hand_size)
        for seat, cards in zip(bidding_order(self.dealer, self.num_seats), dealt):
            self.hands[seat] = sorted(cards, key=Card.sort_key)
        self.stock = list(self.deck.cards)

        if self.hand_size == TRUMP_CHOICE_HAND_SIZE:
            self.phase = Phase.CHOOSE_TRUMP
        else:
            self.trump = self.stock[-1].suit
            self.phase = Phase.BIDDING

        logger.debug(
            f"Hand {self.hand_index + 1}/{len(self.schedule)} dealt: "
            f"{self.hand_size} cards, dealer seat {self.dealer}, trump {self.trump}"
        )

    def next_hand(self) -> None:
        """
        Advance from 'hand_end' to the next scheduled hand.

        Raises:
            GameStateException: If not in 'hand_end' phase
        """
        self._require_phase(Phase.HAND_END, "start the next hand")
        self.hand_index += 1
        self.dealer = (self.dealer + 1) % self.num_seats
        self.phase = Phase.WAITING
        self.start_hand()

    def resume_after_trick(self) -> None:
        """
        Clear the finished trick and hand the lead to its winner.

        Raises:
            GameStateException: If not in 'trick_pause' phase
        """
        self._require_phase(Phase.TRICK_PAUSE, "resume play")
        self.current_trick = []
        self.lead_suit = None
        self.play_turn = self.next_leader
        self.next_leader = None
        self.phase = Phase.PLAYING

    # ------------------------------------------------------------------
    # Seat actions
    # ------------------------------------------------------------------

    def choose_trump(self, seat: int, suit: str) -> None:
        """
        First bidder picks the trump suit of an eight-card hand.

        Raises:
            GameStateException: If not in 'choose_trump' phase
            TurnException: If seat is not the first bidder
            InvalidInputException: If suit is not one of S, H, D, C
        """
        self._require_phase(Phase.CHOOSE_TRUMP, "choose trump")
        self._require_turn(seat, self.bid_turn, "choose trump")
        if suit not in SUITS:
            raise InvalidInputException(f"Invalid trump suit: {suit!r}")

        self.trump = suit
        self.phase = Phase.BIDDING

    def place_bid(self, seat: int, bid: int) -> None:
        """
        Record a bid and pass the turn.

        Once every seat has bid, play starts left of the dealer.

        Raises:
            GameStateException: If not in 'bidding' phase
            TurnException: If seat is not due to bid
            InvalidInputException: If bid is not an integer
            InvalidBidException: If bid is out of range or hooked
        """
        self._require_phase(Phase.BIDDING, "bid")
        self._require_turn(seat, self.bid_turn, "bid")
        if isinstance(bid, bool) or not isinstance(bid, int):
            raise InvalidInputException(f"Bid must be an integer 0..{self.hand_size}")

        validate_bid(bid, self.hand_size, seat == self.dealer, self._other_bids_total(seat))

        self.bids[seat] = bid
        self.bid_turn = (self.bid_turn + 1) % self.num_seats

        if all(b is not None for b in self.bids):
            self.phase = Phase.PLAYING
            self.play_turn = (self.dealer + 1) % self.num_seats
            self.current_trick = []
            self.lead_suit = None

    def play_card(self, seat: int, card: Union[str, Card]) -> PlayResult:
        """
        Play a card into the current trick.

        A full trick is resolved immediately. If hands are now empty the
        hand is scored and the match moves to 'hand_end' or 'game_end';
        otherwise it pauses in 'trick_pause' with the trick still visible.

        Args:
            seat: Acting seat
            card: Card or wire token such as 'QD'

        Raises:
            GameStateException: If not in 'playing' phase
            TurnException: If seat is not due to play
            InvalidInputException: If the token is malformed
            IllegalPlayException: If the card is not held or breaks suit rules
        """
        self._require_phase(Phase.PLAYING, "play a card")
        self._require_turn(seat, self.play_turn, "play")
        if not isinstance(card, Card):
            card = Card.from_token(card)

        validate_play(seat, card, self.hands[seat], self.lead_suit, self.trump)

        self.hands[seat].remove(card)
        self.played_this_hand.append(card)
        if not self.current_trick:
            self.lead_suit = card.suit
        self.current_trick.append((seat, card))

        if len(self.current_trick) < self.num_seats:
            self.play_turn = (seat + 1) % self.num_seats
            return PlayResult(card)

        winner = trick_winner(self.current_trick, self.trump)
        self.tricks_won[winner] += 1
        self.play_turn = None

        if all(not hand for hand in self.hands):
            self._score_hand()
            self.phase = Phase.GAME_END if self.is_last_hand else Phase.HAND_END
        else:
            self.next_leader = winner
            self.phase = Phase.TRICK_PAUSE

        return PlayResult(card, trick_complete=True, winner=winner)

    def rebind_seat(self, old_identity: str, new_identity: str) -> int:
        """
        Move a seat to a new external identity (reconnection).

        Only the seat list changes; hands, bids, tricks, scores, streaks and
        trick entries are keyed by seat and follow automatically.

        Returns:
            The rebound seat index

        Raises:
            ValueError: If old_identity is not seated or new_identity already is
        """
        seat = self.seat_of(old_identity)
        if seat is None:
            raise ValueError(f"{old_identity} is not seated in this match")
        if old_identity == new_identity:
            return seat
        if new_identity in self.seats:
            raise ValueError(f"{new_identity} already occupies a seat")

        self.seats[seat] = new_identity
        return seat

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def legal_bids(self, seat: int) -> List[int]:
        """Bids the seat could place now (empty unless it is the seat's turn)."""
        if self.phase != Phase.BIDDING or seat != self.bid_turn:
            return []
        others = self._other_bids_total(seat)
        is_dealer = seat == self.dealer
        return [
            bid for bid in range(self.hand_size + 1)
            if is_valid_bid(bid, self.hand_size, is_dealer, others)
        ]

    def forbidden_bid(self, seat: int) -> Optional[int]:
        """Hooked value for the dealer, None for anyone else."""
        if seat != self.dealer:
            return None
        return forbidden_bid(self.hand_size, self._other_bids_total(seat))

    def legal_plays(self, seat: int) -> List[Card]:
        """Cards the seat could play now (empty unless it is the seat's turn)."""
        if self.phase != Phase.PLAYING or seat != self.play_turn:
            return []
        return legal_plays(self.hands[seat], self.lead_suit, self.trump)

    def leaderboard(self) -> List[Dict]:
        """Seats ordered by descending score (stable on seat order)."""
        board = [
            {"identity": identity, "score": self.scores[seat]}
            for seat, identity in enumerate(self.seats)
        ]
        return sorted(board, key=lambda row: row["score"], reverse=True)

    def hand_tokens(self, seat: int) -> List[str]:
        return [card.token for card in self.hands[seat]]

    def public_state(self) -> Dict:
        """
        Snapshot shared by every viewer (hands excluded).

        Per-seat values are keyed by the identity currently in that seat.
        """
        current_player = self.current_player
        current_bidder = self.current_bidder

        return {
            "phase": self.phase.value,
            "seats": list(self.seats),
            "dealer": self.seats[self.dealer],
            "hand_number": self.hand_index + 1,
            "total_hands": len(self.schedule),
            "hand_size": self.hand_size,
            "trump": self.trump,
            "bids": dict(zip(self.seats, self.bids)),
            "tricks_won": dict(zip(self.seats, self.tricks_won)),
            "current_player": None if current_player is None else self.seats[current_player],
            "current_bidder": None if current_bidder is None else self.seats[current_bidder],
            "current_trick": [
                {"seat": self.seats[seat], "card": card.token}
                for seat, card in self.current_trick
            ],
            "scores": dict(zip(self.seats, self.scores)),
            "streaks": {
                identity: streak.to_dict()
                for identity, streak in zip(self.seats, self.streaks)
            },
            "leaderboard": self.leaderboard(),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_phase(self, phase: Phase, action: str) -> None:
        if self.phase != phase:
            raise GameStateException(
                f"Cannot {action} now: match is in '{self.phase.value}' phase"
            )

    def _require_turn(self, seat: int, expected: Optional[int], action: str) -> None:
        if seat != expected:
            raise TurnException(f"Not your turn to {action}")

    def _other_bids_total(self, seat: int) -> int:
        return sum(bid for other, bid in enumerate(self.bids) if other != seat and bid is not None)

    def _score_hand(self) -> None:
        record = {
            "hand_number": self.hand_index + 1,
            "hand_size": self.hand_size,
            "trump": self.trump,
            "seats": [],
        }

        for seat in range(self.num_seats):
            result = score_hand(self.bids[seat], self.tricks_won[seat], self.streaks[seat])
            self.scores[seat] += result.delta
            self.streaks[seat] = result.streak
            record["seats"].append(
                {
                    "seat": seat,
                    "bid": result.bid,
                    "tricks_won": result.tricks_won,
                    "base": result.base,
                    "streak_bonus": result.streak_bonus,
                    "delta": result.delta,
                    "score": self.scores[seat],
                }
            )

        self.hand_history.append(record)
        logger.debug(f"Hand {self.hand_index + 1} scored: {self.scores}")
