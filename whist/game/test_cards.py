"""
Unit tests for cards, the seat-sized deck and the hand schedule.
"""

import random

import pytest

from whist.game.cards import Card, Deck, build_deck
from whist.game.constants import (
    RANKS,
    SUITS,
    generate_hand_schedule,
    min_rank_for_seats,
)
from whist.game.exceptions import DeckSizeException, ErrorKind, InvalidInputException


# ============================================================================
# Test Card Class
# ============================================================================


class TestCard:
    """Test Card creation and wire encoding."""

    def test_card_creation(self):
        """Test Card stores suit and numeric rank."""
        card = Card('S', 14)
        assert card.suit == 'S'
        assert card.rank == 14
        assert card.token == 'AS'

    def test_card_invalid_suit(self):
        """Test that invalid suit raises ValueError."""
        with pytest.raises(ValueError, match="Invalid suit"):
            Card('X', 10)

    def test_card_invalid_rank(self):
        """Test that invalid rank raises ValueError."""
        with pytest.raises(ValueError, match="Invalid rank"):
            Card('H', 1)

    def test_token_round_trip_every_card(self):
        """Test encode(decode(token)) == token for every rank and suit."""
        for suit in SUITS:
            for rank in RANKS:
                token = Card(suit, rank).token
                assert Card.from_token(token).token == token
                assert Card.from_token(token) == Card(suit, rank)

    def test_ten_uses_two_characters(self):
        """Test the ten encodes as '10' followed by the suit."""
        assert Card('H', 10).token == '10H'
        assert Card.from_token('10H') == Card('H', 10)

    @pytest.mark.parametrize("token", ["", "A", "1S", "11H", "AX", "as", "T S", "JOKER"])
    def test_from_token_rejects_malformed(self, token):
        """Test malformed tokens are rejected as input violations."""
        with pytest.raises(InvalidInputException) as exc_info:
            Card.from_token(token)
        assert exc_info.value.kind == ErrorKind.INPUT_VIOLATION

    def test_from_token_rejects_non_string(self):
        """Test non-string tokens are rejected."""
        with pytest.raises(InvalidInputException, match="Invalid card"):
            Card.from_token(14)

    def test_cards_are_hashable(self):
        """Test equal cards collapse in a set."""
        assert len({Card('D', 12), Card('D', 12), Card('C', 12)}) == 2

    def test_sort_key_groups_by_suit(self):
        """Test display order is suit letter first, then rank."""
        hand = [Card('S', 9), Card('C', 14), Card('H', 2), Card('C', 10)]
        ordered = sorted(hand, key=Card.sort_key)
        assert [c.token for c in ordered] == ['10C', 'AC', '2H', '9S']


# ============================================================================
# Test Deck
# ============================================================================


class TestDeckBuilder:
    """Test base deck construction for every seat count."""

    @pytest.mark.parametrize("num_seats", [3, 4, 5, 6])
    def test_deck_size_and_uniqueness(self, num_seats):
        """Test deck has exactly 8n unique cards."""
        cards = build_deck(num_seats)
        assert len(cards) == 8 * num_seats
        assert len(set(cards)) == len(cards)

    @pytest.mark.parametrize("num_seats", [3, 4, 5, 6])
    def test_cards_per_suit_and_min_rank(self, num_seats):
        """Test each suit holds 2n cards and the lowest rank is 15 - 2n."""
        cards = build_deck(num_seats)
        for suit in SUITS:
            assert sum(1 for c in cards if c.suit == suit) == 2 * num_seats
        assert min(c.rank for c in cards) == 15 - 2 * num_seats
        assert max(c.rank for c in cards) == 14

    def test_min_rank_helper(self):
        """Test min_rank_for_seats matches the documented values."""
        assert min_rank_for_seats(3) == 9
        assert min_rank_for_seats(4) == 7
        assert min_rank_for_seats(5) == 5
        assert min_rank_for_seats(6) == 3

    @pytest.mark.parametrize("num_seats", [0, 2, 7])
    def test_invalid_seat_count(self, num_seats):
        """Test unsupported seat counts raise DeckSizeException."""
        with pytest.raises(DeckSizeException, match="Deck size mismatch"):
            build_deck(num_seats)

    def test_deck_size_exception_is_configuration_error(self):
        """Test DeckSizeException carries the configuration kind."""
        with pytest.raises(DeckSizeException) as exc_info:
            Deck(7)
        assert exc_info.value.kind == ErrorKind.CONFIGURATION

    def test_deal_round_robin(self):
        """Test dealing takes cards from the top in rotation."""
        deck = Deck(3)
        top = list(deck.cards[:6])
        hands = deck.deal(2)

        assert hands == [[top[0], top[3]], [top[1], top[4]], [top[2], top[5]]]
        assert deck.remaining_cards() == 24 - 6

    def test_deal_too_many(self):
        """Test dealing beyond the deck raises ValueError."""
        deck = Deck(4)
        with pytest.raises(ValueError, match="Cannot deal"):
            deck.deal(9)

    def test_shuffle_is_reproducible_with_rng(self):
        """Test an injected Random gives a repeatable order."""
        first, second = Deck(5), Deck(5)
        first.shuffle(random.Random(11))
        second.shuffle(random.Random(11))
        assert first.cards == second.cards
        assert sorted(first.cards, key=Card.sort_key) == sorted(build_deck(5), key=Card.sort_key)

    def test_reset_restores_full_deck(self):
        """Test reset returns every dealt card."""
        deck = Deck(6)
        deck.deal(8)
        assert deck.remaining_cards() == 0
        deck.reset()
        assert deck.remaining_cards() == 48


# ============================================================================
# Test Hand Schedule
# ============================================================================


class TestHandScheduler:
    """Test the per-match hand size sequence."""

    @pytest.mark.parametrize("num_seats", [3, 4, 5, 6])
    def test_schedule_shape(self, num_seats):
        """Test the schedule is [1 x n, 2..7, 8 x n, 7..2, 1 x n]."""
        schedule = generate_hand_schedule(num_seats)
        expected = (
            [1] * num_seats + [2, 3, 4, 5, 6, 7] + [8] * num_seats
            + [7, 6, 5, 4, 3, 2] + [1] * num_seats
        )
        assert schedule == expected
        assert len(schedule) == 3 * num_seats + 12

    @pytest.mark.parametrize("num_seats", [2, 7])
    def test_schedule_rejects_invalid_seats(self, num_seats):
        """Test seat counts outside 3..6 are rejected."""
        with pytest.raises(ValueError, match="num_seats must be between"):
            generate_hand_schedule(num_seats)
