"""
Unit tests for the automated seat policy.
"""

import random

import pytest

from whist.game.cards import Card
from whist.game.exceptions import GameStateException
from whist.game.session import GameSession, Phase
from whist.room import bot


def cards(*tokens):
    return [Card.from_token(token) for token in tokens]


def session_at(num_seats, hand_size, seed=0):
    session = GameSession([f"s{i}" for i in range(num_seats)], rng=random.Random(seed))
    session.hand_index = session.schedule.index(hand_size)
    session.start_hand()
    return session


class TestBotBidding:
    """Test the high-card bid estimate."""

    def test_counts_high_cards(self):
        """Test J, Q, K and A each count as one trick."""
        session = session_at(3, 3)
        session.hands[1] = cards('9S', 'JH', 'AD')
        assert bot.choose_bid(session, 1) == 2

    def test_no_high_cards(self):
        """Test a hand of low cards bids zero."""
        session = session_at(3, 3)
        session.hands[1] = cards('9S', '10H', '9D')
        assert bot.choose_bid(session, 1) == 0

    def test_dealer_avoids_hook_upwards(self):
        """Test the dealer moves off the forbidden value by bidding one more."""
        session = session_at(3, 3)
        session.hands[0] = cards('9S', 'JH', '10D')
        session.place_bid(1, 1)
        session.place_bid(2, 1)
        # forbidden = 3 - 2 = 1, estimate = 1
        assert bot.choose_bid(session, 0) == 2

    def test_dealer_avoids_hook_downwards(self):
        """Test a full-hand estimate on the forbidden value drops by one."""
        session = session_at(3, 3)
        session.hands[0] = cards('AS', 'KH', 'QD')
        session.place_bid(1, 0)
        session.place_bid(2, 0)
        assert bot.choose_bid(session, 0) == 2

    def test_bid_always_legal(self):
        """Test the bot's bid is accepted throughout many random deals."""
        for seed in range(30):
            session = session_at(4, 5, seed=seed)
            while session.phase == Phase.BIDDING:
                seat = session.current_bidder
                bid = bot.choose_bid(session, seat)
                assert bid in session.legal_bids(seat)
                session.place_bid(seat, bid)


class TestBotTrumpAndPlay:
    """Test trump choice and card choice."""

    def test_trump_counts_whole_hand(self):
        """Test the chooser counts all eight cards, not just the five it is shown."""
        session = session_at(4, 8)
        seat = session.current_bidder
        session.hands[seat] = cards('KC', 'AC', 'KD', 'AD', '7H', '8H', '9H', '10H')
        assert bot.choose_trump(session, seat) == 'H'

    def test_trump_tie_breaks_on_suit_order(self):
        """Test equal counts pick the earlier suit in S, H, D, C."""
        session = session_at(3, 8)
        session.hands[1] = cards('9C', '10C', '9H', '10H', 'AD', 'KD', '9S', '10S')
        assert bot.choose_trump(session, 1) == 'S'

    def test_plays_lowest_legal(self):
        """Test the bot plays its lowest legal card, following suit."""
        session = session_at(3, 3)
        session.trump = 'S'
        session.hands = [cards('9D', 'AH', 'KH'), cards('10H', 'JD', 'AS'), cards('QH', '9S', '10C')]
        session.place_bid(1, 0)
        session.place_bid(2, 0)
        session.place_bid(0, 0)

        assert bot.choose_card(session, 1) == Card('H', 10)
        session.play_card(1, '10H')
        assert bot.choose_card(session, 2) == Card('H', 12)

    def test_choose_card_without_turn(self):
        """Test choosing a card off turn is a phase problem."""
        session = session_at(3, 3)
        with pytest.raises(GameStateException, match="no legal play"):
            bot.choose_card(session, 1)


class TestBotDecide:
    """Test decide()/apply_decision() dispatch."""

    def test_decide_requires_turn(self):
        """Test deciding for a seat not due to act raises."""
        session = session_at(4, 2)
        with pytest.raises(GameStateException, match="not due to act"):
            bot.decide(session, 3)

    def test_decide_dispatches_by_phase(self):
        """Test the action kind follows the phase."""
        session = session_at(4, 8)
        assert bot.decide(session, 1)[0] == 'trump'
        bot.apply_decision(session, 1, bot.decide(session, 1))
        assert session.phase == Phase.BIDDING

        assert bot.decide(session, 1)[0] == 'bid'
        while session.phase == Phase.BIDDING:
            seat = session.turn_holder
            bot.apply_decision(session, seat, bot.decide(session, seat))

        seat = session.turn_holder
        kind, token = bot.decide(session, seat)
        assert kind == 'play'
        result = bot.apply_decision(session, seat, (kind, token))
        assert result.card.token == token
