"""
Unit tests for per-viewer privacy projections.
"""

import random

from whist.game.constants import HIDDEN_CARD
from whist.game.session import GameSession, Phase
from whist.room.projection import project_hands, project_state, visible_hand


def eight_card_session(seed=3):
    session = GameSession(['a', 'b', 'c', 'd'], rng=random.Random(seed))
    session.hand_index = session.schedule.index(8)
    session.start_hand()
    return session


class TestProjection:
    """Test hand filtering per viewer."""

    def test_other_hands_hidden(self):
        """Test other seats show placeholders of matching count."""
        session = GameSession(['a', 'b', 'c'], rng=random.Random(1))
        session.hand_index = 4
        session.start_hand()

        hands = project_hands(session, 'a')
        assert hands['a'] == session.hand_tokens(0)
        assert hands['b'] == [HIDDEN_CARD] * 3
        assert hands['c'] == [HIDDEN_CARD] * 3

    def test_scenario_b_trump_chooser_sees_five(self):
        """Test the trump chooser sees 5 real cards and 3 placeholders until trump is set."""
        session = eight_card_session()
        assert session.phase == Phase.CHOOSE_TRUMP
        chooser = session.seats[session.current_bidder]

        hand = project_hands(session, chooser)[chooser]
        assert len(hand) == 8
        assert hand[:5] == session.hand_tokens(session.current_bidder)[:5]
        assert hand[5:] == [HIDDEN_CARD] * 3

        session.choose_trump(session.current_bidder, 'D')
        hand = project_hands(session, chooser)[chooser]
        assert HIDDEN_CARD not in hand

    def test_non_choosers_see_full_hand(self):
        """Test the limit applies to the chooser only."""
        session = eight_card_session()
        for seat, identity in enumerate(session.seats):
            if seat == session.current_bidder:
                continue
            assert project_hands(session, identity)[identity] == session.hand_tokens(seat)

    def test_spectator_sees_nothing(self):
        """Test an identity without a seat sees only placeholders."""
        session = eight_card_session()
        for tokens in project_hands(session, 'spectator').values():
            assert tokens == [HIDDEN_CARD] * 8
        assert visible_hand(session, 0, None) == [HIDDEN_CARD] * 8

    def test_project_state_payload(self):
        """Test the payload carries shared state and per-viewer hints."""
        session = eight_card_session()
        session.choose_trump(session.current_bidder, 'S')
        bidder = session.seats[session.current_bidder]

        payload = project_state(session, bidder)
        assert payload['state'] == session.public_state()
        assert payload['legal_bids'] == list(range(9))
        assert payload['legal_plays'] == []

        other = project_state(session, 'c' if bidder != 'c' else 'd')
        assert other['legal_bids'] == []
