"""
Per-viewer match projections.

Every viewer receives the shared public state plus a hand map in which only
their own cards are readable. The seat choosing trump for an eight-card hand
sees just the first five of its (sorted) cards until the trump is set.
"""

from typing import Dict, List, Optional

from whist.game.constants import HIDDEN_CARD, TRUMP_CHOICE_HAND_SIZE, TRUMP_CHOICE_VISIBLE_CARDS
from whist.game.session import GameSession, Phase


def visible_hand(session: GameSession, seat: int, viewer_seat: Optional[int]) -> List[str]:
    """
    Hand of seat as viewer_seat may see it.

    Args:
        session: Active match
        seat: Seat whose hand is shown
        viewer_seat: Seat of the viewer (None for a viewer without a seat)
    """
    tokens = session.hand_tokens(seat)
    if seat != viewer_seat:
        return [HIDDEN_CARD] * len(tokens)

    choosing = (
        session.phase == Phase.CHOOSE_TRUMP
        and session.hand_size == TRUMP_CHOICE_HAND_SIZE
        and session.current_bidder == seat
    )
    if choosing:
        return [
            token if idx < TRUMP_CHOICE_VISIBLE_CARDS else HIDDEN_CARD
            for idx, token in enumerate(tokens)
        ]
    return tokens


def project_hands(session: GameSession, viewer_id: str) -> Dict[str, List[str]]:
    """Hand map keyed by seat identity, filtered for viewer_id."""
    viewer_seat = session.seat_of(viewer_id)
    return {
        identity: visible_hand(session, seat, viewer_seat)
        for seat, identity in enumerate(session.seats)
    }


def project_state(session: GameSession, viewer_id: str) -> Dict:
    """Full payload for one viewer: shared state plus filtered hands."""
    viewer_seat = session.seat_of(viewer_id)
    return {
        "state": session.public_state(),
        "hands": project_hands(session, viewer_id),
        "legal_bids": session.legal_bids(viewer_seat) if viewer_seat is not None else [],
        "legal_plays": (
            [card.token for card in session.legal_plays(viewer_seat)]
            if viewer_seat is not None else []
        ),
    }
