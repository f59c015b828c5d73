"""
WhistMaster Game Engine Package.

This package contains the core game logic for Romanian Whist,
including deck construction, rules, scoring and match state management.
"""

from whist.game.constants import (
    SUITS,
    SUIT_NAMES,
    RANKS,
    HIDDEN_CARD,
    MIN_SEATS,
    MAX_SEATS,
    MAX_HAND_SIZE,
    TRUMP_CHOICE_HAND_SIZE,
    generate_hand_schedule,
    min_rank_for_seats,
)
from whist.game.exceptions import (
    ErrorKind,
    WhistException,
    TurnException,
    GameStateException,
    InvalidInputException,
    InvalidBidException,
    IllegalPlayException,
    DeckSizeException,
    RoomException,
)
from whist.game.cards import Card, Deck, build_deck
from whist.game.rules import Streak, StreakType, HandScore, score_hand, trick_winner
from whist.game.session import GameSession, Phase, PlayResult

__all__ = [
    "SUITS",
    "SUIT_NAMES",
    "RANKS",
    "HIDDEN_CARD",
    "MIN_SEATS",
    "MAX_SEATS",
    "MAX_HAND_SIZE",
    "TRUMP_CHOICE_HAND_SIZE",
    "generate_hand_schedule",
    "min_rank_for_seats",
    "ErrorKind",
    "WhistException",
    "TurnException",
    "GameStateException",
    "InvalidInputException",
    "InvalidBidException",
    "IllegalPlayException",
    "DeckSizeException",
    "RoomException",
    "Card",
    "Deck",
    "build_deck",
    "Streak",
    "StreakType",
    "HandScore",
    "score_hand",
    "trick_winner",
    "GameSession",
    "Phase",
    "PlayResult",
]
