"""
Exceptions raised by the Whist engine and the room orchestrator.

Every rejection carries an ErrorKind so callers can branch on the category
while still showing the human-readable message to the player.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of rejection categories."""

    TURN_VIOLATION = "turn_violation"
    PHASE_VIOLATION = "phase_violation"
    INPUT_VIOLATION = "input_violation"
    ILLEGAL_BID = "illegal_bid"
    ILLEGAL_PLAY = "illegal_play"
    UNKNOWN_ROOM = "unknown_room"
    NO_ACTIVE_MATCH = "no_active_match"
    NOT_PERMITTED = "not_permitted"
    ROSTER_VIOLATION = "roster_violation"
    PAUSED = "paused"
    CONFIGURATION = "configuration"


class WhistException(Exception):
    """Base exception for Whist errors."""

    kind = ErrorKind.INPUT_VIOLATION

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        if kind is not None:
            self.kind = kind
        self.message = message
        super().__init__(message)


class TurnException(WhistException):
    """Raised when the acting seat does not hold the turn."""

    kind = ErrorKind.TURN_VIOLATION


class GameStateException(WhistException):
    """Raised when game is in invalid phase for requested action."""

    kind = ErrorKind.PHASE_VIOLATION


class InvalidInputException(WhistException):
    """Raised for a malformed card token, bid value or suit."""

    kind = ErrorKind.INPUT_VIOLATION


class InvalidBidException(WhistException):
    """Raised when a seat attempts an out-of-range or hooked bid."""

    kind = ErrorKind.ILLEGAL_BID


class IllegalPlayException(WhistException):
    """Raised when a seat attempts an illegal card play."""

    kind = ErrorKind.ILLEGAL_PLAY

    def __init__(self, seat: int, card: str, reason: str):
        self.seat = seat
        self.card = card
        self.reason = reason
        super().__init__(reason)


class DeckSizeException(WhistException):
    """Raised when a deck cannot be built for the requested seat count."""

    kind = ErrorKind.CONFIGURATION


class RoomException(WhistException):
    """Structural or admission failure at the room level."""

    kind = ErrorKind.UNKNOWN_ROOM
