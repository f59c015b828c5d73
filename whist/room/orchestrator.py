"""
Room orchestration for live Whist matches.

RoomOrchestrator owns every room's roster and at most one GameSession per
room, and is the only code that mutates a session. Concurrency model:

- Each room has one re-entrant lock. Every inbound action and every timer
  callback runs to completion under that lock, so a room has a single
  logical writer no matter how many connections or timer threads call in.
- The room registry has its own lock, held only for lookups, insertions and
  deletions. It is never held while waiting for a room lock, and a room lock
  holder may take it (room lock -> registry lock), so the order is fixed.
- Delays (auto-advance, bot think time, reconnection grace) are scheduler
  timers. Each room has at most one timer per slot. A timer is cancelled by
  dropping it from its slot; every callback checks it still owns the slot
  and that the match is in the expected phase, so late firings are no-ops.
- Rooms share nothing, and an unexpected failure while handling one room is
  logged and contained to that action.
"""

import functools
import itertools
import logging
import random
import secrets
import string
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from whist.config import RoomConfig
from whist.game.exceptions import (
    ErrorKind,
    GameStateException,
    RoomException,
    TurnException,
    WhistException,
)
from whist.game.session import GameSession, Phase
from whist.room import bot
from whist.room.projection import project_state
from whist.room.scheduler import ThreadingScheduler, TimerHandle
from whist.room.transport import Transport

logger = logging.getLogger(__name__)

# Timer slots; each room holds at most one pending timer per slot
NEXT_HAND = "next_hand"
TRICK_RESUME = "trick_resume"
BOT_TURN = "bot_turn"
PAUSE_EXPIRY = "pause_expiry"


@dataclass
class SeatInfo:
    """
    One roster entry.

    Attributes:
        identity: Current transport identity (changes on reconnection)
        name: Display name
        is_bot: True for automated seats
        offline: True while a human seat is disconnected
        reconnect_token: Private token that lets the owner reclaim the seat
    """

    identity: str
    name: str
    is_bot: bool = False
    offline: bool = False
    reconnect_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identity,
            "name": self.name,
            "is_bot": self.is_bot,
            "offline": self.offline,
        }


@dataclass(frozen=True)
class JoinResult:
    """What a connection needs after creating or joining a room."""

    room_id: str
    identity: str
    reconnect_token: str
    rejoined: bool = False


class Room:
    """
    Roster, active match and timers for one room.

    Attributes:
        id: Room identifier
        name: Display name
        host_id: Identity allowed to add bots, start matches and advance hands
        seats: Roster in seat order
        session: Current or last match (None before the first start)
        lock: Serializes every mutation of this room
        timers: Pending timers by slot, as (ticket, handle)
        pause_until: Scheduler time at which the reconnection pause ends
    """

    def __init__(self, room_id: str, name: str, host_id: str, created_at: float):
        self.id = room_id
        self.name = name
        self.host_id = host_id
        self.created_at = created_at
        self.seats: List[SeatInfo] = []
        self.session: Optional[GameSession] = None
        self.lock = threading.RLock()
        self.timers: Dict[str, Tuple[int, TimerHandle]] = {}
        self.pause_until: Optional[float] = None

    @property
    def match_in_progress(self) -> bool:
        return self.session is not None and self.session.phase != Phase.GAME_END

    def seat_info(self, identity: str) -> Optional[SeatInfo]:
        for info in self.seats:
            if info.identity == identity:
                return info
        return None

    def humans(self) -> List[SeatInfo]:
        return [info for info in self.seats if not info.is_bot]

    def snapshot(self, now: float) -> Dict[str, Any]:
        """Room-level view shared with every member."""
        paused = self.pause_until is not None and now < self.pause_until
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "host": self.host_id,
            "seats": [info.to_dict() for info in self.seats],
            "in_match": self.match_in_progress,
            "phase": self.session.phase.value if self.session else Phase.WAITING.value,
            "paused": paused,
            "pause_remaining": max(0.0, self.pause_until - now) if paused else 0.0,
        }


class RoomOrchestrator:
    """
    Serialized, timer-driven referee for many independent rooms.

    Every public action reports rejections to the acting identity through
    the transport and returns False (or None for join/create); accepted
    actions fan the new state out to every connected human in the room.

    Example:
        >>> orchestrator = RoomOrchestrator(transport=RecordingTransport())
        >>> host = orchestrator.create_room("sock-1", "Friday", "Ana")
        >>> orchestrator.add_bot(host.room_id, "sock-1")
        True
    """

    def __init__(
        self,
        config: Optional[RoomConfig] = None,
        transport: Optional[Transport] = None,
        scheduler=None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            config: Timing and roster settings (validated here)
            transport: Outbound delivery; defaults to a transport that drops everything
            scheduler: ThreadingScheduler (default) or ManualScheduler
            rng: Random source for room ids, bot ids and shuffling
        """
        self.config = config or RoomConfig()
        self.config.validate()
        self.transport = transport or Transport()
        self.scheduler = scheduler or ThreadingScheduler()
        self.rng = rng or random.Random()

        self._rooms: Dict[str, Room] = {}
        self._rooms_lock = threading.Lock()
        self._tickets = itertools.count(1)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._rooms_lock:
            return self._rooms.get(room_id)

    def room_ids(self) -> List[str]:
        with self._rooms_lock:
            return list(self._rooms)

    def room_snapshot(self, room_id: str) -> Optional[Dict[str, Any]]:
        room = self.get_room(room_id)
        if room is None:
            return None
        with room.lock:
            return room.snapshot(self.scheduler.now())

    def state_for(self, room_id: str, viewer_id: str) -> Optional[Dict[str, Any]]:
        """Privacy-filtered match payload for one viewer, or None without a match."""
        room = self.get_room(room_id)
        if room is None:
            return None
        with room.lock:
            if room.session is None:
                return None
            return project_state(room.session, viewer_id)

    def shutdown(self) -> None:
        """Cancel every pending timer in every room."""
        for room_id in self.room_ids():
            room = self.get_room(room_id)
            if room is None:
                continue
            with room.lock:
                self._disarm_all(room)

    def _require_room(self, room_id: str) -> Room:
        room = self.get_room(room_id)
        if room is None:
            raise RoomException("Room not found", ErrorKind.UNKNOWN_ROOM)
        return room

    def _new_room_id(self) -> str:
        alphabet = string.ascii_uppercase + string.digits
        with self._rooms_lock:
            while True:
                room_id = "".join(self.rng.choice(alphabet) for _ in range(6))
                if room_id not in self._rooms:
                    return room_id

    def _delete_room(self, room: Room) -> None:
        self._disarm_all(room)
        with self._rooms_lock:
            self._rooms.pop(room.id, None)
        logger.info(f"Room {room.id} deleted")

    # ------------------------------------------------------------------
    # Lobby actions
    # ------------------------------------------------------------------

    def create_room(self, identity: str, room_name: str, host_name: str) -> JoinResult:
        """Create a room whose only seat is its host."""
        name = self._clean(room_name, self.config.max_room_name_length, "Room")
        token = secrets.token_urlsafe(12)
        room = Room(self._new_room_id(), name, identity, time.time())
        room.seats.append(
            SeatInfo(identity, self._clean(host_name, self.config.max_name_length, "Player"),
                     reconnect_token=token)
        )

        with self._rooms_lock:
            self._rooms[room.id] = room
        logger.info(f"Room {room.id} ({name!r}) created by {identity}")

        with room.lock:
            self.transport.send_room(room.id, room.snapshot(self.scheduler.now()))
        return JoinResult(room.id, identity, token)

    def join_room(
        self,
        room_id: str,
        identity: str,
        name: str,
        reconnect_token: Optional[str] = None,
    ) -> Optional[JoinResult]:
        """
        Join a room, or reclaim a seat.

        A matching reconnection token always reclaims its seat, rebinding
        the seat inside any running match. Without a token, an offline seat
        with the same name is reclaimed, mid-match too; otherwise a new seat
        is added if no match is running and the roster has room.
        """
        ok, result = self._perform(
            room_id, identity, "join",
            lambda room, who: self._join(room, who, name, reconnect_token),
            room_changed=True,
        )
        return result if ok else None

    def _join(self, room: Room, identity: str, name: str, token: Optional[str]) -> JoinResult:
        clean_name = self._clean(name, self.config.max_name_length, "Player")

        claimed = None
        if token:
            claimed = next(
                (info for info in room.humans() if info.reconnect_token == token), None
            )
        if claimed is None:
            claimed = next(
                (info for info in room.humans() if info.offline and info.name == clean_name), None
            )

        if claimed is None:
            if room.match_in_progress:
                raise RoomException("Match already started in this room", ErrorKind.ROSTER_VIOLATION)
            if room.seat_info(identity) is not None:
                raise RoomException("Already in this room", ErrorKind.ROSTER_VIOLATION)
            if len(room.seats) >= self.config.max_seats:
                raise RoomException(
                    f"Room is full (max {self.config.max_seats})", ErrorKind.ROSTER_VIOLATION
                )
            new_token = secrets.token_urlsafe(12)
            room.seats.append(SeatInfo(identity, clean_name, reconnect_token=new_token))
            logger.info(f"{identity} joined room {room.id} as {clean_name!r}")
            return JoinResult(room.id, identity, new_token)

        self._remap(room, claimed, identity)
        if not claimed.reconnect_token:
            claimed.reconnect_token = token or secrets.token_urlsafe(12)
        if self._lift_pause_if_all_online(room):
            logger.info(f"Room {room.id}: every seat back online, pause lifted")
        return JoinResult(room.id, identity, claimed.reconnect_token, rejoined=True)

    def _remap(self, room: Room, info: SeatInfo, new_identity: str) -> None:
        """Move a roster entry, its match seat and host rights to a new identity."""
        old_identity = info.identity
        if old_identity != new_identity and room.seat_info(new_identity) is not None:
            raise RoomException("Already in this room", ErrorKind.ROSTER_VIOLATION)

        if room.session is not None and room.session.seat_of(old_identity) is not None:
            room.session.rebind_seat(old_identity, new_identity)
        info.identity = new_identity
        info.offline = False
        if room.host_id == old_identity:
            room.host_id = new_identity
        logger.info(f"Room {room.id}: seat {info.name!r} remapped {old_identity} -> {new_identity}")

    def add_bot(self, room_id: str, identity: str) -> bool:
        """Host adds an automated seat before the match starts."""
        ok, _ = self._perform(room_id, identity, "add_bot", self._add_bot_seat, room_changed=True)
        return ok

    def _add_bot_seat(self, room: Room, identity: str) -> None:
        self._require_host(room, identity, "add bots")
        if room.match_in_progress:
            raise RoomException("Cannot add bots after the match starts", ErrorKind.ROSTER_VIOLATION)
        if len(room.seats) >= self.config.max_seats:
            raise RoomException(
                f"Room is full (max {self.config.max_seats})", ErrorKind.ROSTER_VIOLATION
            )

        alphabet = string.ascii_lowercase + string.digits
        bot_id = "bot-" + "".join(self.rng.choice(alphabet) for _ in range(6))
        while room.seat_info(bot_id) is not None:
            bot_id = "bot-" + "".join(self.rng.choice(alphabet) for _ in range(6))

        bot_count = sum(1 for info in room.seats if info.is_bot)
        room.seats.append(SeatInfo(bot_id, f"Bot {bot_count + 1}", is_bot=True))

    def leave_room(self, room_id: str, identity: str) -> bool:
        """
        Leave a room.

        A human leaving a running match keeps the seat (offline) and opens
        the reconnection pause; otherwise the seat is removed.
        """
        ok, _ = self._perform(room_id, identity, "leave", self._leave, room_changed=True)
        return ok

    def _leave(self, room: Room, identity: str) -> None:
        info = room.seat_info(identity)
        if info is None:
            raise RoomException("Not in this room", ErrorKind.ROSTER_VIOLATION)

        if room.match_in_progress and not info.is_bot:
            info.offline = True
            self._open_pause(room)
        else:
            room.seats.remove(info)

        self._reassign_host(room, identity)
        if not room.humans():
            self._delete_room(room)

    def disconnect(self, room_id: str, identity: str) -> bool:
        """Transport lost a connection: keep the seat, mark it offline."""
        ok, _ = self._perform(room_id, identity, "disconnect", self._disconnect, room_changed=True)
        return ok

    def _disconnect(self, room: Room, identity: str) -> None:
        info = room.seat_info(identity)
        if info is None:
            raise RoomException("Not in this room", ErrorKind.ROSTER_VIOLATION)

        info.offline = True
        self._reassign_host(room, identity)
        if room.match_in_progress:
            self._open_pause(room)
        elif not any(not human.offline for human in room.humans()):
            self._delete_room(room)

    # ------------------------------------------------------------------
    # Match actions
    # ------------------------------------------------------------------

    def start_match(self, room_id: str, identity: str) -> bool:
        """Host starts a new match from the current roster."""
        ok, _ = self._perform(room_id, identity, "start", self._start, room_changed=True)
        return ok

    def _start(self, room: Room, identity: str) -> None:
        self._require_host(room, identity, "start")
        self._require_not_paused(room)
        if room.match_in_progress:
            raise GameStateException("Match already in progress")
        if len(room.seats) < self.config.min_seats:
            raise RoomException(
                f"Need at least {self.config.min_seats} players", ErrorKind.ROSTER_VIOLATION
            )
        if len(room.seats) > self.config.max_seats:
            raise RoomException(
                f"Max {self.config.max_seats} players", ErrorKind.ROSTER_VIOLATION
            )

        self._disarm_all(room)
        room.session = GameSession([info.identity for info in room.seats], dealer=0, rng=self.rng)
        room.session.start_hand()
        logger.info(f"Room {room.id}: match started with {len(room.seats)} seats")

    def place_bid(self, room_id: str, identity: str, value: Union[int, str]) -> bool:
        ok, _ = self._perform(room_id, identity, "bid", functools.partial(self._bid, value=value))
        return ok

    def _bid(self, room: Room, identity: str, value: Union[int, str]) -> None:
        seat = self._acting_seat(room, identity)
        room.session.place_bid(seat, self._coerce_bid(value))

    def choose_trump(self, room_id: str, identity: str, suit: str) -> bool:
        ok, _ = self._perform(room_id, identity, "trump", functools.partial(self._trump, suit=suit))
        return ok

    def _trump(self, room: Room, identity: str, suit: str) -> None:
        seat = self._acting_seat(room, identity)
        room.session.choose_trump(seat, str(suit).strip().upper())

    def play_card(self, room_id: str, identity: str, card: str) -> bool:
        ok, _ = self._perform(room_id, identity, "play", functools.partial(self._play, card=card))
        return ok

    def _play(self, room: Room, identity: str, card: str) -> None:
        seat = self._acting_seat(room, identity)
        room.session.play_card(seat, str(card).strip().upper())

    def advance_to_next_hand(self, room_id: str, identity: str) -> bool:
        """Host skips the remaining hand_end grace delay."""
        ok, _ = self._perform(room_id, identity, "next_hand", self._advance, room_changed=True)
        return ok

    def _advance(self, room: Room, identity: str) -> None:
        self._require_match(room)
        self._require_not_paused(room)
        self._require_host(room, identity, "continue")
        room.session.next_hand()
        self._disarm(room, NEXT_HAND)

    # ------------------------------------------------------------------
    # Action plumbing
    # ------------------------------------------------------------------

    def _perform(
        self,
        room_id: str,
        identity: str,
        action: str,
        handler: Callable[[Room, str], Any],
        room_changed: bool = False,
    ) -> Tuple[bool, Any]:
        """
        Run one inbound action under the room lock.

        Returns:
            (accepted, handler result)
        """
        try:
            room = self._require_room(room_id)
        except RoomException as e:
            self._reject(None, identity, action, e)
            return False, None

        with room.lock:
            phase_before = room.session.phase if room.session else None
            try:
                result = handler(room, identity)
            except WhistException as e:
                self._reject(room, identity, action, e)
                return False, None
            except Exception:
                logger.exception(f"Room {room.id}: unexpected failure handling {action} from {identity}")
                self.transport.send_error(identity, f"{action} failed")
                return False, None

            logger.debug(f"Room {room.id}: {action} from {identity} accepted")
            self._commit(room, phase_before, room_changed)
            return True, result

    def _reject(self, room: Optional[Room], identity: str, action: str, error: WhistException) -> None:
        room_label = room.id if room else "-"
        logger.warning(
            f"Room {room_label}: rejected {action} from {identity} [{error.kind.value}] {error.message}"
        )
        self.transport.send_error(identity, error.message)
        if room is not None and room.session is not None:
            self.transport.send_state(identity, project_state(room.session, identity))

    def _commit(self, room: Room, phase_before: Optional[Phase], room_changed: bool = False) -> None:
        """Fan out the new state and arm whatever timers the new state needs."""
        if self.get_room(room.id) is not room:
            return  # deleted by this action

        session = room.session
        if room_changed or (session is not None and session.phase != phase_before):
            self.transport.send_room(room.id, room.snapshot(self.scheduler.now()))
        if session is not None:
            if session.phase in (Phase.HAND_END, Phase.GAME_END) and session.phase != phase_before:
                logger.info(
                    f"Room {room.id}: hand {session.hand_index + 1}/{len(session.schedule)} "
                    f"scored, scores {session.scores}"
                )
            if session.phase == Phase.GAME_END and phase_before != Phase.GAME_END:
                logger.info(f"Room {room.id}: match finished, leaderboard {session.leaderboard()}")
            for info in room.humans():
                if not info.offline:
                    self.transport.send_state(info.identity, project_state(session, info.identity))
        self._schedule_followups(room)

    def _acting_seat(self, room: Room, identity: str) -> int:
        self._require_match(room)
        self._require_not_paused(room)
        seat = room.session.seat_of(identity)
        if seat is None:
            raise TurnException("You are not seated in this match")
        return seat

    def _require_match(self, room: Room) -> None:
        if room.session is None:
            raise RoomException("No active match", ErrorKind.NO_ACTIVE_MATCH)

    def _require_not_paused(self, room: Room) -> None:
        if self._paused(room):
            raise RoomException("Game is paused for reconnect", ErrorKind.PAUSED)

    def _require_host(self, room: Room, identity: str, action: str) -> None:
        if room.host_id != identity:
            raise RoomException(f"Only the host can {action}", ErrorKind.NOT_PERMITTED)

    def _reassign_host(self, room: Room, departed: str) -> None:
        if room.host_id != departed or not room.seats:
            return
        online = [info for info in room.humans() if not info.offline]
        room.host_id = online[0].identity if online else room.seats[0].identity

    @staticmethod
    def _coerce_bid(value: Union[int, str]) -> Union[int, str]:
        # Numeric strings become ints; anything else is left for the session to reject
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        return value

    @staticmethod
    def _clean(value: Optional[str], limit: int, default: str) -> str:
        return str(value or "").strip()[:limit] or default

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _schedule_followups(self, room: Room) -> None:
        """Arm the timer the current state calls for, unless paused."""
        session = room.session
        if session is None or self._paused(room):
            return

        if session.phase == Phase.HAND_END:
            self._arm(room, NEXT_HAND, self.config.next_hand_delay,
                      functools.partial(self._auto_next_hand, session=session))
        elif session.phase == Phase.TRICK_PAUSE:
            self._arm(room, TRICK_RESUME, self.config.trick_pause_delay,
                      functools.partial(self._auto_resume, session=session))
        else:
            self._schedule_bot_turn(room)

    def _schedule_bot_turn(self, room: Room) -> None:
        session = room.session
        seat = session.turn_holder
        if seat is None:
            return
        info = room.seat_info(session.seats[seat])
        if info is None or not info.is_bot:
            return

        delays = {
            Phase.CHOOSE_TRUMP: self.config.bot_trump_delay,
            Phase.BIDDING: self.config.bot_bid_delay,
            Phase.PLAYING: self.config.bot_play_delay,
        }
        self._arm(room, BOT_TURN, delays[session.phase],
                  functools.partial(self._bot_turn, session=session, seat=seat, phase=session.phase))

    def _auto_next_hand(self, room: Room, session: GameSession) -> bool:
        if room.session is not session or session.phase != Phase.HAND_END:
            return False
        session.next_hand()
        return True

    def _auto_resume(self, room: Room, session: GameSession) -> bool:
        if room.session is not session or session.phase != Phase.TRICK_PAUSE:
            return False
        session.resume_after_trick()
        return True

    def _bot_turn(self, room: Room, session: GameSession, seat: int, phase: Phase) -> bool:
        if room.session is not session or session.phase != phase or session.turn_holder != seat:
            return False
        bot.apply_decision(session, seat, bot.decide(session, seat))
        return True

    def _pause_expired(self, room: Room) -> bool:
        room.pause_until = None
        logger.info(f"Room {room.id}: reconnection pause expired")
        return True

    def _arm(self, room: Room, slot: str, delay: float, callback: Callable[[Room], bool]) -> None:
        if slot in room.timers:
            return
        ticket = next(self._tickets)
        handle = self.scheduler.call_later(delay, self._on_timer, room.id, slot, ticket, callback)
        room.timers[slot] = (ticket, handle)
        logger.debug(f"Room {room.id}: {slot} timer armed ({delay}s)")

    def _disarm(self, room: Room, slot: str) -> None:
        armed = room.timers.pop(slot, None)
        if armed is not None:
            armed[1].cancel()

    def _disarm_all(self, room: Room) -> None:
        for slot in list(room.timers):
            self._disarm(room, slot)

    def _on_timer(self, room_id: str, slot: str, ticket: int, callback: Callable[[Room], bool]) -> None:
        room = self.get_room(room_id)
        if room is None:
            return

        with room.lock:
            armed = room.timers.get(slot)
            if armed is None or armed[0] != ticket:
                return  # cancelled or superseded
            del room.timers[slot]

            if slot != PAUSE_EXPIRY and self._paused(room):
                return

            phase_before = room.session.phase if room.session else None
            try:
                changed = callback(room)
            except Exception:
                logger.exception(f"Room {room.id}: {slot} timer failed")
                return

            logger.debug(f"Room {room.id}: {slot} timer fired (changed={changed})")
            if changed:
                self._commit(room, phase_before, room_changed=slot == PAUSE_EXPIRY)

    # ------------------------------------------------------------------
    # Reconnection pause
    # ------------------------------------------------------------------

    def _paused(self, room: Room) -> bool:
        return room.pause_until is not None and self.scheduler.now() < room.pause_until

    def _open_pause(self, room: Room) -> None:
        now = self.scheduler.now()
        room.pause_until = max(room.pause_until or now, now + self.config.reconnect_grace)

        for slot in (NEXT_HAND, TRICK_RESUME, BOT_TURN, PAUSE_EXPIRY):
            self._disarm(room, slot)
        self._arm(room, PAUSE_EXPIRY, room.pause_until - now, self._pause_expired)
        logger.info(f"Room {room.id}: paused {room.pause_until - now:.1f}s for reconnection")

    def _lift_pause_if_all_online(self, room: Room) -> bool:
        if any(info.offline for info in room.humans()):
            return False
        was_paused = room.pause_until is not None
        room.pause_until = None
        self._disarm(room, PAUSE_EXPIRY)
        return was_paused
