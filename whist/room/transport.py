"""
Outbound delivery interface used by the room orchestrator.

The orchestrator never talks to sockets directly. A transport adapter
receives three kinds of messages:

- room snapshots, addressed to everyone in a room
- match-state projections, addressed to one viewer
- rejection messages, addressed to the acting connection only

RecordingTransport keeps everything in memory and backs the tests and the
simulator.
"""

import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional


class Transport:
    """Base transport: drops every message."""

    def send_room(self, room_id: str, snapshot: Dict[str, Any]) -> None:
        pass

    def send_state(self, viewer_id: str, payload: Dict[str, Any]) -> None:
        pass

    def send_error(self, viewer_id: str, message: str) -> None:
        pass


class RecordingTransport(Transport):
    """
    In-memory transport that records every outbound message.

    Attributes:
        room_updates: Room snapshots per room id, oldest first
        states: Match-state payloads per viewer id, oldest first
        errors: Rejection messages per viewer id, oldest first
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.room_updates: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.states: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.errors: Dict[str, List[str]] = defaultdict(list)

    def send_room(self, room_id: str, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            self.room_updates[room_id].append(snapshot)

    def send_state(self, viewer_id: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.states[viewer_id].append(payload)

    def send_error(self, viewer_id: str, message: str) -> None:
        with self._lock:
            self.errors[viewer_id].append(message)

    def last_state(self, viewer_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            received = self.states.get(viewer_id)
            return received[-1] if received else None

    def last_room(self, room_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            received = self.room_updates.get(room_id)
            return received[-1] if received else None

    def last_error(self, viewer_id: str) -> Optional[str]:
        with self._lock:
            received = self.errors.get(viewer_id)
            return received[-1] if received else None
