"""Room orchestration: rosters, timers, automated seats and per-viewer projections."""

from whist.room.orchestrator import JoinResult, Room, RoomOrchestrator, SeatInfo
from whist.room.projection import project_hands, project_state, visible_hand
from whist.room.scheduler import ManualScheduler, ThreadingScheduler, TimerHandle
from whist.room.transport import RecordingTransport, Transport

__all__ = [
    'RoomOrchestrator',
    'Room',
    'SeatInfo',
    'JoinResult',
    'project_state',
    'project_hands',
    'visible_hand',
    'ManualScheduler',
    'ThreadingScheduler',
    'TimerHandle',
    'Transport',
    'RecordingTransport',
]
