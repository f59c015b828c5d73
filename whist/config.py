"""
Room Configuration System

Centralized timing and roster configuration for the room orchestrator.
"""

import json
from dataclasses import dataclass, asdict
from typing import Dict, Any

from whist.game.constants import MIN_SEATS, MAX_SEATS


@dataclass
class RoomConfig:
    """Configuration for room orchestration."""

    # Auto-advance delays (seconds)
    next_hand_delay: float = 5.0
    trick_pause_delay: float = 5.0  # how long a finished trick stays on the table

    # Automated seat think-delays (seconds)
    bot_bid_delay: float = 0.35
    bot_trump_delay: float = 0.35
    bot_play_delay: float = 0.45

    # Pause opened by a mid-match disconnect (seconds)
    reconnect_grace: float = 60.0

    # Roster
    min_seats: int = MIN_SEATS
    max_seats: int = MAX_SEATS
    max_name_length: int = 16
    max_room_name_length: int = 40

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert config to dictionary.

        Returns:
            Dictionary representation of config
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'RoomConfig':
        """
        Create config from dictionary.

        Args:
            config_dict: Dictionary of configuration values

        Returns:
            RoomConfig instance
        """
        # Filter out keys that aren't valid config fields
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_dict = {k: v for k, v in config_dict.items() if k in valid_keys}
        return cls(**filtered_dict)

    @classmethod
    def from_file(cls, filepath: str) -> 'RoomConfig':
        """
        Load config from JSON file.

        Args:
            filepath: Path to JSON config file

        Returns:
            RoomConfig instance
        """
        with open(filepath, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def save(self, filepath: str):
        """
        Save config to JSON file.

        Args:
            filepath: Path to save config to
        """
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if config is valid

        Raises:
            ValueError: If config values are invalid
        """
        delays = {
            'next_hand_delay': self.next_hand_delay,
            'trick_pause_delay': self.trick_pause_delay,
            'bot_bid_delay': self.bot_bid_delay,
            'bot_trump_delay': self.bot_trump_delay,
            'bot_play_delay': self.bot_play_delay,
            'reconnect_grace': self.reconnect_grace,
        }
        for name, value in delays.items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        if not MIN_SEATS <= self.min_seats <= MAX_SEATS:
            raise ValueError(
                f"min_seats must be between {MIN_SEATS} and {MAX_SEATS}, got {self.min_seats}"
            )

        if not MIN_SEATS <= self.max_seats <= MAX_SEATS:
            raise ValueError(
                f"max_seats must be between {MIN_SEATS} and {MAX_SEATS}, got {self.max_seats}"
            )

        if self.min_seats > self.max_seats:
            raise ValueError(
                f"min_seats ({self.min_seats}) cannot exceed max_seats ({self.max_seats})"
            )

        if self.max_name_length <= 0 or self.max_room_name_length <= 0:
            raise ValueError("name length limits must be positive")

        return True

    def __str__(self) -> str:
        """String representation of config."""
        lines = ["Room Configuration:"]
        lines.append(f"  Auto-advance: next hand {self.next_hand_delay}s, trick pause {self.trick_pause_delay}s")
        lines.append(f"  Bots: bid {self.bot_bid_delay}s, trump {self.bot_trump_delay}s, play {self.bot_play_delay}s")
        lines.append(f"  Reconnect grace: {self.reconnect_grace}s")
        lines.append(f"  Seats: {self.min_seats}-{self.max_seats}")
        return "\n".join(lines)


def get_fast_config() -> RoomConfig:
    """
    Get a zero-delay config for simulations and tests.

    Returns:
        RoomConfig whose timers all fire immediately
    """
    return RoomConfig(
        next_hand_delay=0.0,
        trick_pause_delay=0.0,
        bot_bid_delay=0.0,
        bot_trump_delay=0.0,
        bot_play_delay=0.0,
    )


def get_production_config() -> RoomConfig:
    """
    Get the default live-play config.

    Returns:
        RoomConfig with human-friendly delays
    """
    return RoomConfig()  # Uses defaults
