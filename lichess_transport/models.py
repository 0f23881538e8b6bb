"""Value types passed through request building and stream decoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Color(Enum):
    """Side requested when creating a game."""

    WHITE = "white"
    BLACK = "black"
    RANDOM = "random"


@dataclass(frozen=True, slots=True)
class ClockSettings:
    """Time control for a new game.

    A real-time clock uses ``limit`` (seconds) and ``increment`` (seconds per
    move); a correspondence game sets ``days`` per move instead.
    """

    limit: int | None = None
    increment: int = 0
    days: int | None = None

    def __post_init__(self) -> None:
        if self.days is None and self.limit is None:
            raise ValueError("ClockSettings needs either a limit or days")
        if self.days is not None and self.limit is not None:
            raise ValueError("ClockSettings cannot set both limit and days")

    @property
    def is_correspondence(self) -> bool:
        return self.days is not None


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """One record from an event or board stream."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any) -> StreamEvent:
        """Build an event from a parsed NDJSON record."""
        if not isinstance(data, dict):
            raise TypeError(f"Stream record must be an object, got {type(data).__name__}")
        event_type = data.get("type")
        if not isinstance(event_type, str):
            raise ValueError("Stream record has no string 'type' field")
        return cls(type=event_type, payload=data)
