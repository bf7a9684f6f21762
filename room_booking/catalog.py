from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml


class BookingStorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    capacity_min: int
    capacity_max: int
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.room_id.strip():
            raise ValueError("room_id must not be empty")
        if self.capacity_min < 1:
            raise ValueError("capacity_min must be at least 1")
        if self.capacity_min > self.capacity_max:
            raise ValueError("capacity_min must not exceed capacity_max")

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "capacity_min": self.capacity_min,
            "capacity_max": self.capacity_max,
            "tags": list(self.tags),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Room":
        return Room(
            room_id=str(data["room_id"]),
            name=str(data["name"]),
            capacity_min=int(data["capacity_min"]),
            capacity_max=int(data["capacity_max"]),
            tags=tuple(str(tag) for tag in data.get("tags") or ()),
        )


DEFAULT_ROOMS: tuple[Room, ...] = (
    Room("room-1", "Focus Pod", 1, 2, ("Small", "Quiet")),
    Room("room-2", "Duo Room", 2, 3, ("Small",)),
    Room("room-3", "Collaboration Suite", 4, 6, ("Medium", "Whiteboard")),
    Room("room-4", "Strategy Room", 5, 8, ("Medium", "Screen")),
    Room("room-5", "Boardroom", 8, 12, ("Large", "AV System")),
    Room("room-6", "Town Hall", 10, 20, ("Large", "Stage")),
)

# Label -> inclusive people range, as offered by the guided room picker.
PEOPLE_FILTERS: dict[str, tuple[int, int]] = {
    "1-2": (1, 2),
    "3-4": (3, 4),
    "5-8": (5, 8),
    "9+": (9, 100),
}


def load_rooms(path: str | Path) -> tuple[Room, ...]:
    """Load a room catalog from a YAML list of room mappings."""
    catalog_path = Path(path)
    try:
        payload = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
        raise BookingStorageError(f"Failed to read room catalog: {catalog_path}") from error

    if not isinstance(payload, list):
        raise BookingStorageError(f"Room catalog must be a YAML list: {catalog_path}")

    rooms: list[Room] = []
    for index, row in enumerate(payload):
        if not isinstance(row, dict):
            raise BookingStorageError(f"Room catalog row {index} is not a mapping")
        try:
            rooms.append(Room.from_dict(row))
        except (KeyError, TypeError, ValueError) as error:
            raise BookingStorageError(f"Room catalog row {index} is invalid: {error}") from error

    _ensure_unique_ids(rooms)
    return tuple(rooms)


def dump_rooms(rooms: Iterable[Room], path: str | Path) -> None:
    catalog_path = Path(path)
    try:
        catalog_path.write_text(
            yaml.safe_dump([room.to_dict() for room in rooms], allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
    except OSError as error:
        raise BookingStorageError(f"Failed to write room catalog: {catalog_path}") from error


def filter_rooms_by_people(rooms: Iterable[Room], people_min: int, people_max: int) -> list[Room]:
    """Rooms whose capacity range intersects ``[people_min, people_max]``."""
    return [room for room in rooms if room.capacity_max >= people_min and room.capacity_min <= people_max]


def rooms_for_party(rooms: Iterable[Room], people_count: int) -> list[Room]:
    """Rooms that fit ``people_count`` without being far too large for them."""
    return [room for room in rooms if room.capacity_max >= people_count and room.capacity_min <= people_count + 2]


def _ensure_unique_ids(rooms: Iterable[Room]) -> None:
    seen: set[str] = set()
    for room in rooms:
        if room.room_id in seen:
            raise BookingStorageError(f"Duplicate room_id in catalog: {room.room_id}")
        seen.add(room.room_id)
