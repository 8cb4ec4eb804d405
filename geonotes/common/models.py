"""Dataclasses shared between the stores, services and the map layer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace as _replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple, Union

UNTITLED = "Untitled"
PREVIEW_LENGTH = 50


@dataclass(frozen=True)
class LatLng:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    """A southwest/northeast corner pair describing a map region."""

    southwest: LatLng
    northeast: LatLng

    @property
    def lat_span(self) -> float:
        return self.northeast.latitude - self.southwest.latitude

    @property
    def lng_span(self) -> float:
        return self.northeast.longitude - self.southwest.longitude

    @property
    def center(self) -> LatLng:
        return LatLng(
            latitude=(self.southwest.latitude + self.northeast.latitude) / 2,
            longitude=(self.southwest.longitude + self.northeast.longitude) / 2,
        )

    @classmethod
    def around(cls, position: LatLng) -> "BoundingBox":
        return cls(southwest=position, northeast=position)


@dataclass(frozen=True)
class User:
    user_id: str
    email: str
    full_name: str
    created_at: datetime


@dataclass(frozen=True)
class Note:
    note_id: str
    title: str
    content: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def display_title(self) -> str:
        return self.title or UNTITLED

    @property
    def position(self) -> Optional[LatLng]:
        """Both coordinates or nothing; a half-located note counts as unlocated."""

        if _missing(self.latitude) or _missing(self.longitude):
            return None
        return LatLng(latitude=float(self.latitude), longitude=float(self.longitude))

    def preview(self, limit: int = PREVIEW_LENGTH) -> str:
        if len(self.content) > limit:
            return f"{self.content[:limit]}..."
        return self.content

    def replace(self, **changes: Any) -> "Note":
        return _replace(self, **changes)

    def to_record(self) -> Dict[str, Any]:
        return {
            "note_id": self.note_id,
            "title": self.title,
            "content": self.content,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    @classmethod
    def from_record(cls, note_id: str, record: Dict[str, Any]) -> "Note":
        return cls(
            note_id=note_id,
            title=record.get("title") or "",
            content=record.get("content") or "",
            user_id=record.get("user_id") or "",
            created_at=_as_datetime(record.get("created_at")),
            updated_at=_as_datetime(record.get("updated_at")),
            latitude=_as_coordinate(record.get("latitude")),
            longitude=_as_coordinate(record.get("longitude")),
        )


@dataclass(frozen=True)
class MarkerStyle:
    """Marker colouring, expressed as a hue in degrees like map SDK pins."""

    hue: float
    rgba: Tuple[int, int, int, int]


HUE_RED = 0.0
HUE_VIOLET = 270.0
DEFAULT_STYLE = MarkerStyle(hue=HUE_RED, rgba=(229, 57, 53, 220))
CLUSTER_STYLE = MarkerStyle(hue=HUE_VIOLET, rgba=(142, 36, 170, 230))


@dataclass(frozen=True)
class SingleMarker:
    """A marker standing for exactly one note; identity is the note id."""

    marker_id: str
    position: LatLng
    title: str
    snippet: str
    note: Note
    on_tap: Callable[[Note], Any] = field(compare=False, repr=False)
    style: MarkerStyle = DEFAULT_STYLE

    kind = "single"

    def tap(self) -> Any:
        return self.on_tap(self.note)


@dataclass(frozen=True)
class ClusterMarker:
    """A marker standing for several notes; identity is the bucket's location key."""

    marker_id: str
    position: LatLng
    title: str
    snippet: str
    notes: Tuple[Note, ...]
    on_tap: Callable[[Tuple[Note, ...]], Any] = field(compare=False, repr=False)
    style: MarkerStyle = CLUSTER_STYLE

    kind = "cluster"

    @property
    def count(self) -> int:
        return len(self.notes)

    def tap(self) -> Any:
        return self.on_tap(self.notes)


Marker = Union[SingleMarker, ClusterMarker]
MarkerSet = Dict[str, Marker]


def _missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _as_coordinate(value: Any) -> Optional[float]:
    if value is None:
        return None
    coordinate = float(value)
    return None if math.isnan(coordinate) else coordinate


def _as_datetime(value: Any) -> datetime:
    if value is None:
        return datetime.fromtimestamp(0)
    # pandas.Timestamp subclasses datetime, unwrap it first
    to_py = getattr(value, "to_pydatetime", None)
    if to_py is not None:
        return to_py()
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
