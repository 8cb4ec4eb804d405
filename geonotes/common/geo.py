"""Geospatial helpers for grouping notes into location buckets."""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

from .models import BoundingBox, LatLng, Note

DEFAULT_GRID_SIZE = 10
DEFAULT_PRECISION = 6  # ~0.11 m at the equator


class LocationGrouper:
    """Maps located notes onto deterministic location keys.

    Without a viewport the key is the coordinate pair rounded to a fixed number
    of decimals, which groups notes saved at the same spot. Once the map reports
    a viewport, the box is split into a ``grid_size`` x ``grid_size`` grid and
    the key is the ``row,col`` cell a note falls into, so grouping gets coarser
    as the user zooms out.
    """

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE, precision: int = DEFAULT_PRECISION) -> None:
        self.grid_size = max(int(grid_size), 1)
        self.precision = max(int(precision), 0)

    def location_key(self, position: LatLng, viewport: Optional[BoundingBox] = None) -> str:
        if viewport is None:
            return f"{self._fixed(position.latitude)},{self._fixed(position.longitude)}"

        lat_span = viewport.lat_span
        lng_span = viewport.lng_span
        if lat_span == 0 or lng_span == 0:
            return "0,0"

        row = self._cell(position.latitude - viewport.southwest.latitude, lat_span)
        col = self._cell(position.longitude - viewport.southwest.longitude, lng_span)
        return f"{row},{col}"

    def group(self, notes: Iterable[Note], viewport: Optional[BoundingBox] = None) -> Dict[str, List[Note]]:
        buckets: Dict[str, List[Note]] = {}
        for note in notes:
            position = note.position
            if position is None:
                continue
            key = self.location_key(position, viewport)
            buckets.setdefault(key, []).append(note)
        return buckets

    def _fixed(self, value: float) -> str:
        # keys never carry a negative zero
        return f"{round(value, self.precision) + 0.0:.{self.precision}f}"

    def _cell(self, offset: float, span: float) -> int:
        scaled = offset / span * self.grid_size
        if math.isnan(scaled):
            return 0
        if math.isinf(scaled):
            return self.grid_size - 1 if scaled > 0 else 0
        return min(max(math.floor(scaled), 0), self.grid_size - 1)
