"""pydeck map surface: camera fits, visible regions and marker layers."""

from __future__ import annotations

import math
from typing import Iterable, List, Optional

import pandas as pd
import pydeck as pdk

from geonotes.common.models import BoundingBox, LatLng, Marker

TILE_SIZE = 512  # deck.gl world size at zoom 0
MAX_MERCATOR_LAT = 85.05112878
SINGLE_RADIUS_PX = 8
CLUSTER_RADIUS_PX = 14

MARKER_COLUMNS = ["marker_id", "kind", "title", "snippet", "latitude", "longitude", "count", "color", "radius"]


def _project(position: LatLng) -> tuple[float, float]:
    """Web Mercator position normalised to [0, 1] on both axes."""

    lat = min(max(position.latitude, -MAX_MERCATOR_LAT), MAX_MERCATOR_LAT)
    x = (position.longitude + 180.0) / 360.0
    y = (1.0 - math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)) / math.pi) / 2.0
    return x, y


def _unproject(x: float, y: float) -> LatLng:
    longitude = x * 360.0 - 180.0
    latitude = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y))))
    return LatLng(latitude=latitude, longitude=longitude)


class DeckMapSurface:
    """Map surface rendered by pydeck.

    ``request_camera_fit`` turns a bounding box into the zoom level that fits it
    inside the padded canvas and keeps the result as ``view_state``, which the
    hosting view hands to ``build_deck``.
    """

    def __init__(
        self,
        width_px: int = 800,
        height_px: int = 500,
        max_zoom: float = 18.0,
        map_style: Optional[str] = None,
    ) -> None:
        self.width_px = max(int(width_px), 1)
        self.height_px = max(int(height_px), 1)
        self.max_zoom = float(max_zoom)
        self.map_style = map_style or "light"
        self.view_state: Optional[pdk.ViewState] = None
        self.fit_count = 0

    def request_camera_fit(self, bounds: BoundingBox, padding_px: int) -> None:
        center = bounds.center
        self.view_state = pdk.ViewState(
            latitude=center.latitude,
            longitude=center.longitude,
            zoom=self.zoom_for_bounds(bounds, padding_px),
            pitch=0,
            bearing=0,
        )
        self.fit_count += 1

    def zoom_for_bounds(self, bounds: BoundingBox, padding_px: int) -> float:
        sw_x, sw_y = _project(bounds.southwest)
        ne_x, ne_y = _project(bounds.northeast)
        dx = abs(ne_x - sw_x) * TILE_SIZE
        dy = abs(sw_y - ne_y) * TILE_SIZE
        usable_w = max(self.width_px - 2 * padding_px, 1)
        usable_h = max(self.height_px - 2 * padding_px, 1)

        scales = []
        if dx > 0:
            scales.append(usable_w / dx)
        if dy > 0:
            scales.append(usable_h / dy)
        if not scales:
            return self.max_zoom
        return max(min(math.log2(min(scales)), self.max_zoom), 0.0)

    def camera_bounds(self) -> Optional[BoundingBox]:
        if self.view_state is None:
            return None
        return self.visible_region(self.view_state)

    def visible_region(self, view_state: pdk.ViewState) -> BoundingBox:
        """Bounding box shown by ``view_state`` on a canvas of this size."""

        world = TILE_SIZE * 2 ** float(view_state.zoom)
        cx, cy = _project(LatLng(latitude=view_state.latitude, longitude=view_state.longitude))
        half_w = self.width_px / 2 / world
        half_h = self.height_px / 2 / world
        top = max(cy - half_h, 0.0)
        bottom = min(cy + half_h, 1.0)
        southwest = _unproject(cx - half_w, bottom)
        northeast = _unproject(cx + half_w, top)
        return BoundingBox(southwest=southwest, northeast=northeast)

    def markers_frame(self, markers: Iterable[Marker]) -> pd.DataFrame:
        rows: List[dict] = []
        for marker in markers:
            is_cluster = marker.kind == "cluster"
            rows.append(
                {
                    "marker_id": marker.marker_id,
                    "kind": marker.kind,
                    "title": marker.title,
                    "snippet": marker.snippet,
                    "latitude": marker.position.latitude,
                    "longitude": marker.position.longitude,
                    "count": marker.count if is_cluster else 1,
                    "color": list(marker.style.rgba),
                    "radius": CLUSTER_RADIUS_PX if is_cluster else SINGLE_RADIUS_PX,
                }
            )
        return pd.DataFrame(rows, columns=MARKER_COLUMNS)

    def build_deck(self, markers: Iterable[Marker], view_state: Optional[pdk.ViewState] = None) -> pdk.Deck:
        frame = self.markers_frame(markers)
        state = view_state or self.view_state or pdk.ViewState(latitude=0, longitude=0, zoom=1)
        layer = pdk.Layer(
            "ScatterplotLayer",
            id="note-markers",
            data=frame,
            get_position="[longitude, latitude]",
            get_fill_color="color",
            get_radius="radius",
            radius_units="pixels",
            stroked=True,
            get_line_color=[255, 255, 255],
            line_width_min_pixels=1,
            auto_highlight=True,
            pickable=True,
        )
        return pdk.Deck(
            map_style=self.map_style,
            initial_view_state=state,
            layers=[layer],
            tooltip={"text": "{title}\n{snippet}"},
        )
