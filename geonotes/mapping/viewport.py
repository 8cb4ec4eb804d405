"""Frame the map camera around the current marker set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from geonotes.common.models import BoundingBox, LatLng, Marker

logger = logging.getLogger(__name__)

DEFAULT_PADDING_PX = 50
DEFAULT_MIN_DELTA_DEGREES = 1e-6


class MapSurface(Protocol):
    """The map-rendering side of a camera fit."""

    def request_camera_fit(self, bounds: BoundingBox, padding_px: int) -> None: ...

    def camera_bounds(self) -> Optional[BoundingBox]:
        """Region the camera shows after the last fit, ``None`` if unknown."""
        ...


@dataclass(frozen=True)
class FitRequest:
    bounds: BoundingBox
    padding_px: int


def compute_bounds(markers: Iterable[Marker]) -> Optional[BoundingBox]:
    """Smallest box covering every marker position, or ``None`` for no markers."""

    bounds: Optional[BoundingBox] = None
    for marker in markers:
        position = marker.position
        if bounds is None:
            bounds = BoundingBox.around(position)
            continue
        bounds = BoundingBox(
            southwest=LatLng(
                latitude=min(bounds.southwest.latitude, position.latitude),
                longitude=min(bounds.southwest.longitude, position.longitude),
            ),
            northeast=LatLng(
                latitude=max(bounds.northeast.latitude, position.latitude),
                longitude=max(bounds.northeast.longitude, position.longitude),
            ),
        )
    return bounds


def fit_camera(
    bounds: Optional[BoundingBox],
    padding_px: int,
    surface: MapSurface,
) -> Optional[FitRequest]:
    if bounds is None:
        return None
    surface.request_camera_fit(bounds, padding_px)
    return FitRequest(bounds=bounds, padding_px=padding_px)


class ViewportFitter:
    """Issues camera fits, dropping ones that would not move the camera.

    A fit moves the camera, the move reports a new viewport, and the new
    viewport regroups the markers. Remembering the last requested box and
    skipping requests within ``min_delta_degrees`` of it on every edge stops
    that loop from re-fitting forever.
    """

    def __init__(
        self,
        padding_px: int = DEFAULT_PADDING_PX,
        min_delta_degrees: float = DEFAULT_MIN_DELTA_DEGREES,
    ) -> None:
        self.padding_px = int(padding_px)
        self.min_delta_degrees = abs(float(min_delta_degrees))
        self.last_request: Optional[FitRequest] = None

    def fit(self, markers: Iterable[Marker], surface: MapSurface, force: bool = False) -> Optional[FitRequest]:
        bounds = compute_bounds(markers)
        if bounds is None:
            return None
        if not force and self.last_request is not None and self._close_to(self.last_request.bounds, bounds):
            logger.debug("Skipping camera fit, bounds unchanged: %s", bounds)
            return None
        request = fit_camera(bounds, self.padding_px, surface)
        self.last_request = request
        logger.debug("Requested camera fit to %s with %spx padding", bounds, self.padding_px)
        return request

    def reset(self) -> None:
        self.last_request = None

    def _close_to(self, previous: BoundingBox, current: BoundingBox) -> bool:
        deltas = (
            previous.southwest.latitude - current.southwest.latitude,
            previous.southwest.longitude - current.southwest.longitude,
            previous.northeast.latitude - current.northeast.latitude,
            previous.northeast.longitude - current.northeast.longitude,
        )
        return all(abs(delta) <= self.min_delta_degrees for delta in deltas)
