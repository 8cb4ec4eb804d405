"""Event handler tying grouping, marker building and camera fitting together."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from geonotes.common.geo import LocationGrouper
from geonotes.common.models import BoundingBox, MarkerSet, Note
from geonotes.mapping.markers import MarkerBuilder
from geonotes.mapping.viewport import FitRequest, MapSurface, ViewportFitter

logger = logging.getLogger(__name__)


class NoteMapController:
    """Holds the current notes, viewport and markers, and recomputes on events.

    Every inbound event runs a full grouping pass; markers are never patched.
    Camera fits happen when markers appear after an empty map and on
    ``recenter``. A fit reports the fitted camera back as a viewport change,
    and viewport changes never fit the camera themselves.
    """

    def __init__(
        self,
        surface: MapSurface,
        grouper: Optional[LocationGrouper] = None,
        builder: Optional[MarkerBuilder] = None,
        fitter: Optional[ViewportFitter] = None,
    ) -> None:
        self.surface = surface
        self.grouper = grouper or LocationGrouper()
        self.builder = builder or MarkerBuilder()
        self.fitter = fitter or ViewportFitter()
        self.notes: List[Note] = []
        self.viewport: Optional[BoundingBox] = None
        self.markers: MarkerSet = {}
        self._framed = False
        self._note_listeners: List[Callable[[Note], None]] = []
        self._cluster_listeners: List[Callable[[Sequence[Note]], None]] = []

    @property
    def is_empty(self) -> bool:
        return not self.markers

    def add_note_listener(self, callback: Callable[[Note], None]) -> None:
        self._note_listeners.append(callback)

    def add_cluster_listener(self, callback: Callable[[Sequence[Note]], None]) -> None:
        self._cluster_listeners.append(callback)

    def on_notes(self, notes: Sequence[Note]) -> MarkerSet:
        self.notes = list(notes)
        self._rebuild()
        if not self.markers:
            # no markers, no map; the next markers get framed again
            self._framed = False
        elif not self._framed:
            self._framed = True
            self._fit(force=False)
        return self.markers

    def on_viewport_changed(self, bounds: BoundingBox) -> MarkerSet:
        self.viewport = bounds
        return self._rebuild()

    def recenter(self) -> Optional[FitRequest]:
        return self._fit(force=True)

    def tap(self, marker_id: str) -> None:
        marker = self.markers.get(marker_id)
        if marker is None:
            logger.debug("Ignoring tap on unknown marker %s", marker_id)
            return
        marker.tap()

    def select_from_cluster(self, note: Note) -> None:
        self._emit_note(note)

    def _fit(self, force: bool) -> Optional[FitRequest]:
        request = self.fitter.fit(self.markers.values(), self.surface, force=force)
        if request is not None:
            region = self.surface.camera_bounds()
            if region is not None:
                self.on_viewport_changed(region)
        return request

    def _rebuild(self) -> MarkerSet:
        buckets = self.grouper.group(self.notes, self.viewport)
        self.markers = self.builder.build(buckets, self._emit_note, self._emit_cluster)
        logger.debug(
            "Grouped %d notes into %d markers (viewport=%s)",
            len(self.notes),
            len(self.markers),
            self.viewport,
        )
        return self.markers

    def _emit_note(self, note: Note) -> None:
        for callback in list(self._note_listeners):
            callback(note)

    def _emit_cluster(self, notes: Sequence[Note]) -> None:
        for callback in list(self._cluster_listeners):
            callback(notes)
