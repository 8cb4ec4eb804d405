"""Turn location buckets into map markers."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from geonotes.common.models import ClusterMarker, MarkerSet, Note, SingleMarker

SINGLE_SNIPPET = "Tap to view details"
CLUSTER_SNIPPET = "Tap to view all notes at this location"

NoteTapHandler = Callable[[Note], Any]
ClusterTapHandler = Callable[[Sequence[Note]], Any]


class MarkerBuilder:
    """Builds one marker per bucket.

    A bucket holding one note becomes a ``SingleMarker`` keyed by the note id.
    A bucket holding several becomes a ``ClusterMarker`` keyed by the location
    key and placed on the first note of the bucket, not on a centroid.
    """

    def build(
        self,
        buckets: Mapping[str, Sequence[Note]],
        on_note_tap: NoteTapHandler,
        on_cluster_tap: ClusterTapHandler,
    ) -> MarkerSet:
        markers: MarkerSet = {}
        for location_key, notes in buckets.items():
            if not notes:
                continue
            first = notes[0]
            position = first.position
            if position is None:
                continue
            if len(notes) == 1:
                marker = SingleMarker(
                    marker_id=first.note_id,
                    position=position,
                    title=first.display_title,
                    snippet=SINGLE_SNIPPET,
                    note=first,
                    on_tap=on_note_tap,
                )
            else:
                marker = ClusterMarker(
                    marker_id=location_key,
                    position=position,
                    title=f"{len(notes)} Notes",
                    snippet=CLUSTER_SNIPPET,
                    notes=tuple(notes),
                    on_tap=on_cluster_tap,
                )
            markers[marker.marker_id] = marker
        return markers
