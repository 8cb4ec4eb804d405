from conftest import make_note

from geonotes.common.geo import LocationGrouper
from geonotes.common.models import CLUSTER_STYLE, DEFAULT_STYLE, ClusterMarker, LatLng, SingleMarker
from geonotes.mapping.markers import CLUSTER_SNIPPET, SINGLE_SNIPPET, MarkerBuilder


def _build(buckets):
    tapped = []
    markers = MarkerBuilder().build(
        buckets,
        on_note_tap=lambda note: tapped.append(("note", note.note_id)),
        on_cluster_tap=lambda notes: tapped.append(("cluster", [n.note_id for n in notes])),
    )
    return markers, tapped


def test_single_and_cluster_markers():
    buckets = {
        "1.000000,1.000000": [make_note("a", 1, 1, title="First"), make_note("b", 1, 1)],
        "5.000000,5.000000": [make_note("c", 5, 5, title="Solo")],
    }
    markers, _ = _build(buckets)

    assert set(markers) == {"1.000000,1.000000", "c"}
    cluster = markers["1.000000,1.000000"]
    single = markers["c"]
    assert isinstance(cluster, ClusterMarker)
    assert cluster.title == "2 Notes"
    assert cluster.snippet == CLUSTER_SNIPPET
    assert cluster.position == LatLng(1, 1)
    assert cluster.style == CLUSTER_STYLE
    assert isinstance(single, SingleMarker)
    assert single.title == "Solo"
    assert single.snippet == SINGLE_SNIPPET
    assert single.style == DEFAULT_STYLE
    assert cluster.style.hue != single.style.hue


def test_cluster_sits_on_first_note_not_centroid():
    buckets = {"3,3": [make_note("a", 3.1, 3.2), make_note("b", 3.9, 3.8), make_note("c", 3.5, 3.5)]}
    markers, _ = _build(buckets)

    assert markers["3,3"].position == LatLng(3.1, 3.2)
    assert markers["3,3"].count == 3


def test_untitled_fallback():
    markers, _ = _build({"k": [make_note("a", 1, 1, title="")]})
    assert markers["a"].title == "Untitled"


def test_taps_route_to_handlers():
    buckets = {"k1": [make_note("a", 1, 1)], "k2": [make_note("b", 2, 2), make_note("c", 2, 2)]}
    markers, tapped = _build(buckets)

    markers["a"].tap()
    markers["k2"].tap()

    assert tapped == [("note", "a"), ("cluster", ["b", "c"])]


def test_empty_inputs_and_empty_buckets():
    assert _build({})[0] == {}
    markers, _ = _build({"empty": [], "k": [make_note("a", 1, 1)]})
    assert list(markers) == ["a"]


def test_marker_count_matches_distinct_keys():
    notes = [make_note(str(i), i % 4, i % 4) for i in range(10)] + [make_note("x", 40, 40)]
    buckets = LocationGrouper().group(notes)
    markers, _ = _build(buckets)

    singles = [m for m in markers.values() if m.kind == "single"]
    clusters = [m for m in markers.values() if m.kind == "cluster"]
    assert len(singles) + len(clusters) == len(buckets)
    assert len(singles) == 1
    assert sum(m.count for m in clusters) == 10
