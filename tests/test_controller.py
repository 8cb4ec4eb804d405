from conftest import RecordingSurface, make_note

from geonotes.common.models import BoundingBox, LatLng
from geonotes.mapping.controller import NoteMapController
from geonotes.mapping.surface import DeckMapSurface
from geonotes.mapping.viewport import compute_bounds


def test_end_to_end_precision_pass(surface):
    controller = NoteMapController(surface)
    notes = [make_note("a", 1.000000, 1.000000), make_note("b", 1.000000, 1.000000), make_note("c", 5, 5)]

    markers = controller.on_notes(notes)

    assert len(markers) == 2
    cluster = markers["1.000000,1.000000"]
    assert cluster.kind == "cluster"
    assert cluster.count == 2
    assert cluster.position == LatLng(1, 1)
    assert markers["c"].kind == "single"
    assert markers["c"].position == LatLng(5, 5)
    expected = BoundingBox(southwest=LatLng(1, 1), northeast=LatLng(5, 5))
    assert compute_bounds(markers.values()) == expected
    assert surface.requests == [(expected, 50)]


def test_first_mount_fits_once(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 1, 1), make_note("b", 2, 2)])
    controller.on_notes([make_note("a", 1, 1), make_note("b", 2, 2), make_note("c", 9, 9)])

    assert len(surface.requests) == 1


def test_no_fit_until_markers_exist(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a")])
    assert controller.is_empty
    assert surface.requests == []

    controller.on_notes([make_note("a", 3, 3)])
    assert not controller.is_empty
    assert len(surface.requests) == 1


def test_viewport_change_regroups_without_fitting(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 1, 1), make_note("b", 1.5, 1.5), make_note("c", 9, 9)])
    assert len(controller.markers) == 3

    markers = controller.on_viewport_changed(BoundingBox(southwest=LatLng(0, 0), northeast=LatLng(10, 10)))

    assert set(markers) == {"1,1", "c"}
    assert markers["1,1"].count == 2
    assert controller.viewport is not None
    assert len(surface.requests) == 1


def test_recenter_always_fits(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 1, 1)])
    controller.recenter()
    controller.recenter()

    assert len(surface.requests) == 3


def test_recenter_without_markers_does_nothing(surface):
    controller = NoteMapController(surface)
    assert controller.recenter() is None
    assert surface.requests == []


def test_taps_reach_listeners(surface):
    controller = NoteMapController(surface)
    selected, clusters = [], []
    controller.add_note_listener(selected.append)
    controller.add_cluster_listener(clusters.append)
    first, second, solo = make_note("a", 1, 1), make_note("b", 1, 1), make_note("c", 5, 5)
    controller.on_notes([first, second, solo])

    controller.tap("c")
    controller.tap("1.000000,1.000000")
    controller.select_from_cluster(clusters[0][1])
    controller.tap("missing")

    assert selected == [solo, second]
    assert [list(group) for group in clusters] == [[first, second]]


def test_markers_returning_after_empty_map_are_framed_again(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 1, 1)])
    controller.on_notes([])
    assert controller.is_empty

    controller.on_notes([make_note("b", 40, 40)])

    assert [bounds.southwest for bounds, _ in surface.requests] == [LatLng(1, 1), LatLng(40, 40)]


def test_reframing_same_bounds_is_skipped(surface):
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 1, 1)])
    controller.on_notes([])
    controller.on_notes([make_note("a", 1, 1)])

    assert len(surface.requests) == 1


def test_fit_reports_camera_as_viewport():
    surface = RecordingSurface(reports_camera=True)
    controller = NoteMapController(surface)

    markers = controller.on_notes([make_note("a", 1, 1), make_note("b", 1, 1), make_note("c", 5, 5)])

    fitted = BoundingBox(southwest=LatLng(1, 1), northeast=LatLng(5, 5))
    assert controller.viewport == fitted
    assert set(markers) == {"0,0", "c"}
    assert markers["0,0"].count == 2
    assert len(surface.requests) == 1


def test_recenter_regroups_for_fitted_camera():
    surface = DeckMapSurface(width_px=800, height_px=500)
    controller = NoteMapController(surface)
    controller.on_notes([make_note("a", 10, 10), make_note("b", 10.6, 10.6), make_note("c", 12, 12)])
    controller.on_viewport_changed(BoundingBox(southwest=LatLng(-80, -170), northeast=LatLng(80, 170)))
    assert len(controller.markers) == 1

    controller.recenter()

    assert controller.viewport == surface.visible_region(surface.view_state)
    assert len(controller.markers) == 3
    assert surface.fit_count == 2
