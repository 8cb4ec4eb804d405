"""Streamlit front end for GeoNotes."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pydeck as pdk
import streamlit as st

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from geonotes.common.config import AppConfig, configure_logging, default_config, load_config
from geonotes.common.geo import LocationGrouper
from geonotes.common.models import Note
from geonotes.mapping.controller import NoteMapController
from geonotes.mapping.surface import DeckMapSurface
from geonotes.mapping.viewport import ViewportFitter
from geonotes.services.auth import AuthController, AuthService
from geonotes.services.notes import NoteController
from geonotes.store.note_store import NoteStore
from geonotes.store.user_store import UserStore

logger = logging.getLogger(__name__)

MARKER_LAYER_ID = "note-markers"


def load_app_config() -> AppConfig:
    config_path = Path(os.environ.get("GEONOTES_CONFIG", "config/local.yaml"))
    if not config_path.exists():
        return default_config()
    return load_config(config_path)


def init_services(config: AppConfig) -> None:
    if "auth" in st.session_state:
        return
    base_path = config.storage.base_path
    logger.info("Starting session with storage at %s", base_path or "<memory>")
    auth_service = AuthService(UserStore(base_path), min_password_length=config.auth.min_password_length)
    st.session_state["auth"] = AuthController(auth_service)
    st.session_state["notes"] = NoteController(NoteStore(base_path), auth_service)
    st.session_state["map"] = None
    st.session_state["map_user"] = None


def map_controller(config: AppConfig, notes: NoteController) -> NoteMapController:
    """One map controller per signed-in user, fed by the live note feed."""

    user_id = notes.current_user_id
    controller: Optional[NoteMapController] = st.session_state.get("map")
    if controller is not None and st.session_state.get("map_user") == user_id:
        return controller

    unsubscribe = st.session_state.get("map_unsubscribe")
    if unsubscribe is not None:
        unsubscribe()

    surface = DeckMapSurface(
        width_px=config.map.width_px,
        height_px=config.map.height_px,
        max_zoom=config.map.max_zoom,
        map_style=config.map.map_style,
    )
    controller = NoteMapController(
        surface,
        grouper=LocationGrouper(grid_size=config.map.grid_size, precision=config.map.key_precision),
        fitter=ViewportFitter(
            padding_px=config.map.fit_padding_px,
            min_delta_degrees=config.map.fit_min_delta_degrees,
        ),
    )
    controller.add_note_listener(open_note)
    controller.add_cluster_listener(open_cluster)
    st.session_state["map_unsubscribe"] = notes.subscribe(controller.on_notes)
    st.session_state["map"] = controller
    st.session_state["map_user"] = user_id
    return controller


def open_note(note: Note) -> None:
    st.session_state["editing_note_id"] = note.note_id
    st.session_state["cluster_note_ids"] = []


def open_cluster(notes: Sequence[Note]) -> None:
    st.session_state["cluster_note_ids"] = [note.note_id for note in notes]


def rerun() -> None:
    rerun_fn = getattr(st, "rerun", None) or getattr(st, "experimental_rerun", None)
    if rerun_fn:
        rerun_fn()


def login_page(auth: AuthController) -> None:
    st.title("GeoNotes")
    is_login = st.radio("Mode", options=["Login", "Register"], horizontal=True) == "Login"
    with st.form("auth-form"):
        full_name = "" if is_login else st.text_input("Full name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login" if is_login else "Register")
    if not submitted:
        return
    if not is_login and not full_name.strip():
        st.error("Full name is required.")
        return
    if is_login:
        error = auth.sign_in(email=email, password=password)
    else:
        error = auth.sign_up(email=email, password=password, full_name=full_name)
    if error:
        st.error(error)
        return
    rerun()


def note_editor(notes: NoteController, existing: Optional[Note]) -> None:
    heading = "Edit note" if existing else "New note"
    st.subheader(heading)
    has_location = existing is not None and existing.position is not None
    attach = st.checkbox("Attach location", value=has_location, key=f"attach-{existing.note_id if existing else 'new'}")
    with st.form(f"editor-{existing.note_id if existing else 'new'}", clear_on_submit=existing is None):
        title = st.text_input("Title", value=existing.title if existing else "")
        content = st.text_area("Content", value=existing.content if existing else "", height=160)
        latitude: Optional[float] = None
        longitude: Optional[float] = None
        if attach:
            col_lat, col_lng = st.columns(2)
            latitude = col_lat.number_input(
                "Latitude",
                min_value=-90.0,
                max_value=90.0,
                value=float(existing.latitude) if has_location else 0.0,
                format="%.6f",
            )
            longitude = col_lng.number_input(
                "Longitude",
                min_value=-180.0,
                max_value=180.0,
                value=float(existing.longitude) if has_location else 0.0,
                format="%.6f",
            )
        saved = st.form_submit_button("Save")
    if not saved:
        return

    if existing is None:
        errors = notes.create_note(title=title, content=content, latitude=latitude, longitude=longitude)
    else:
        errors = notes.update_note(
            existing,
            title=title,
            content=content,
            latitude=latitude,
            longitude=longitude,
            clear_location=not attach,
        )
    if errors:
        for error in errors:
            st.error(error)
        return
    st.session_state["editing_note_id"] = None
    rerun()


def note_list(notes: NoteController, items: List[Note]) -> None:
    if not items:
        st.info("No notes yet. Create one from the sidebar.")
        return
    for note in items:
        with st.container(border=True):
            st.markdown(f"**{note.display_title}**")
            st.caption(f"Updated {note.updated_at:%Y-%m-%d %H:%M}")
            st.write(note.preview())
            col_edit, col_delete = st.columns(2)
            if col_edit.button("Edit", key=f"edit-{note.note_id}"):
                open_note(note)
                rerun()
            if col_delete.button("Delete", key=f"delete-{note.note_id}"):
                error = notes.delete_note(note)
                if error:
                    st.error(error)
                else:
                    rerun()


def cluster_picker(controller: NoteMapController, items: List[Note]) -> None:
    note_ids = st.session_state.get("cluster_note_ids") or []
    if not note_ids:
        return
    by_id = {note.note_id: note for note in items}
    cluster_notes = [by_id[note_id] for note_id in note_ids if note_id in by_id]
    st.subheader(f"{len(cluster_notes)} Notes at this Location")
    for note in cluster_notes:
        if st.button(f"{note.display_title}: {note.preview()}", key=f"cluster-{note.note_id}"):
            controller.select_from_cluster(note)
            rerun()
    if st.button("Close", key="cluster-close"):
        st.session_state["cluster_note_ids"] = []
        rerun()


def note_map(config: AppConfig, controller: NoteMapController, items: List[Note]) -> None:
    if controller.is_empty:
        st.info("No notes with location data")
        return

    surface = controller.surface
    col_recenter, col_zoom = st.columns([1, 3])
    if col_recenter.button("Recenter"):
        controller.recenter()
        st.session_state.pop("map_zoom", None)

    if surface.view_state is None:
        controller.recenter()
    view_state = surface.view_state
    zoom = col_zoom.slider(
        "Zoom",
        min_value=0.0,
        max_value=float(config.map.max_zoom),
        value=float(st.session_state.get("map_zoom", view_state.zoom)),
        step=0.5,
    )
    if zoom != view_state.zoom:
        st.session_state["map_zoom"] = zoom
        view_state = pdk.ViewState(latitude=view_state.latitude, longitude=view_state.longitude, zoom=zoom)
        controller.on_viewport_changed(surface.visible_region(view_state))

    deck = surface.build_deck(controller.markers.values(), view_state)
    event = st.pydeck_chart(
        deck,
        height=config.map.height_px,
        on_select="rerun",
        selection_mode="single-object",
        key="note-map",
    )
    selected = (event.selection.get("objects") or {}).get(MARKER_LAYER_ID) if event else None
    if selected:
        marker_id = selected[0].get("marker_id")
        if marker_id and st.session_state.get("last_tapped") != marker_id:
            st.session_state["last_tapped"] = marker_id
            controller.tap(marker_id)
    else:
        st.session_state.pop("last_tapped", None)

    with st.expander("Markers"):
        st.dataframe(
            surface.markers_frame(controller.markers.values())[["kind", "title", "latitude", "longitude", "count"]],
            use_container_width=True,
        )
    cluster_picker(controller, items)


def home_page(config: AppConfig, auth: AuthController, notes: NoteController) -> None:
    full_name = auth.get_user_full_name() or "there"
    st.title(f"Welcome, {full_name}")
    if st.sidebar.button("Sign out"):
        error = auth.sign_out()
        if error:
            st.sidebar.error(error)
        else:
            for key in ("editing_note_id", "cluster_note_ids", "last_tapped", "map_zoom"):
                st.session_state.pop(key, None)
            rerun()
    if st.sidebar.button("New note"):
        st.session_state["editing_note_id"] = ""

    controller = map_controller(config, notes)
    items = notes.notes()

    editing_id = st.session_state.get("editing_note_id")
    if editing_id is not None:
        existing = next((note for note in items if note.note_id == editing_id), None)
        note_editor(notes, existing)
        if st.button("Back"):
            st.session_state["editing_note_id"] = None
            rerun()
        return

    view = st.radio("View", options=["List", "Map"], horizontal=True, key="home_view")
    if view == "List":
        note_list(notes, items)
    else:
        note_map(config, controller, items)


def main() -> None:
    config = load_app_config()
    configure_logging(config.logging.level)
    st.set_page_config(page_title=config.dashboard.page_title, layout="wide")
    init_services(config)

    auth: AuthController = st.session_state["auth"]
    notes: NoteController = st.session_state["notes"]
    if auth.current_user is None:
        login_page(auth)
        return
    home_page(config, auth, notes)


if __name__ == "__main__":
    main()
