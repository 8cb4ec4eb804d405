"""Command line entry point: seed notes and inspect a clustering pass."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from geonotes.common.config import AppConfig, configure_logging, default_config, load_config
from geonotes.common.errors import AuthError
from geonotes.common.geo import LocationGrouper
from geonotes.mapping.controller import NoteMapController
from geonotes.mapping.surface import DeckMapSurface
from geonotes.mapping.viewport import ViewportFitter, compute_bounds
from geonotes.services.auth import AuthService
from geonotes.services.notes import NoteController
from geonotes.store.note_store import NoteStore
from geonotes.store.user_store import UserStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GeoNotes maintenance commands.")
    parser.add_argument("--config", default="config/local.yaml", help="Path to YAML config.")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Import notes from a JSON array for one account.")
    seed.add_argument("--email", required=True)
    seed.add_argument("--password", required=True)
    seed.add_argument("--full-name", default="")
    seed.add_argument("--file", required=True, help="JSON array of {title, content, latitude?, longitude?}.")

    markers = sub.add_parser("markers", help="Print the map markers for one account.")
    markers.add_argument("--email", required=True)
    markers.add_argument("--password", required=True)
    return parser


def _config(path: str) -> AppConfig:
    return load_config(path) if Path(path).exists() else default_config()


def _sign_in(auth: AuthService, email: str, password: str, full_name: Optional[str] = None) -> None:
    try:
        auth.sign_in(email, password)
    except AuthError as exc:
        if exc.code != "user-not-found" or full_name is None:
            raise
        auth.sign_up(email, password, full_name or email.split("@")[0])


def _coordinate(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def seed(config: AppConfig, args: argparse.Namespace) -> int:
    auth = AuthService(UserStore(config.storage.base_path), min_password_length=config.auth.min_password_length)
    _sign_in(auth, args.email, args.password, full_name=args.full_name)
    notes = NoteController(NoteStore(config.storage.base_path), auth)

    with open(args.file, "r", encoding="utf-8") as handle:
        entries = json.load(handle)
    if not isinstance(entries, list):
        raise ValueError(f"{args.file} must contain a JSON array of notes.")

    created = 0
    for index, entry in enumerate(entries):
        errors = notes.create_note(
            title=str(entry.get("title", "")),
            content=str(entry.get("content", "")),
            latitude=_coordinate(entry.get("latitude")),
            longitude=_coordinate(entry.get("longitude")),
        )
        if errors:
            logger.warning("Skipping entry %d: %s", index, "; ".join(errors))
            continue
        created += 1
    print(f"Imported {created} of {len(entries)} notes for {args.email}")
    return 0


def markers(config: AppConfig, args: argparse.Namespace) -> int:
    auth = AuthService(UserStore(config.storage.base_path), min_password_length=config.auth.min_password_length)
    _sign_in(auth, args.email, args.password)
    notes = NoteController(NoteStore(config.storage.base_path), auth)

    surface = DeckMapSurface(config.map.width_px, config.map.height_px, config.map.max_zoom)
    controller = NoteMapController(
        surface,
        grouper=LocationGrouper(config.map.grid_size, config.map.key_precision),
        fitter=ViewportFitter(config.map.fit_padding_px, config.map.fit_min_delta_degrees),
    )
    for line in describe(controller.on_notes(notes.notes()).values()):
        print(line)

    bounds = compute_bounds(controller.markers.values())
    if bounds is None:
        print("No notes with location data")
        return 0
    print(
        f"bounds sw=({bounds.southwest.latitude:.6f},{bounds.southwest.longitude:.6f}) "
        f"ne=({bounds.northeast.latitude:.6f},{bounds.northeast.longitude:.6f})"
    )
    if surface.view_state is not None:
        print(f"camera zoom={surface.view_state.zoom:.2f}")
    return 0


def describe(markers: Iterable) -> List[str]:
    lines = []
    for marker in markers:
        lines.append(
            f"{marker.kind:<7} {marker.marker_id} "
            f"({marker.position.latitude:.6f},{marker.position.longitude:.6f}) {marker.title}"
        )
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = _config(args.config)
    configure_logging(config.logging.level)

    if args.command == "seed":
        return seed(config, args)
    if args.command == "markers":
        return markers(config, args)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
