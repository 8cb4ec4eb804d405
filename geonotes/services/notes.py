"""Note validation and ownership checks in front of the note store."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from geonotes.common.errors import GeoNotesError, NotAuthenticatedError
from geonotes.common.models import Note
from geonotes.services.auth import AuthService
from geonotes.store.note_store import NoteStore

logger = logging.getLogger(__name__)

def validate_note(note: Note) -> List[str]:
    """Return every problem with ``note``; an empty list means it can be saved."""

    errors: List[str] = []
    if not note.title:
        errors.append("Title is required")
    if not note.content:
        errors.append("Content is required")
    if not note.user_id:
        errors.append("User ID is required")
    if (note.latitude is None) != (note.longitude is None):
        errors.append("Both latitude and longitude must be provided")
    if note.latitude is not None and not -90.0 <= note.latitude <= 90.0:
        errors.append("Latitude must be between -90 and 90")
    if note.longitude is not None and not -180.0 <= note.longitude <= 180.0:
        errors.append("Longitude must be between -180 and 180")
    return errors


class NoteController:
    """Create/update return ``None`` or a list of messages; delete returns ``None`` or one message."""

    def __init__(self, store: NoteStore, auth: AuthService) -> None:
        self.store = store
        self.auth = auth

    @property
    def current_user_id(self) -> Optional[str]:
        user = self.auth.current_user
        return user.user_id if user is not None else None

    def notes(self) -> List[Note]:
        user_id = self.current_user_id
        if user_id is None:
            return []
        return self.store.list_for_user(user_id)

    def subscribe(self, callback: Callable[[List[Note]], None]) -> Callable[[], None]:
        user_id = self.current_user_id
        if user_id is None:
            callback([])
            return lambda: None
        return self.store.subscribe(user_id, callback)

    def create_note(
        self,
        title: str,
        content: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Optional[List[str]]:
        try:
            user_id = self.auth.require_user().user_id
        except NotAuthenticatedError as exc:
            return [str(exc)]

        now = datetime.now()
        note = Note(
            note_id="",
            title=title,
            content=content,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            latitude=latitude,
            longitude=longitude,
        )
        errors = validate_note(note)
        if errors:
            return errors

        try:
            self.store.create(note)
        except (GeoNotesError, OSError, ValueError) as exc:
            logger.exception("Failed to create note")
            return [f"Failed to create note: {exc}"]
        return None

    def update_note(
        self,
        existing: Note,
        title: Optional[str] = None,
        content: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        clear_location: bool = False,
    ) -> Optional[List[str]]:
        try:
            user_id = self.auth.require_user().user_id
        except NotAuthenticatedError as exc:
            return [str(exc)]
        if existing.user_id != user_id:
            return ["Not authorized to update this note"]

        updated = existing.replace(
            title=existing.title if title is None else title,
            content=existing.content if content is None else content,
            latitude=existing.latitude if latitude is None else latitude,
            longitude=existing.longitude if longitude is None else longitude,
        )
        if clear_location:
            updated = updated.replace(latitude=None, longitude=None)
        errors = validate_note(updated)
        if errors:
            return errors

        try:
            self.store.update(
                existing.note_id,
                title=updated.title,
                content=updated.content,
                latitude=updated.latitude,
                longitude=updated.longitude,
            )
        except (GeoNotesError, OSError, ValueError) as exc:
            logger.exception("Failed to update note %s", existing.note_id)
            return [f"Failed to update note: {exc}"]
        return None

    def delete_note(self, note: Note) -> Optional[str]:
        try:
            user_id = self.auth.require_user().user_id
        except NotAuthenticatedError as exc:
            return str(exc)
        if note.user_id != user_id:
            return "Not authorized to delete this note"

        try:
            self.store.delete(note.note_id)
        except (GeoNotesError, OSError, ValueError) as exc:
            logger.exception("Failed to delete note %s", note.note_id)
            return f"Failed to delete note: {exc}"
        return None
