"""Persist notes into a parquet table and publish changes to subscribers."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd

from geonotes.common.errors import NoteNotFoundError
from geonotes.common.models import Note

logger = logging.getLogger(__name__)

NOTE_COLUMNS = ["note_id", "title", "content", "user_id", "created_at", "updated_at", "latitude", "longitude"]
NOTES_TABLE = "notes.parquet"

NotesCallback = Callable[[List[Note]], None]


class NoteStore:
    """CRUD over the notes table.

    With ``base_path=None`` the table only lives in memory. Otherwise every
    write rewrites ``<base_path>/notes.parquet``. Ids and timestamps are
    assigned here, never by the caller.
    """

    def __init__(self, base_path: Optional[str] = None, clock: Callable[[], datetime] = datetime.now) -> None:
        self.base_path = Path(base_path) if base_path else None
        self.clock = clock
        self._notes: Dict[str, Note] = {}
        self._subscribers: Dict[str, List[NotesCallback]] = {}
        if self.path is not None and self.path.exists():
            self._notes = self._read(self.path)
            logger.info("Loaded %d notes from %s", len(self._notes), self.path)

    @property
    def path(self) -> Optional[Path]:
        return self.base_path / NOTES_TABLE if self.base_path is not None else None

    def create(self, note: Note) -> Note:
        now = self.clock()
        stored = note.replace(note_id=uuid.uuid4().hex, created_at=now, updated_at=now)
        self._notes[stored.note_id] = stored
        self._commit(stored.user_id)
        logger.info("Created note %s for user %s", stored.note_id, stored.user_id)
        return stored

    def get(self, note_id: str) -> Note:
        try:
            return self._notes[note_id]
        except KeyError:
            raise NoteNotFoundError(note_id) from None

    def update(
        self,
        note_id: str,
        title: str,
        content: str,
        latitude: Optional[float],
        longitude: Optional[float],
    ) -> Note:
        existing = self.get(note_id)
        stored = existing.replace(
            title=title,
            content=content,
            latitude=latitude,
            longitude=longitude,
            updated_at=self.clock(),
        )
        self._notes[note_id] = stored
        self._commit(stored.user_id)
        logger.info("Updated note %s", note_id)
        return stored

    def delete(self, note_id: str) -> None:
        existing = self.get(note_id)
        del self._notes[note_id]
        self._commit(existing.user_id)
        logger.info("Deleted note %s", note_id)

    def list_for_user(self, user_id: str) -> List[Note]:
        owned = [note for note in self._notes.values() if note.user_id == user_id]
        return sorted(owned, key=lambda note: note.created_at, reverse=True)

    def subscribe(self, user_id: str, callback: NotesCallback) -> Callable[[], None]:
        """Send ``callback`` the user's notes now and after every change to them."""

        self._subscribers.setdefault(user_id, []).append(callback)
        callback(self.list_for_user(user_id))

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(user_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _commit(self, user_id: str) -> None:
        if self.path is not None:
            self._write(self.path)
        notes = self.list_for_user(user_id)
        for callback in list(self._subscribers.get(user_id, [])):
            callback(notes)

    def _write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        frame = pd.DataFrame([note.to_record() for note in self._notes.values()], columns=NOTE_COLUMNS)
        frame["latitude"] = frame["latitude"].astype("float64")
        frame["longitude"] = frame["longitude"].astype("float64")
        frame["created_at"] = pd.to_datetime(frame["created_at"])
        frame["updated_at"] = pd.to_datetime(frame["updated_at"])
        frame.to_parquet(path, index=False)

    @staticmethod
    def _read(path: Path) -> Dict[str, Note]:
        frame = pd.read_parquet(path)
        notes: Dict[str, Note] = {}
        for record in frame.to_dict(orient="records"):
            note = Note.from_record(str(record["note_id"]), record)
            notes[note.note_id] = note
        return notes
