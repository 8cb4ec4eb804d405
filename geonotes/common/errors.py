"""Exceptions raised by the stores and services."""

from __future__ import annotations


class GeoNotesError(Exception):
    """Base class for application errors."""


class AuthError(GeoNotesError):
    """Account operation failed; ``code`` names the reason."""

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


class NotAuthenticatedError(GeoNotesError):
    def __init__(self) -> None:
        super().__init__("User not authenticated")


class NoteNotFoundError(GeoNotesError):
    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note {note_id} does not exist.")
        self.note_id = note_id
