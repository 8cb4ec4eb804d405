import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Ensure the repository root (which contains the `geonotes` package) is importable in tests.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from geonotes.common.models import Note  # noqa: E402
from geonotes.services.auth import AuthService  # noqa: E402
from geonotes.store.note_store import NoteStore  # noqa: E402
from geonotes.store.user_store import UserStore  # noqa: E402


def make_note(note_id, latitude=None, longitude=None, title="Note", content="Body", user_id="u1"):
    stamp = datetime(2024, 5, 1, 12, 0)
    return Note(
        note_id=note_id,
        title=title,
        content=content,
        user_id=user_id,
        created_at=stamp,
        updated_at=stamp,
        latitude=latitude,
        longitude=longitude,
    )


class RecordingSurface:
    """Map surface double that records camera fit requests."""

    def __init__(self, reports_camera=False):
        self.requests = []
        self.reports_camera = reports_camera

    def request_camera_fit(self, bounds, padding_px):
        self.requests.append((bounds, padding_px))

    def camera_bounds(self):
        # the camera lands exactly on the requested box
        if not self.reports_camera or not self.requests:
            return None
        return self.requests[-1][0]


class TickingClock:
    def __init__(self, start=datetime(2024, 1, 1, 9, 0)):
        self.now = start

    def __call__(self):
        self.now = self.now + timedelta(minutes=1)
        return self.now


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def note_store():
    return NoteStore(None, clock=TickingClock())


@pytest.fixture
def auth_service():
    return AuthService(UserStore(None), min_password_length=6)
