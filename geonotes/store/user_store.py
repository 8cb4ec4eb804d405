"""Persist user accounts into a parquet table."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from geonotes.common.models import User

logger = logging.getLogger(__name__)

USER_COLUMNS = ["user_id", "email", "full_name", "created_at", "password_hash"]
USERS_TABLE = "users.parquet"


class UserStore:
    """Accounts keyed by user id, looked up by (case-insensitive) email."""

    def __init__(self, base_path: Optional[str] = None) -> None:
        self.base_path = Path(base_path) if base_path else None
        self._users: Dict[str, User] = {}
        self._hashes: Dict[str, str] = {}
        if self.path is not None and self.path.exists():
            self._read(self.path)
            logger.info("Loaded %d users from %s", len(self._users), self.path)

    @property
    def path(self) -> Optional[Path]:
        return self.base_path / USERS_TABLE if self.base_path is not None else None

    def add(self, user: User, password_hash: str) -> None:
        self._users[user.user_id] = user
        self._hashes[user.user_id] = password_hash
        if self.path is not None:
            self._write(self.path)

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user
        return None

    def password_hash(self, user_id: str) -> Optional[str]:
        return self._hashes.get(user_id)

    def _write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = [
            {
                "user_id": user.user_id,
                "email": user.email,
                "full_name": user.full_name,
                "created_at": user.created_at,
                "password_hash": self._hashes[user.user_id],
            }
            for user in self._users.values()
        ]
        frame = pd.DataFrame(rows, columns=USER_COLUMNS)
        frame["created_at"] = pd.to_datetime(frame["created_at"])
        frame.to_parquet(path, index=False)

    def _read(self, path: Path) -> None:
        frame = pd.read_parquet(path)
        for record in frame.to_dict(orient="records"):
            user = User(
                user_id=str(record["user_id"]),
                email=str(record["email"]),
                full_name=str(record.get("full_name") or ""),
                created_at=pd.Timestamp(record["created_at"]).to_pydatetime(),
            )
            self._users[user.user_id] = user
            self._hashes[user.user_id] = str(record["password_hash"])
