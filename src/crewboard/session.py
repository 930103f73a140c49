"""Session persistence.

Signing in is the identity provider's job; this module only keeps the
resulting access token and user id on disk so the CLI can build a
coordinator for the signed-in user.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import toml
from filelock import FileLock, Timeout

from .config import CREWBOARD_DIR
from .models import parse_timestamp, utc_now

SESSION_PATH = CREWBOARD_DIR / "session"


@dataclass(frozen=True)
class Session:
    """What the identity provider hands us: a user id and a bearer token."""

    user_id: str
    access_token: str
    email: str | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) >= self.expires_at


class SessionStore:
    """Manages storage of the current session in TOML format."""

    def __init__(self, session_path: Path | None = None):
        self.session_path = session_path or SESSION_PATH
        self.lock_path = self.session_path.with_suffix(".lock")

    def _ensure_directory(self):
        self.session_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    def _acquire_lock(self) -> FileLock:
        return FileLock(self.lock_path, timeout=10)

    def load(self) -> Optional[Session]:
        """Load the session. Returns None if missing, invalid or expired."""
        if not self.session_path.exists():
            return None

        try:
            with self._acquire_lock():
                with open(self.session_path, "r") as handle:
                    data = toml.load(handle)
        except (toml.TomlDecodeError, OSError, Timeout):
            return None

        user = data.get("user") or {}
        token = data.get("token") or {}
        if not user.get("id") or not token.get("access"):
            return None

        session = Session(
            user_id=user["id"],
            access_token=token["access"],
            email=user.get("email"),
            expires_at=parse_timestamp(token.get("expires_at")),
        )
        if session.is_expired():
            return None
        return session

    def save(self, session: Session) -> None:
        """Save the session with 600 permissions."""
        self._ensure_directory()

        token: dict[str, str] = {"access": session.access_token}
        if session.expires_at is not None:
            token["expires_at"] = session.expires_at.isoformat()
        user: dict[str, str] = {"id": session.user_id}
        if session.email:
            user["email"] = session.email

        try:
            with self._acquire_lock():
                with open(self.session_path, "w") as handle:
                    toml.dump({"user": user, "token": token}, handle)
                if os.name != "nt":
                    os.chmod(self.session_path, 0o600)
        except Timeout as exc:
            raise RuntimeError(
                "Cannot acquire lock on session file. Another process may be using it."
            ) from exc

    def clear(self) -> None:
        try:
            with self._acquire_lock():
                if self.session_path.exists():
                    self.session_path.unlink()
        except Timeout as exc:
            raise RuntimeError(
                "Cannot acquire lock on session file. Another process may be using it."
            ) from exc

    def exists(self) -> bool:
        return self.session_path.exists()
