"""Durable key/value storage for the auth session and workflow pointers."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .config import GeneralConfig
from .models import Session

logger = logging.getLogger(__name__)

# One lock per file, shared by every store opened on it
_PATH_LOCKS: Dict[Path, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = Path(path).expanduser().resolve()
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(key, threading.RLock())


class MemoryBackend:
    """Keeps the stored mapping in a plain dict (tests, embedded use)."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def read(self) -> Dict[str, Any]:
        return dict(self._data)

    def write(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)


class JsonFileBackend:
    """Stores the mapping as one JSON object on disk.

    Writes go to a temporary file that replaces the target, so a crash can
    never leave a half-written store behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session store %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring session store %s: root is not an object", self.path)
            return {}
        return raw

    def write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SessionStore:
    """Write-through persistence of the session and the workflow pointer.

    Every setter writes immediately. Values are stored as serialised scalars
    under the keys in :pyattr:`GeneralConfig.STORE_KEYS`; anything malformed
    reads back as "absent" rather than raising.

    Parameters
    ----------
    backend : MemoryBackend | JsonFileBackend | None
        Where the mapping lives. Defaults to an in-memory backend.
    """

    KEY_TOKEN = GeneralConfig.KEY_TOKEN
    KEY_REFRESH_TOKEN = GeneralConfig.KEY_REFRESH_TOKEN
    KEY_USER = GeneralConfig.KEY_USER
    KEY_SURVEY_ID = GeneralConfig.KEY_SURVEY_ID
    KEY_BUILDING_ID = GeneralConfig.KEY_BUILDING_ID

    def __init__(self, backend=None) -> None:
        self.backend = backend if backend is not None else MemoryBackend()
        if isinstance(self.backend, JsonFileBackend):
            self._lock = _lock_for(self.backend.path)
        else:
            self._lock = threading.RLock()

    @classmethod
    def at_path(cls, path: Path) -> "SessionStore":
        return cls(JsonFileBackend(path))

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def load(self) -> Optional[Session]:
        """Return the stored session, or ``None`` when absent or malformed."""
        data = self.backend.read()
        token = data.get(self.KEY_TOKEN)
        raw_user = data.get(self.KEY_USER)
        if not token or not raw_user:
            return None

        if isinstance(raw_user, str):
            try:
                raw_user = json.loads(raw_user)
            except ValueError:
                logger.warning("Stored user profile is not valid JSON; treating as logged out.")
                return None
        if not isinstance(raw_user, dict):
            logger.warning("Stored user profile is not an object; treating as logged out.")
            return None

        try:
            return Session(
                access_token=str(token),
                refresh_token=str(data.get(self.KEY_REFRESH_TOKEN) or ""),
                user=raw_user,
            )
        except ValidationError as exc:
            logger.warning("Stored session failed validation; treating as logged out: %s", exc)
            return None

    def save(self, session: Session) -> None:
        with self._lock:
            data = self.backend.read()
            data[self.KEY_TOKEN] = session.access_token
            data[self.KEY_REFRESH_TOKEN] = session.refresh_token
            data[self.KEY_USER] = json.dumps(session.user.model_dump(mode="json"))
            self.backend.write(data)

    def clear(self) -> None:
        """Remove every stored key in a single write."""
        with self._lock:
            self.backend.write({})
        logger.debug("Session store cleared")

    # ------------------------------------------------------------------
    # Workflow pointers
    # ------------------------------------------------------------------
    @property
    def survey_id(self) -> Optional[str]:
        return self._get_scalar(self.KEY_SURVEY_ID)

    @survey_id.setter
    def survey_id(self, value: Optional[str]) -> None:
        self._set_scalar(self.KEY_SURVEY_ID, value)

    @property
    def building_id(self) -> Optional[str]:
        return self._get_scalar(self.KEY_BUILDING_ID)

    @building_id.setter
    def building_id(self, value: Optional[str]) -> None:
        self._set_scalar(self.KEY_BUILDING_ID, value)

    def _get_scalar(self, key: str) -> Optional[str]:
        value = self.backend.read().get(key)
        if value is None or isinstance(value, (dict, list, bool)):
            return None
        value = str(value).strip()
        return value or None

    def _set_scalar(self, key: str, value: Optional[str]) -> None:
        with self._lock:
            data = self.backend.read()
            if value:
                data[key] = str(value)
            else:
                data.pop(key, None)
            self.backend.write(data)
