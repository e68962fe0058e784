"""Persistent bearer-token store.

The request layer has exactly one piece of persisted state: the bearer
token, stored under the fixed key ``auth_token`` in
``~/.local/share/punchclock/credentials/auth_token.json`` (XDG) or the
platform-equivalent directory.  The file is read once when the store is
constructed and re-written on every mutation, atomically and with
``0o600`` permissions.

Every :meth:`TokenStore.set` and :meth:`TokenStore.clear` notifies the
registered listeners.  :class:`~punchclock.client.context.ClientContext`
registers :meth:`~punchclock.cache.ResponseCache.clear` as a listener, so
data cached under one identity is never served under another.

See Also:
    :class:`~punchclock.auth.session.Session` -- login/logout flows that
    drive this store.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from punchclock.config import atomic_write, get_data_dir

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"

TokenListener = Callable[[], object]


class CredentialEntry(BaseModel):
    """The serialised form of the stored token.

    Attributes:
        auth_type: Always ``"bearer"`` for tokens issued by the login flow.
        credential: The opaque token string.
        saved_at: UTC time the token was stored.
    """

    auth_type: str = Field(default="bearer")
    credential: str
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def default_token_path() -> Path:
    """Return the token file path, creating the credentials directory if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path / f"{TOKEN_KEY}.json"


class TokenStore:
    """Read/write the single bearer token.

    Args:
        path: File to persist the token in.  Defaults to
            :func:`default_token_path`.
        listeners: Callbacks invoked after every ``set``/``clear``.

    Example::

        store = TokenStore(tmp_path / "auth_token.json")
        store.add_listener(cache.clear)
        store.set("tok123")
        assert store.get() == "tok123"
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        listeners: Iterable[TokenListener] = (),
    ) -> None:
        self._path = path if path is not None else default_token_path()
        self._listeners: list[TokenListener] = list(listeners)
        self._token = self._load()

    @property
    def path(self) -> Path:
        """The filesystem path of the token file."""
        return self._path

    def get(self) -> str:
        """Return the current token, or ``""`` when none is stored."""
        return self._token

    def set(self, token: str) -> None:
        """Persist *token* and notify listeners.

        An empty token is treated as :meth:`clear`.

        Raises:
            OSError: If the file cannot be written.
        """
        if not token:
            self.clear()
            return

        entry = CredentialEntry(credential=token)
        atomic_write(
            self._path,
            json.dumps(entry.model_dump(mode="json"), indent=2) + "\n",
            mode=0o600,
        )
        self._token = token
        self._notify()

    def clear(self) -> None:
        """Forget the token, delete its file if present, and notify listeners."""
        self._token = ""
        if self._path.is_file():
            self._path.unlink()
        self._notify()

    def add_listener(self, listener: TokenListener) -> None:
        """Register *listener* to run after every credential change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    def _load(self) -> str:
        if not self._path.is_file():
            return ""
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data).credential
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self._path, exc)
            return ""
