"""Tests for the token store."""

from __future__ import annotations

import json
import logging
import stat
from pathlib import Path

import pytest

from punchclock.auth.credential_store import CredentialEntry, TokenStore, default_token_path


@pytest.fixture()
def path(tmp_path: Path) -> Path:
    return tmp_path / "credentials" / "auth_token.json"


class TestCredentialEntry:
    def test_defaults(self) -> None:
        entry = CredentialEntry(credential="abc123")
        assert entry.auth_type == "bearer"
        assert entry.saved_at.tzinfo is not None


class TestTokenStore:
    def test_empty_when_no_file(self, path: Path) -> None:
        assert TokenStore(path).get() == ""

    def test_set_persists_across_instances(self, path: Path) -> None:
        TokenStore(path).set("tok_xyz")
        assert TokenStore(path).get() == "tok_xyz"

    def test_file_format(self, path: Path) -> None:
        TokenStore(path).set("tok_xyz")
        data = json.loads(path.read_text())
        assert data["credential"] == "tok_xyz"
        assert data["auth_type"] == "bearer"

    def test_file_permissions(self, path: Path) -> None:
        TokenStore(path).set("tok_xyz")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_clear_removes_file(self, path: Path) -> None:
        store = TokenStore(path)
        store.set("tok_xyz")
        store.clear()
        assert store.get() == ""
        assert not path.exists()

    def test_clear_without_file(self, path: Path) -> None:
        store = TokenStore(path)
        store.clear()
        assert store.get() == ""

    def test_setting_empty_token_clears(self, path: Path) -> None:
        store = TokenStore(path)
        store.set("tok_xyz")
        store.set("")
        assert store.get() == ""
        assert not path.exists()

    def test_listeners_run_on_every_change(self, path: Path) -> None:
        calls: list[str] = []
        store = TokenStore(path, listeners=[lambda: calls.append("init")])
        store.add_listener(lambda: calls.append("added"))

        store.set("one")
        store.set("two")
        store.clear()

        assert calls == ["init", "added"] * 3

    def test_corrupt_file_is_ignored(self, path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        with caplog.at_level(logging.WARNING, logger="punchclock.auth.credential_store"):
            store = TokenStore(path)

        assert store.get() == ""
        assert "Ignoring unreadable token file" in caplog.text


def test_default_token_path(isolated_config: Path) -> None:
    path = default_token_path()
    assert path == isolated_config / "data" / "punchclock" / "credentials" / "auth_token.json"
    assert path.parent.is_dir()
