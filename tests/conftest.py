"""Pytest configuration and shared fixtures."""

import threading
from typing import BinaryIO, List, Optional

import pytest

from upr.core.config import BackendConfig, BackendKind, Settings
from upr.core.exceptions import UploadError
from upr.storage.base import ObjectStoreBackend


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run every test in an empty directory with no UPR_* variables, so no config leaks in."""
    import os

    for name in list(os.environ):
        if name.upper().startswith("UPR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_settings():
    """Build Settings from keyword values (env and config file are empty in tests)."""

    def _make(**values) -> Settings:
        base = {"token": "t0ken", "owner": "acme", "repo": "widgets"}
        base.update(values)
        return Settings(**base)

    return _make


class FakeBackend(ObjectStoreBackend):
    """In-memory backend recording every put; keys in ``fail_keys`` raise UploadError."""

    def __init__(self, endpoint: str = "https://store.example.com/", fail_keys: Optional[set] = None):
        super().__init__(
            BackendConfig(kind=BackendKind.S3, endpoint=endpoint, bucket="ci-artifacts", region="us-east-1")
        )
        self.fail_keys = fail_keys or set()
        self.puts: List[tuple[str, bytes]] = []
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def authenticate(self) -> None:
        self.calls.append("authenticate")

    def ensure_bucket(self) -> None:
        self.calls.append("ensure_bucket")

    def make_public(self) -> None:
        self.calls.append("make_public")

    def configure_expiry(self) -> None:
        self.calls.append("configure_expiry")

    def put_object(self, key: str, reader: BinaryIO) -> str:
        data = reader.read()
        with self._lock:
            self.puts.append((key, data))
        if key in self.fail_keys:
            raise UploadError(f"Problem uploading object '{key}'")
        return self.object_url(self.config.endpoint, key)

    def get_backend_name(self) -> str:
        return "fake"


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def artifact_tree(tmp_path):
    """Create a small artifact tree: build/report.html, build/logs/{a,b}.log, notes.txt."""
    build = tmp_path / "build"
    (build / "logs").mkdir(parents=True)
    (build / "report.html").write_text("<html>ok</html>")
    (build / "logs" / "a.log").write_text("log a")
    (build / "logs" / "b.log").write_text("log b")
    (tmp_path / "notes.txt").write_text("notes")
    return tmp_path
