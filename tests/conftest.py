"""Shared fixtures for the pipeline test suite.

No network and no external converter: Box is replaced by an in-memory
``requests``-style session and the converter by plain Python delegates.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from iwork_pipeline import BoxClient, CandidateFile, ConversionInvoker, RemoteEntry

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")

BASE_URL = "https://box.test/2.0"

SCENARIO_LISTING = {
    "total_count": 3,
    "entries": [
        {
            "type": "file",
            "id": "101",
            "name": "Doc1.pages",
            "size": 1024,
            "modified_at": "2024-03-01T10:00:00-08:00",
        },
        {
            "type": "file",
            "id": "102",
            "name": "Doc2.numbers",
            "size": 2048,
            "modified_at": "2024-03-02T11:30:00Z",
        },
        {
            "type": "file",
            "id": "103",
            "name": "Image.png",
            "size": 512,
            "modified_at": "2024-03-03T09:15:00Z",
        },
    ],
}


class FakeResponse:
    """Just enough of ``requests.Response`` for ``BoxClient``."""

    def __init__(
        self,
        status_code: int = 200,
        *,
        json_body: Any = None,
        content: bytes = b"",
        reason: str = "OK",
        chunk_error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self._json_body = json_body
        self._content = content
        self._chunk_error = chunk_error
        self.closed = False

    def json(self) -> Any:
        if self._json_body is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_body

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._content), max(1, chunk_size)):
            yield self._content[start : start + chunk_size]
        if self._chunk_error is not None:
            raise self._chunk_error

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Routes GETs by path relative to ``BASE_URL``.

    A route value may be a response, an exception to raise, or a list of
    either, consumed one per call.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, headers: dict[str, str] | None = None, **kwargs: Any):
        self.calls.append({"url": url, "headers": dict(headers or {}), **kwargs})
        path = url[len(BASE_URL) :].lstrip("/")
        if path not in self.routes:
            return FakeResponse(404, reason="Not Found")
        result = self.routes[path]
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def write_delegate(text: str) -> Callable[[Path, Path], None]:
    def _delegate(input_path: Path, output_path: Path) -> None:
        assert input_path.exists(), f"scratch copy missing: {input_path}"
        output_path.write_text(text, encoding="utf-8")

    return _delegate


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_client(fake_session: FakeSession) -> Callable[..., BoxClient]:
    def _make(token: str = "secret-token", **kwargs: Any) -> BoxClient:
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("session", fake_session)
        return BoxClient(token, **kwargs)

    return _make


@pytest.fixture
def scenario_session(fake_session: FakeSession) -> FakeSession:
    """Folder 0 holds Doc1.pages, Doc2.numbers and Image.png.

    Doc1 downloads fine; Doc2's download fails at the transport level.
    """
    import requests

    fake_session.routes.update(
        {
            "folders/0/items": FakeResponse(json_body=SCENARIO_LISTING),
            "files/101/content": FakeResponse(content=b"PK\x03\x04 pages bytes"),
            "files/102/content": requests.ConnectionError("connection reset by peer"),
        }
    )
    return fake_session


@pytest.fixture
def text_converter() -> ConversionInvoker:
    return ConversionInvoker(
        {
            "txt": write_delegate("Hello"),
            "html": write_delegate("<html><body>Hello</body></html>"),
        }
    )


@pytest.fixture
def candidate() -> CandidateFile:
    entry = RemoteEntry(
        id="555",
        name="Report.pages",
        kind="file",
        size=4096,
        modified_at=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
    )
    return CandidateFile(entry=entry, extension=".pages")


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Return (temp_dir, output_dir) for a single test; not yet created."""
    return tmp_path / "temp", tmp_path / "extracted"
