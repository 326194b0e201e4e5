"""Shared test fixtures for the cover cache."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest
import requests
from PIL import Image

from frontpage_cache.cache import CoverCache


def make_response(
    url: str,
    status: int = 200,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.url = url
    resp.encoding = "utf-8"
    resp.headers.update(headers or {})
    return resp


class FakeSession:
    """Stands in for requests.Session and records every GET."""

    def __init__(self) -> None:
        self.routes: Dict[str, Union[Tuple[int, bytes, Dict[str, str]], Exception]] = {}
        self.calls: List[str] = []

    def add(
        self,
        url: str,
        body: bytes = b"",
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.routes[url] = (status, body, headers or {})

    def fail(self, url: str, exc: Exception) -> None:
        self.routes[url] = exc

    def get(self, url: str, timeout: Optional[float] = None, **kwargs) -> requests.Response:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(route, Exception):
            raise route
        status, body, headers = route
        return make_response(url, status=status, body=body, headers=headers)


def _image_bytes(fmt: str, size: Tuple[int, int] = (40, 60)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def pdf_bytes() -> bytes:
    """A single-page PDF produced by Pillow."""
    return _image_bytes("PDF", size=(200, 300))


@pytest.fixture
def multipage_pdf_bytes() -> bytes:
    buffer = io.BytesIO()
    first = Image.new("RGB", (200, 300), color=(0, 0, 255))
    second = Image.new("RGB", (400, 100), color=(0, 255, 0))
    first.save(buffer, format="PDF", save_all=True, append_images=[second])
    return buffer.getvalue()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cover_cache(cache_dir: Path, fake_session: FakeSession) -> CoverCache:
    """A CoverCache writing to a temp directory through the fake session."""
    return CoverCache(cache_dir=cache_dir, session=fake_session, timeout=5.0, pdf_dpi=72)


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(text: str, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
