"""Orchestration of resolve, fetch, rasterize and store for cached covers."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import Future
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Optional

import requests

from .config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_PDF_DPI,
    DEFAULT_REQUEST_TIMEOUT,
    CoverConfig,
)
from .documents import rasterize_first_page
from .errors import StorageError
from .fingerprint import compute_artifact_name, is_fresh
from .images import detect_image_format, fetch, looks_like_pdf
from .locator import CoverLocator, classify_asset
from .models import CoverStatus, SourceKind

logger = logging.getLogger("frontpage_cache")

ARTIFACT_MODE = 0o644


class CoverCache:
    """Keeps one JPEG per source reference and day in ``cache_dir``.

    Concurrent misses for the same artifact name are coalesced: the first
    caller fetches, the others wait for its result.
    """

    def __init__(
        self,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        locator: Optional[CoverLocator] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        pdf_dpi: int = DEFAULT_PDF_DPI,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.locator = locator or CoverLocator(session=self.session, timeout=timeout)
        self.pdf_dpi = pdf_dpi
        self.clock = clock
        self._lock = threading.Lock()
        self._in_flight: Dict[str, Future] = {}

    @classmethod
    def from_config(
        cls,
        config: CoverConfig,
        session: Optional[requests.Session] = None,
    ) -> "CoverCache":
        session = session or requests.Session()
        locator = CoverLocator(
            contract=config.landing,
            session=session,
            timeout=config.request_timeout,
        )
        return cls(
            cache_dir=config.cache_dir,
            locator=locator,
            session=session,
            timeout=config.request_timeout,
            pdf_dpi=config.pdf_dpi,
        )

    def path_for(self, artifact_name: str) -> Path:
        return self.cache_dir / artifact_name

    def status(self, source_ref: str, ttl: timedelta) -> CoverStatus:
        """Describe the cache state of ``source_ref`` without fetching anything."""
        now = self.clock()
        name = compute_artifact_name(source_ref, now)
        path = self.path_for(name)
        try:
            exists = path.is_file()
        except OSError as exc:
            logger.warning("Cannot stat cached artifact %s: %s", path, exc)
            exists = False
        return CoverStatus(
            source=source_ref,
            artifact_name=name,
            path=path,
            exists=exists,
            fresh=is_fresh(path, ttl, now),
        )

    def ensure_cached(self, source_ref: str, ttl: timedelta) -> str:
        """Return the artifact name for ``source_ref``, fetching it when stale."""
        now = self.clock()
        name = compute_artifact_name(source_ref, now)
        path = self.path_for(name)
        if is_fresh(path, ttl, now):
            logger.info("Using cached image: %s", path)
            return name

        with self._lock:
            pending = self._in_flight.get(name)
            leader = pending is None
            if leader:
                pending = Future()
                self._in_flight[name] = pending

        if not leader:
            logger.info("Waiting for in-flight download of %s", name)
            return pending.result()

        logger.info("Image not in cache or cache expired, downloading %s", source_ref)
        try:
            self._materialize(source_ref, path)
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        else:
            pending.set_result(name)
            return name
        finally:
            with self._lock:
                self._in_flight.pop(name, None)

    def _materialize(self, source_ref: str, path: Path) -> None:
        kind = self.locator.classify(source_ref)
        if kind is SourceKind.LANDING_PAGE:
            image_url = self.locator.resolve_landing_page(source_ref)
            kind = classify_asset(image_url)
        else:
            image_url = source_ref
        logger.info("Image URL: %s", image_url)

        resp = fetch(self.session, image_url, self.timeout)
        if kind is SourceKind.DIRECT_DOCUMENT or looks_like_pdf(resp.content):
            logger.info("Converting PDF to image: %s", image_url)
            data = rasterize_first_page(resp.content, dpi=self.pdf_dpi)
        else:
            data = resp.content
            if detect_image_format(data) is None:
                logger.warning(
                    "Payload from %s is not a recognised image (Content-Type=%s); storing as-is",
                    image_url,
                    resp.headers.get("Content-Type", ""),
                )

        self._write_atomic(path, data)
        logger.info("Image downloaded and saved successfully: %s", path)

    def _write_atomic(self, path: Path, data: bytes) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(
                f"Cannot create cache directory {self.cache_dir}: {exc}", self.cache_dir
            ) from exc

        tmp_path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.cache_dir,
                prefix=f".{path.stem}-",
                suffix=".part",
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(data)
            os.chmod(tmp_path, ARTIFACT_MODE)
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as cleanup_exc:
                    logger.warning("Cannot remove partial file %s: %s", tmp_path, cleanup_exc)
            raise StorageError(f"Cannot write cached artifact {path}: {exc}", path) from exc


def ensure_cached(
    source_ref: str,
    ttl: timedelta,
    cache: Optional[CoverCache] = None,
) -> str:
    """Ensure ``source_ref`` is cached, using a throwaway :class:`CoverCache` if none is given."""
    return (cache or CoverCache()).ensure_cached(source_ref, ttl)
