"""Fetching of cover payloads and file signature checks."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from filetype import guess

from .errors import FetchError

logger = logging.getLogger("frontpage_cache")

PDF_MIME = "application/pdf"


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def looks_like_pdf(data: bytes) -> bool:
    """Return True when the payload carries a PDF file signature."""
    kind = guess(data)
    return bool(kind and kind.mime == PDF_MIME)


def fetch(
    session: requests.Session,
    url: str,
    timeout: float,
    stage: str = "fetch",
) -> requests.Response:
    """GET ``url`` and return the response, raising FetchError on any failure."""
    logger.info("Fetching %s", url)
    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Error fetching {url}: {exc}", url, stage=stage) from exc

    if not 200 <= resp.status_code < 300:
        raise FetchError(
            f"Server returned non-success status code {resp.status_code} for {url}",
            url,
            stage=stage,
            status_code=resp.status_code,
        )
    return resp
