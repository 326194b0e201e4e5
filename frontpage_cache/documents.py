"""Rendering of the first page of PDF covers to JPEG."""

from __future__ import annotations

import io
import logging
import tempfile
import threading
from pathlib import Path

import pypdfium2 as pdfium
from PIL import Image

from .config import DEFAULT_PDF_DPI
from .errors import DecodeError, StorageError
from .images import looks_like_pdf

logger = logging.getLogger("frontpage_cache.documents")

JPEG_QUALITY = 90
_PDF_POINTS_PER_INCH = 72

# PDFium is not thread-safe; every call into it goes through this lock.
_PDFIUM_LOCK = threading.Lock()


def _render_first_page(path: Path, dpi: int) -> Image.Image:
    scale = dpi / _PDF_POINTS_PER_INCH
    with _PDFIUM_LOCK:
        return _render_locked(path, scale)


def _render_locked(path: Path, scale: float) -> Image.Image:
    try:
        document = pdfium.PdfDocument(str(path))
    except pdfium.PdfiumError as exc:
        raise DecodeError(f"Cannot open PDF document: {exc}") from exc
    try:
        if len(document) == 0:
            raise DecodeError("PDF document has no pages")
        page = document[0]
        try:
            bitmap = page.render(scale=scale)
            image = bitmap.to_pil().convert("RGB")
        except pdfium.PdfiumError as exc:
            raise DecodeError(f"Cannot render first PDF page: {exc}") from exc
        finally:
            page.close()
        logger.debug("Rendered %s page 1 to %sx%s image", path.name, *image.size)
        return image
    finally:
        document.close()


def rasterize_first_page(
    pdf_bytes: bytes,
    dpi: int = DEFAULT_PDF_DPI,
    quality: int = JPEG_QUALITY,
) -> bytes:
    """Render page one of a PDF byte stream and return it encoded as JPEG.

    The bytes are spilled to a private temporary directory that is removed
    before returning, whether rendering succeeds or not.
    """
    if dpi <= 0:
        raise ValueError(f"dpi must be positive, got {dpi}")
    if not pdf_bytes or not looks_like_pdf(pdf_bytes):
        raise DecodeError("Payload is not a PDF document")

    with tempfile.TemporaryDirectory(prefix="frontpage-pdf-") as tmp_dir:
        pdf_path = Path(tmp_dir) / "cover.pdf"
        try:
            pdf_path.write_bytes(pdf_bytes)
        except OSError as exc:
            raise StorageError(f"Cannot spool PDF to {pdf_path}: {exc}", pdf_path) from exc
        image = _render_first_page(pdf_path, dpi)

    buffer = io.BytesIO()
    try:
        image.save(buffer, format="JPEG", quality=quality)
    except OSError as exc:
        raise DecodeError(f"Cannot encode cover as JPEG: {exc}") from exc
    return buffer.getvalue()
