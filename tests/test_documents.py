"""Tests for first-page PDF rasterization."""

from __future__ import annotations

import io
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pypdfium2 as pdfium
import pytest
from PIL import Image

from frontpage_cache.documents import rasterize_first_page
from frontpage_cache.errors import DecodeError


@pytest.fixture
def private_tmp(tmp_path, monkeypatch):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


class TestRasterizeFirstPage:
    def test_returns_jpeg(self, pdf_bytes):
        data = rasterize_first_page(pdf_bytes, dpi=72)
        assert data[:2] == b"\xff\xd8"
        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "JPEG"
            assert image.mode == "RGB"
            width, height = image.size
        assert abs(width - 200) <= 1
        assert abs(height - 300) <= 1

    def test_dpi_scales_output(self, pdf_bytes):
        data = rasterize_first_page(pdf_bytes, dpi=144)
        with Image.open(io.BytesIO(data)) as image:
            width, _ = image.size
        assert abs(width - 400) <= 2

    def test_only_first_page_is_rendered(self, multipage_pdf_bytes):
        data = rasterize_first_page(multipage_pdf_bytes, dpi=72)
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
        assert height > width

    @pytest.mark.parametrize(
        "payload",
        [b"", b"This is not a valid PDF", b"\xff\xd8\xff\xe0 a jpeg header"],
    )
    def test_rejects_non_pdf(self, payload):
        with pytest.raises(DecodeError) as excinfo:
            rasterize_first_page(payload)
        assert excinfo.value.stage == "rasterize"

    def test_rejects_corrupt_pdf(self):
        with pytest.raises(DecodeError):
            rasterize_first_page(b"%PDF-1.7\nthis is not really a document\n")

    def test_temp_files_removed_on_success(self, pdf_bytes, private_tmp):
        rasterize_first_page(pdf_bytes, dpi=72)
        assert list(private_tmp.iterdir()) == []

    def test_temp_files_removed_on_failure(self, private_tmp):
        with pytest.raises(DecodeError):
            rasterize_first_page(b"%PDF-1.4\ngarbage")
        assert list(private_tmp.iterdir()) == []


class TestRasterizerThreading:
    def test_concurrent_callers(self, pdf_bytes):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: rasterize_first_page(pdf_bytes, dpi=72), range(32)))
        assert all(data[:2] == b"\xff\xd8" for data in results)

    def test_pdfium_access_is_serialized(self, pdf_bytes, monkeypatch):
        real_document = pdfium.PdfDocument
        state = {"active": 0, "peak": 0}
        guard = threading.Lock()

        def tracking_document(*args, **kwargs):
            with guard:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.01)
            try:
                return real_document(*args, **kwargs)
            finally:
                with guard:
                    state["active"] -= 1

        monkeypatch.setattr(pdfium, "PdfDocument", tracking_document)
        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(lambda _: rasterize_first_page(pdf_bytes, dpi=72), range(12)))
        assert state["peak"] == 1


class TestResolution:
    def test_low_dpi_is_honoured(self, pdf_bytes):
        data = rasterize_first_page(pdf_bytes, dpi=36)
        with Image.open(io.BytesIO(data)) as image:
            width, _ = image.size
        assert abs(width - 100) <= 1

    @pytest.mark.parametrize("dpi", [0, -72])
    def test_non_positive_dpi(self, pdf_bytes, dpi):
        with pytest.raises(ValueError):
            rasterize_first_page(pdf_bytes, dpi=dpi)
