"""Source classification and cover extraction from landing pages."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_REQUEST_TIMEOUT
from .errors import ResolutionError
from .images import fetch
from .models import LandingPageContract, SourceKind

logger = logging.getLogger("frontpage_cache.locator")

DOCUMENT_SUFFIX = ".pdf"


def classify_asset(url: str) -> SourceKind:
    """Classify a directly fetchable URL by the extension of its path."""
    path = urlparse(url).path or url
    if path.lower().endswith(DOCUMENT_SUFFIX):
        return SourceKind.DIRECT_DOCUMENT
    return SourceKind.DIRECT_IMAGE


def classify_source(
    source_ref: str,
    contract: Optional[LandingPageContract] = None,
) -> SourceKind:
    """Decide once how a source reference must be handled."""
    contract = contract or LandingPageContract()
    if source_ref.startswith(contract.prefix):
        return SourceKind.LANDING_PAGE
    return classify_asset(source_ref)


def extract_cover_url(html: str, contract: LandingPageContract, page_url: str) -> str:
    """Find the cover element in landing page HTML and return its absolute URL."""
    soup = BeautifulSoup(html, "html.parser")
    img = soup.find("img", id=contract.element_id)
    src = img.get("src") if img is not None else None
    if not src or not str(src).strip():
        raise ResolutionError(
            f"Expected cover image element #{contract.element_id} not found on {page_url}",
            page_url,
        )
    return urljoin(contract.origin, str(src).strip())


class CoverLocator:
    """Turns a source reference into the URL that actually serves the cover."""

    def __init__(
        self,
        contract: Optional[LandingPageContract] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.contract = contract or LandingPageContract()
        self.session = session or requests.Session()
        self.timeout = timeout

    def classify(self, source_ref: str) -> SourceKind:
        return classify_source(source_ref, self.contract)

    def resolve(self, source_ref: str) -> str:
        """Return the fetchable cover URL for ``source_ref``.

        Landing pages are fetched and scraped once; any other reference is
        returned unchanged without touching the network.
        """
        if self.classify(source_ref) is not SourceKind.LANDING_PAGE:
            return source_ref
        return self.resolve_landing_page(source_ref)

    def resolve_landing_page(self, page_url: str) -> str:
        logger.info("Fetching cover URL from: %s", page_url)
        resp = fetch(self.session, page_url, self.timeout, stage="resolve")
        cover_url = extract_cover_url(resp.text, self.contract, page_url)
        logger.info("Cover URL found: %s", cover_url)
        return cover_url
