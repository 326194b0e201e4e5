"""Data models used throughout the cover pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SourceKind(str, Enum):
    """How a source reference must be turned into image bytes."""

    DIRECT_IMAGE = "direct_image"
    DIRECT_DOCUMENT = "direct_document"
    LANDING_PAGE = "landing_page"


@dataclass(frozen=True)
class LandingPageContract:
    """Markup contract of the site that embeds covers in HTML pages."""

    prefix: str = "https://www.frontpages.com"
    element_id: str = "giornale-img"
    origin: str = "https://www.frontpages.com"


@dataclass
class CoverStatus:
    """Cache state of a single source reference."""

    source: str
    artifact_name: str
    path: Path
    exists: bool
    fresh: bool
