"""Cache keys for source references and the freshness rule for cached covers."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger("frontpage_cache")

ARTIFACT_DATE_FORMAT = "%m-%d-%Y"
ARTIFACT_SUFFIX = ".jpg"


def source_digest(source_ref: str) -> str:
    """Return the SHA-256 hex digest of a source reference."""
    return hashlib.sha256(source_ref.encode("utf-8")).hexdigest()


def compute_artifact_name(source_ref: str, now: Optional[datetime] = None) -> str:
    """Build ``<digest>_<MM-DD-YYYY>.jpg`` for a reference on a calendar day.

    Names are assumed, not guaranteed, to be unique per reference per day.
    """
    moment = now or datetime.now()
    digest = source_digest(source_ref)
    name = f"{digest}_{moment.strftime(ARTIFACT_DATE_FORMAT)}{ARTIFACT_SUFFIX}"
    logger.debug("Artifact name for %s: %s", source_ref, name)
    return name


def is_fresh(
    artifact_path: Union[str, Path],
    ttl: timedelta,
    now: Optional[datetime] = None,
) -> bool:
    """Return True when the artifact exists and is no older than ``ttl``."""
    if ttl <= timedelta(0):
        return False
    path = Path(artifact_path)
    try:
        modified = datetime.fromtimestamp(path.stat().st_mtime)
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Cannot stat cached artifact %s: %s", path, exc)
        return False
    moment = now or datetime.now()
    return moment - modified <= ttl
