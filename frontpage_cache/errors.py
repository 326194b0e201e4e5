"""Typed failures raised by the cover pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class CoverError(Exception):
    """Base class for every failure surfaced by the cover pipeline."""

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class ResolutionError(CoverError):
    """The landing page did not expose the expected cover element."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message, stage="resolve")
        self.url = url


class FetchError(CoverError):
    """An outbound request failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        url: str,
        stage: str = "fetch",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.url = url
        self.status_code = status_code


class DecodeError(CoverError):
    """The payload could not be rendered as a cover image."""

    def __init__(self, message: str) -> None:
        super().__init__(message, stage="rasterize")


class StorageError(CoverError):
    """The cache directory or artifact file could not be written."""

    def __init__(self, message: str, path: Union[str, Path]) -> None:
        super().__init__(message, stage="store")
        self.path = Path(path)


class ConfigError(ValueError):
    """The configuration file is missing or malformed."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None
