"""Exceptions raised by site uploader."""
from typing import Any, Optional


class UploaderError(RuntimeError):
    """Base class for uploader failures."""


class ContextError(UploaderError):
    """Required input missing from the environment."""


class ConfigError(UploaderError):
    """Upload configuration is incomplete."""


class SourceDirectoryError(UploaderError):
    """Source directory is missing or not a directory."""


class APIError(UploaderError):
    """Hosting API answered with an error status."""

    def __init__(self, status_code: int, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class APIAccessError(UploaderError):
    """Token/site combination rejected by the access probe."""


class UploadError(UploaderError):
    """Upload run failed with a translated API status."""
