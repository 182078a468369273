"""Orchestrator package - coordinates the upload lifecycle."""
from .core import FileUploader

__all__ = ["FileUploader"]
