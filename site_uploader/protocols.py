"""
Protocols (Interfaces) for Dependency Inversion.

Small, focused interfaces so services can be driven by fakes in tests.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class ISiteAPIClient(Protocol):
    """Interface for hosting API operations."""

    async def get(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET request to API."""
        ...

    async def post_file(
        self,
        endpoint: str,
        file_path: Path,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Multipart file POST to API."""
        ...


@runtime_checkable
class IOutputs(Protocol):
    """Interface for reporting a run's outcome."""

    def set_output(self, name: str, value: Any) -> None:
        ...

    def set_failed(self, message: str) -> None:
        ...
