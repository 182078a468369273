"""
Site Files Service - Single Responsibility: move files onto a hosted site.

Wraps the hosting API's file endpoints and runs directory batches on top of
them.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from ..exceptions import APIError, APIAccessError
from ..models import UploadResult, MAX_FILE_SIZE, SIZE_LIMIT_DESCRIPTION
from ..protocols import ISiteAPIClient
from .file_collector import get_all_files

logger = logging.getLogger(__name__)


class SiteFilesService:
    """
    File operations for a single site.

    Usage:
        async with HTTPAPIClient(base_url, token) as client:
            service = SiteFilesService(client, site_id)
            await service.validate_api_access()
            result = await service.upload_directory("./dist")
    """

    def __init__(self, api_client: ISiteAPIClient, site_id: str, max_file_size: int = MAX_FILE_SIZE):
        """
        Initialize service.

        Args:
            api_client: HTTP client for API calls
            site_id: Hosting site identifier
            max_file_size: Files above this size are not sent
        """
        self._api = api_client
        self._site_id = site_id
        self._max_file_size = max_file_size

    @property
    def _files_endpoint(self) -> str:
        return f"/sites/{self._site_id}/files"

    async def list_files(self, path: str = "") -> Any:
        """List entries of a site directory (root by default)."""
        logger.info("Listing site files: %s", path or "(root)")
        try:
            response = await self._api.get(self._files_endpoint, params={"path": path})
        except Exception as e:
            logger.error("Failed to list files: %s", e)
            raise
        return self._decode(response)

    @staticmethod
    def _decode(response) -> Any:
        # Empty or non-JSON bodies are returned as text
        try:
            return response.json()
        except ValueError:
            return response.text

    async def upload_file(self, file_path: str, upload_path: str = "") -> Any:
        """
        Upload one file into ``upload_path`` on the site.

        Raises:
            FileNotFoundError: local file does not exist
            APIError: the API rejected the upload
        """
        path = Path(file_path)
        try:
            if not path.is_file():
                raise FileNotFoundError(f"File does not exist: {file_path}")

            logger.info(
                "Uploading %s (%d bytes) to %s",
                path.name, path.stat().st_size, upload_path or "(root)",
            )
            data = {"path": upload_path} if upload_path else None
            response = await self._api.post_file(
                self._files_endpoint,
                path,
                params={"path": upload_path},
                data=data,
            )
        except Exception as e:
            logger.error("Failed to upload %s: %s", path.name, e)
            raise

        logger.info("Uploaded %s", path.name)
        return self._decode(response)

    async def upload_directory(
        self,
        source_dir: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadResult:
        """
        Upload every file under ``source_dir``, keeping its directory layout.

        Files go one at a time. A failing file is recorded and the batch moves
        on. ``cancel_event`` is checked before each file; once set, the
        remaining files are left alone.
        """
        logger.info("Uploading directory: %s", source_dir)

        try:
            files = get_all_files(source_dir)
        except Exception as e:
            logger.error("Batch upload failed: %s", e)
            raise

        result = UploadResult(total=len(files))
        logger.info("Found %d files to upload", len(files))

        for record in files:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "Upload cancelled, %d files not uploaded",
                    result.total - result.success - result.failed,
                )
                result.cancelled = True
                break

            try:
                if record.size > self._max_file_size:
                    raise ValueError(
                        f"File exceeds the {SIZE_LIMIT_DESCRIPTION} size limit ({record.size} bytes)"
                    )
                await self.upload_file(record.local_path, record.upload_path)
                result.record_success()
            except Exception as e:
                error_msg = str(e) or type(e).__name__
                result.record_failure(record.relative_path, error_msg)
                logger.warning("Skipping %s: %s", record.relative_path, error_msg)

        logger.info("Upload finished: %d/%d files succeeded", result.success, result.total)
        if result.failed > 0:
            logger.warning("%d files failed", result.failed)

        return result

    async def validate_api_access(self) -> bool:
        """
        Probe the API with a listing call.

        Raises:
            APIAccessError: token invalid (401), lacking permission (403), or
                unknown site (404)
        """
        logger.info("Validating API access...")
        try:
            await self.list_files()
        except APIError as e:
            logger.error("API access validation failed: %s", e)
            if e.status_code == 401:
                raise APIAccessError("API token is invalid or expired") from e
            if e.status_code == 403:
                raise APIAccessError(
                    "API token lacks permission, website_hosting permission required"
                ) from e
            if e.status_code == 404:
                raise APIAccessError(f"Site id does not exist: {self._site_id}") from e
            raise
        except Exception as e:
            logger.error("API access validation failed: %s", e)
            raise

        logger.info("API access validated")
        return True
