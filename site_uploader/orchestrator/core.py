"""Core orchestrator - owns the upload lifecycle."""
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import APIError, ConfigError, SourceDirectoryError, UploadError
from ..models import BuildInfo, UploadConfig, UploadInfo, UploadStatus, MAX_TIMEOUT
from ..protocols import IOutputs
from ..services.api_client import HTTPAPIClient
from ..services.site_files import SiteFilesService

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _describe_api_error(error: APIError, site_id: str) -> str:
    status = error.status_code
    message = f"File upload failed (status {status})"
    if status == 400:
        message += f" Error details: {error}"
    elif status == 401:
        message += " API token is invalid or expired"
    elif status == 403:
        message += " API token lacks permission, website_hosting permission required"
    elif status == 404:
        message += f" Site id does not exist: {site_id}"
    elif status >= 500:
        message += " Server error, please retry later"
    return message


class FileUploader:
    """
    Uploads a site directory and reports the outcome.

    Status moves pending -> uploading -> success | failed; cancel() can
    force any non-terminal status to cancelled.

    Usage:
        uploader = FileUploader(context.config, runtime, context.build)
        await uploader.create()
        await uploader.check()
    """

    def __init__(
        self,
        config: UploadConfig,
        outputs: IOutputs,
        build: Optional[BuildInfo] = None,
        client_factory: Optional[Callable[[UploadConfig], HTTPAPIClient]] = None,
    ):
        """
        Initialize uploader.

        Args:
            config: Upload configuration
            outputs: Where results and failure state are reported
            build: Builder identity for logging and the upload id
            client_factory: Builds the API client from the config
        """
        self._config = config
        self._outputs = outputs
        self._build = build or BuildInfo()
        self._client_factory = client_factory or self._default_client

        self.api_token = config.api_token
        self.site_id = config.site_id
        self.api_base_url = config.api_base_url
        self.source_dir = config.source_dir
        self.timeout = config.timeout or MAX_TIMEOUT

        self.upload_info: Optional[UploadInfo] = None
        self.start_time: Optional[int] = None
        self.end_time: Optional[int] = None
        self.status = UploadStatus.PENDING
        self._cancel_event = asyncio.Event()

    def _default_client(self, config: UploadConfig) -> HTTPAPIClient:
        return HTTPAPIClient(
            config.api_base_url,
            config.api_token,
            timeout=self.timeout,
            max_retries=config.max_retries,
        )

    async def create(self) -> UploadInfo:
        """
        Validate configuration and upload the source directory.

        Raises:
            ConfigError: a required setting is empty
            SourceDirectoryError: source directory missing or not a directory
            APIAccessError: the access probe was rejected
            UploadError: the API failed with a status code
        """
        if self.timeout > MAX_TIMEOUT:
            logger.warning(
                "Timeout exceeds the allowed maximum, using %d ms", MAX_TIMEOUT
            )
            self.timeout = MAX_TIMEOUT

        try:
            logger.debug("Build version: %s", self._build.build_version)
            logger.debug("Build actor: %s", self._build.build_actor)
            logger.debug("Workflow run: %s", self._build.workflow_run)
            logger.debug("Repository: %s", self._build.repository_nwo)
            logger.debug("Source directory: %s", self.source_dir)

            self.validate_config()

            source_dir = Path(self.source_dir).resolve()
            if not source_dir.exists():
                raise SourceDirectoryError(f"Source directory does not exist: {source_dir}")
            if not source_dir.is_dir():
                raise SourceDirectoryError(f"Source path is not a directory: {source_dir}")

            async with self._client_factory(self._config) as client:
                service = SiteFilesService(client, self.site_id)
                await service.validate_api_access()

                self.status = UploadStatus.UPLOADING
                self.start_time = _now_ms()

                upload_result = await service.upload_directory(
                    str(source_dir), cancel_event=self._cancel_event
                )

            if self.end_time is None:
                self.end_time = _now_ms()
            self.upload_info = UploadInfo(
                result=upload_result,
                id=self._build.build_version or str(_now_ms()),
                start_time=self.start_time,
                end_time=self.end_time,
            )

            if self.status == UploadStatus.CANCELLED:
                self.upload_info.cancelled = True
                logger.warning(
                    "Upload cancelled after %d/%d files",
                    upload_result.success + upload_result.failed, upload_result.total,
                )
            elif upload_result.all_success:
                self.status = UploadStatus.SUCCESS
                logger.info("Upload complete, %d files uploaded", upload_result.success)
            else:
                self.status = UploadStatus.FAILED
                logger.warning(
                    "Upload partially failed: %d/%d files succeeded",
                    upload_result.success, upload_result.total,
                )

            logger.debug(json.dumps(self.upload_info.to_dict(), indent=2))
            return self.upload_info

        except Exception as e:
            self.status = UploadStatus.FAILED
            logger.error("Upload failed: %s", e, exc_info=True)

            if isinstance(e, APIError):
                raise UploadError(_describe_api_error(e, self.site_id)) from e
            raise

    def validate_config(self) -> None:
        """Raise ConfigError naming the first empty setting."""
        if not self.api_token:
            raise ConfigError(
                "API token is not configured, set the api_token input or API_TOKEN environment variable"
            )
        if not self.site_id:
            raise ConfigError(
                "Site id is not configured, set the site_id input or SITE_ID environment variable"
            )
        if not self.api_base_url:
            raise ConfigError(
                "API base URL is not configured, set the api_base_url input or API_BASE_URL environment variable"
            )
        logger.info("Configuration validated")

    async def check(self) -> None:
        """Report the final status through the outputs."""
        if self.upload_info is None:
            self._outputs.set_failed("Upload did not start or upload information is missing")
            return

        try:
            logger.info("Checking upload status...")
            info = self.upload_info

            if self.status == UploadStatus.SUCCESS:
                logger.info("Files uploaded successfully")
                self._outputs.set_output("status", "success")
                self._outputs.set_output("upload_result", json.dumps(info.to_dict()))
                self._outputs.set_output("total_files", str(info.total))
                self._outputs.set_output("success_files", str(info.success))
                self._outputs.set_output("failed_files", str(info.failed))
            elif self.status == UploadStatus.FAILED:
                self._warn_failed_files(info)
                self._outputs.set_failed("File upload failed")
                self._outputs.set_output("status", "failed")
            elif self.status == UploadStatus.CANCELLED:
                self._outputs.set_failed("File upload was cancelled")
                self._outputs.set_output("status", "cancelled")
            else:
                logger.info("Current status: %s", self.status.value)
                self._outputs.set_output("status", self.status.value)

            if info.duration is not None:
                logger.info("Upload took %d seconds", round(info.duration / 1000))
                self._outputs.set_output("duration", str(info.duration))

        except Exception as e:
            logger.error("Failed to check upload status: %s", e)
            self._outputs.set_failed("An error occurred while checking upload status")

    @staticmethod
    def _warn_failed_files(info: UploadInfo) -> None:
        if info.failed == 0:
            return
        logger.warning("Some files failed to upload: %d/%d", info.failed, info.total)
        if info.errors:
            lines = [f"  - {error.file}: {error.error}" for error in info.errors]
            logger.warning("Failed files:\n%s", "\n".join(lines))

    async def cancel(self) -> None:
        """
        Stop the batch before its next file.

        No-op before an upload started or once it finished; an in-flight file
        transfer is not interrupted.
        """
        if self.status == UploadStatus.PENDING or self.status.is_terminal:
            logger.debug("No upload to cancel")
            return

        logger.info("Cancelling file upload...")
        self.status = UploadStatus.CANCELLED
        self._cancel_event.set()
        self.end_time = _now_ms()

        if self.upload_info is not None:
            self.upload_info.cancelled = True
            self.upload_info.end_time = self.end_time

        logger.info("File upload cancelled")

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()
