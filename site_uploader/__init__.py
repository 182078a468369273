"""
Site uploader - upload a built site directory to a hosting API.

Usage:
    from site_uploader import FileUploader, WorkflowRuntime, get_context

    runtime = WorkflowRuntime()
    context = get_context(runtime=runtime)
    uploader = FileUploader(context.config, runtime, context.build)

    await uploader.create()   # validate, probe access, upload every file
    await uploader.check()    # publish status and counts as outputs

Or from a workflow step / shell:
    API_TOKEN=... SITE_ID=... site-upload
"""
from .actions import WorkflowRuntime
from .context import Context, get_context
from .exceptions import (
    UploaderError,
    ContextError,
    ConfigError,
    SourceDirectoryError,
    APIError,
    APIAccessError,
    UploadError,
)
from .models import (
    UploadConfig,
    BuildInfo,
    FileRecord,
    FileError,
    UploadResult,
    UploadInfo,
    UploadStatus,
)
from .orchestrator import FileUploader
from .services import HTTPAPIClient, SiteFilesService, get_all_files

__version__ = "0.1.0"
__all__ = [
    # Main
    "FileUploader",
    "WorkflowRuntime",
    "Context",
    "get_context",
    # Models
    "UploadConfig",
    "BuildInfo",
    "FileRecord",
    "FileError",
    "UploadResult",
    "UploadInfo",
    "UploadStatus",
    # Services
    "HTTPAPIClient",
    "SiteFilesService",
    "get_all_files",
    # Errors
    "UploaderError",
    "ContextError",
    "ConfigError",
    "SourceDirectoryError",
    "APIError",
    "APIAccessError",
    "UploadError",
]
