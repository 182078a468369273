"""Services for site uploader."""
from .api_client import HTTPAPIClient
from .file_collector import get_all_files
from .site_files import SiteFilesService

__all__ = [
    "HTTPAPIClient",
    "SiteFilesService",
    "get_all_files",
]
