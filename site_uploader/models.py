"""
Models for site uploader.

Config is immutable; upload results are accumulated during a single pass.
"""
from dataclasses import dataclass, field, asdict
from pathlib import PurePosixPath
from typing import Optional, List, Dict, Any
from enum import Enum


MAX_TIMEOUT = 600000  # 10 minutes, in milliseconds
MAX_FILE_SIZE = 100 * 1024 * 1024
SIZE_LIMIT_DESCRIPTION = "100 MB"
DEFAULT_MAX_RETRIES = 3
DEFAULT_API_BASE_URL = "https://api.example.com"
DEFAULT_SOURCE_DIR = "./dist"


class UploadStatus(Enum):
    """Upload lifecycle status."""
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.SUCCESS, UploadStatus.FAILED, UploadStatus.CANCELLED)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for one invocation."""
    api_token: str = field(repr=False)
    site_id: str
    api_base_url: str = DEFAULT_API_BASE_URL
    source_dir: str = DEFAULT_SOURCE_DIR
    target_path: str = "/"
    timeout: int = MAX_TIMEOUT  # milliseconds
    max_retries: int = DEFAULT_MAX_RETRIES


@dataclass(frozen=True)
class BuildInfo:
    """Builder identity, used for logging only."""
    workflow_run: Optional[str] = None
    repository_nwo: Optional[str] = None
    build_version: Optional[str] = None
    build_actor: Optional[str] = None


@dataclass(frozen=True)
class FileRecord:
    """A regular file found under the source directory."""
    local_path: str
    relative_path: str  # always "/" separated
    name: str
    size: int

    @property
    def upload_path(self) -> str:
        """Remote directory for this file, "" for the site root."""
        parent = str(PurePosixPath(self.relative_path).parent)
        return "" if parent == "." else parent


@dataclass(frozen=True)
class FileError:
    """A file that failed to upload."""
    file: str
    error: str


@dataclass
class UploadResult:
    """Counters for one upload pass."""
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: List[FileError] = field(default_factory=list)
    cancelled: bool = False

    def record_success(self) -> None:
        self.success += 1

    def record_failure(self, file: str, error: str) -> None:
        self.failed += 1
        self.errors.append(FileError(file=file, error=error))

    @property
    def all_success(self) -> bool:
        return self.failed == 0


@dataclass
class UploadInfo:
    """Upload result stamped with an id and timing."""
    result: UploadResult
    id: str
    start_time: int  # epoch milliseconds
    end_time: Optional[int] = None

    @property
    def total(self) -> int:
        return self.result.total

    @property
    def success(self) -> int:
        return self.result.success

    @property
    def failed(self) -> int:
        return self.result.failed

    @property
    def errors(self) -> List[FileError]:
        return self.result.errors

    @property
    def cancelled(self) -> bool:
        return self.result.cancelled

    @cancelled.setter
    def cancelled(self, value: bool) -> None:
        self.result.cancelled = value

    @property
    def duration(self) -> Optional[int]:
        """Elapsed milliseconds, None while unfinished."""
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form exposed as the ``upload_result`` output."""
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "errors": [asdict(error) for error in self.errors],
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "cancelled": self.cancelled,
        }
