"""File collection for directory uploads."""
import logging
import os
from typing import List, Optional

from ..models import FileRecord

logger = logging.getLogger(__name__)


def get_all_files(dir_path: str, base_path: Optional[str] = None) -> List[FileRecord]:
    """
    Collect every regular file under ``dir_path`` recursively.

    Entries come back in the filesystem's native order. Directories are
    walked but never returned, symlinks are skipped.

    Args:
        dir_path: Folder to scan
        base_path: Root that relative paths are computed against
            (defaults to ``dir_path``)

    Returns:
        List of FileRecord

    Raises:
        OSError: a directory could not be read; no partial result is returned.
    """
    base_path = dir_path if base_path is None else base_path
    files: List[FileRecord] = []

    try:
        with os.scandir(dir_path) as entries:
            for entry in entries:
                full_path = os.path.join(dir_path, entry.name)

                if entry.is_dir(follow_symlinks=False):
                    files.extend(get_all_files(full_path, base_path))
                elif entry.is_file(follow_symlinks=False):
                    relative_path = os.path.relpath(full_path, base_path)
                    files.append(FileRecord(
                        local_path=os.path.abspath(full_path),
                        relative_path=relative_path.replace(os.sep, "/").replace("\\", "/"),
                        name=entry.name,
                        size=entry.stat(follow_symlinks=False).st_size,
                    ))
    except OSError as e:
        logger.error("Failed to read directory %s: %s", dir_path, e)
        raise

    return files
