"""Command line entry point for the site upload action."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from rich.logging import RichHandler

from .actions import WorkflowCommandHandler, WorkflowRuntime, is_workflow_runner
from .context import get_context
from .exceptions import UploaderError
from .models import UploadStatus
from .orchestrator import FileUploader

logger = logging.getLogger(__name__)


class CLIError(UploaderError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Inside a workflow runner records become workflow commands, otherwise
    they go through rich. Returns the effective level name.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if debug or os.getenv("RUNNER_DEBUG") == "1":
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL")
        level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    if is_workflow_runner():
        handler: logging.Handler = WorkflowCommandHandler()
    else:
        handler = RichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=False,
            show_path=False,
        )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _parse_env_line(raw_line: str) -> Optional[Tuple[str, str]]:
    """Return ``(key, value)`` for an assignment line, None for anything else."""
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line.startswith("#"):
        return None

    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None

    value = value.strip()
    if len(value) >= 2 and value[0] in "'\"" and value[-1] == value[0]:
        value = value[1:-1]
    return key, value


def _load_env_file(env_path: Path, override: bool = False) -> List[str]:
    """
    Export the assignments of a dotenv file into ``os.environ``.

    Variables already set win unless ``override`` is true. Returns the keys
    that were applied.
    """
    if not env_path.is_file():
        reason = "is not a file" if env_path.exists() else "not found"
        raise CLIError(f"env file {reason}: {env_path}")

    try:
        lines = env_path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CLIError(f"could not read env file {env_path}: {exc}") from exc

    applied = []
    for parsed in filter(None, map(_parse_env_line, lines)):
        key, value = parsed
        if override or key not in os.environ:
            os.environ[key] = value
            applied.append(key)
    return applied


def _default_env_file() -> Optional[Path]:
    candidate = Path.cwd() / ".env"
    return candidate if candidate.is_file() else None


async def _handle_signal(
    signame: str,
    uploader: FileUploader,
    main_task: asyncio.Task,
) -> None:
    """
    Turn a termination signal into a cancellation.

    While files are uploading the batch is asked to stop before its next
    file; otherwise, or on a repeated signal, the run is cancelled outright.
    """
    logger.info("Received %s, cancelling file upload", signame)
    cooperative = uploader.status == UploadStatus.UPLOADING and not uploader.cancel_requested
    try:
        await uploader.cancel()
    except Exception as exc:
        logger.error("Failed to cancel upload: %s", exc)

    if not cooperative and not main_task.done():
        main_task.cancel()


def _install_signal_handlers(uploader: FileUploader, main_task: asyncio.Task) -> Set[asyncio.Task]:
    """Route SIGINT/SIGTERM to _handle_signal; returns the set holding its tasks."""
    loop = asyncio.get_running_loop()
    # The loop only keeps weak references to tasks
    pending: Set[asyncio.Task] = set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        def handler(sig=sig):
            task = loop.create_task(_handle_signal(sig.name, uploader, main_task))
            pending.add(task)
            task.add_done_callback(pending.discard)

        try:
            loop.add_signal_handler(sig, handler)
        except (NotImplementedError, RuntimeError):
            # Event loops without signal support (Windows)
            signal.signal(sig, lambda *_args, _h=handler: loop.call_soon_threadsafe(_h))

    return pending


async def _run_upload(runtime: WorkflowRuntime) -> int:
    context = get_context(runtime=runtime)
    uploader = FileUploader(context.config, runtime, context.build)
    _install_signal_handlers(uploader, asyncio.current_task())

    try:
        logger.info("Starting file upload...")
        logger.info("Validating configuration and API access...")
        await uploader.create()

        logger.info("Checking upload result...")
        await uploader.check()
        logger.info("File upload finished")
    except asyncio.CancelledError:
        runtime.set_failed("File upload was terminated")
        return 1
    except Exception as exc:
        runtime.set_failed(f"File upload failed: {exc}")
        try:
            await uploader.cancel()
        except Exception as cancel_exc:
            logger.error("Failed to cancel upload: %s", cancel_exc)
        return 1

    return runtime.exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-upload",
        description=(
            "Upload a built site directory to the hosting API. Settings come from "
            "INPUT_* variables (or API_TOKEN, SITE_ID, API_BASE_URL, SOURCE_DIR)."
        ),
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="site-upload (from site_uploader)",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    _setup_logging(debug=args.debug, log_level=args.log_level)

    runtime = WorkflowRuntime()
    try:
        return asyncio.run(_run_upload(runtime))
    except UploaderError as exc:
        runtime.set_failed(f"File upload failed: {exc}")
        return 1
    except KeyboardInterrupt:
        logger.error("Cancelled.")
        return 1


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
