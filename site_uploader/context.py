"""Load upload configuration from the invoking environment."""
from dataclasses import dataclass, fields
from typing import Mapping, Optional
import logging

from .actions import WorkflowRuntime
from .exceptions import ContextError
from .models import (
    BuildInfo,
    UploadConfig,
    DEFAULT_API_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_SOURCE_DIR,
    MAX_TIMEOUT,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Context:
    """Everything a run needs from its environment."""
    config: UploadConfig
    build: BuildInfo


def _read_config(runtime: WorkflowRuntime) -> UploadConfig:
    api_token = runtime.get_input("api_token", required=True)
    site_id = runtime.get_input("site_id", required=True)
    runtime.add_mask(api_token)

    return UploadConfig(
        api_token=api_token,
        site_id=site_id,
        api_base_url=runtime.get_input("api_base_url") or DEFAULT_API_BASE_URL,
        source_dir=runtime.get_input("source_dir") or DEFAULT_SOURCE_DIR,
        # Fixed values, not exposed as inputs
        target_path="/",
        timeout=MAX_TIMEOUT,
        max_retries=DEFAULT_MAX_RETRIES,
    )


def _read_build_info(environ: Mapping[str, str]) -> BuildInfo:
    return BuildInfo(
        workflow_run=environ.get("GITHUB_RUN_ID"),
        repository_nwo=environ.get("GITHUB_REPOSITORY"),
        build_version=environ.get("GITHUB_SHA"),
        build_actor=environ.get("GITHUB_ACTOR"),
    )


def get_context(
    environ: Optional[Mapping[str, str]] = None,
    runtime: Optional[WorkflowRuntime] = None,
) -> Context:
    """
    Build the run context.

    Raises:
        ContextError: a required input is absent, or any config field ended
            up undefined.
    """
    runtime = runtime or WorkflowRuntime(environ)
    config = _read_config(runtime)

    for item in fields(config):
        if getattr(config, item.name) is None:
            raise ContextError(f"{item.name} is undefined. Cannot continue.")

    logger.debug("all variables are set")
    return Context(config=config, build=_read_build_info(runtime.environ))
