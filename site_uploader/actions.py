"""Workflow runner integration: inputs, outputs, failure state and annotations."""
from __future__ import annotations

import logging
import os
import sys
import uuid
from typing import Dict, Mapping, Optional

from .exceptions import ContextError

logger = logging.getLogger(__name__)


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def is_workflow_runner(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_ACTIONS", "").lower() == "true"


class WorkflowCommandHandler(logging.StreamHandler):
    """
    Render log records as workflow commands.

    DEBUG -> ``::debug::``, WARNING -> ``::warning::``, ERROR and above ->
    ``::error::``. INFO is written as plain text.
    """

    _COMMANDS = (
        (logging.ERROR, "error"),
        (logging.WARNING, "warning"),
        (logging.INFO, None),
        (logging.NOTSET, "debug"),
    )

    def __init__(self, stream=None):
        super().__init__(stream or sys.stdout)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for level, command in self._COMMANDS:
            if record.levelno >= level:
                break
        if command is None:
            return message
        return f"::{command}::{_escape_data(message)}"


class WorkflowRuntime:
    """
    Access to the runner's input and output channels.

    Inputs come from ``INPUT_<NAME>`` variables, falling back to the bare
    upper-cased name so the tool can run outside a workflow. Outputs are
    appended to the file named by ``GITHUB_OUTPUT``.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.outputs: Dict[str, str] = {}
        self.failed = False
        self.failure_message: Optional[str] = None

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ

    def get_input(self, name: str, required: bool = False) -> str:
        key = name.replace(" ", "_").upper()
        value = self._environ.get(f"INPUT_{key}")
        if value is None:
            value = self._environ.get(key, "")
        value = value.strip()
        if required and not value:
            raise ContextError(f"Input required and not supplied: {name}")
        return value

    def add_mask(self, secret: str) -> None:
        """Ask the runner to redact ``secret`` from the job log."""
        if secret and is_workflow_runner(self._environ):
            print(f"::add-mask::{_escape_data(secret)}", flush=True)

    def set_output(self, name: str, value) -> None:
        value = str(value)
        self.outputs[name] = value

        output_file = self._environ.get("GITHUB_OUTPUT")
        if not output_file:
            logger.info("Output %s=%s", name, value)
            return

        with open(output_file, "a", encoding="utf-8") as fh:
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                fh.write(f"{name}={value}\n")

    def set_failed(self, message: str) -> None:
        """Mark the run failed; the process exits non-zero."""
        self.failed = True
        self.failure_message = message
        logger.error(message)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0
