"""Tests for workflow runner integration."""
import logging

import pytest

from site_uploader.actions import WorkflowCommandHandler, WorkflowRuntime, is_workflow_runner
from site_uploader.exceptions import ContextError


def _record(level, msg):
    return logging.LogRecord("site_uploader", level, __file__, 1, msg, None, None)


class TestWorkflowCommandHandler:
    def setup_method(self):
        self.handler = WorkflowCommandHandler()
        self.handler.setFormatter(logging.Formatter("%(message)s"))

    def test_warning(self):
        assert self.handler.format(_record(logging.WARNING, "careful")) == "::warning::careful"

    def test_error_escapes_newlines(self):
        formatted = self.handler.format(_record(logging.ERROR, "line1\nline2 100%"))
        assert formatted == "::error::line1%0Aline2 100%25"

    def test_info_is_plain(self):
        assert self.handler.format(_record(logging.INFO, "hello")) == "hello"

    def test_debug(self):
        assert self.handler.format(_record(logging.DEBUG, "details")) == "::debug::details"


class TestWorkflowRuntime:
    def test_get_input(self):
        runtime = WorkflowRuntime({"INPUT_SOURCE_DIR": "  out  "})
        assert runtime.get_input("source_dir") == "out"
        assert runtime.get_input("api_base_url") == ""

    def test_required_input(self):
        runtime = WorkflowRuntime({})
        with pytest.raises(ContextError, match="Input required and not supplied: site_id"):
            runtime.get_input("site_id", required=True)

    def test_set_output_writes_file(self, tmp_path):
        output_file = tmp_path / "output.txt"
        runtime = WorkflowRuntime({"GITHUB_OUTPUT": str(output_file)})

        runtime.set_output("total_files", 2)
        runtime.set_output("status", "success")

        assert output_file.read_text(encoding="utf-8") == "total_files=2\nstatus=success\n"
        assert runtime.outputs == {"total_files": "2", "status": "success"}

    def test_set_output_multiline(self, tmp_path):
        output_file = tmp_path / "output.txt"
        runtime = WorkflowRuntime({"GITHUB_OUTPUT": str(output_file)})

        runtime.set_output("upload_result", "{\n}")

        lines = output_file.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("upload_result<<ghadelimiter_")
        delimiter = lines[0].split("<<", 1)[1]
        assert lines[1:] == ["{", "}", delimiter]

    def test_set_output_without_file(self):
        runtime = WorkflowRuntime({})
        runtime.set_output("status", "failed")
        assert runtime.outputs["status"] == "failed"

    def test_set_failed(self, caplog):
        runtime = WorkflowRuntime({})
        assert runtime.exit_code == 0

        with caplog.at_level(logging.ERROR):
            runtime.set_failed("File upload failed")

        assert runtime.failed is True
        assert runtime.exit_code == 1
        assert runtime.failure_message == "File upload failed"
        assert "File upload failed" in caplog.text


def test_is_workflow_runner():
    assert is_workflow_runner({"GITHUB_ACTIONS": "true"}) is True
    assert is_workflow_runner({}) is False
