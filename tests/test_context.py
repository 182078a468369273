"""Tests for loading the run context from the environment."""
import pytest

from site_uploader.actions import WorkflowRuntime
from site_uploader.context import get_context
from site_uploader.exceptions import ContextError
from site_uploader.models import UploadConfig


def test_reads_inputs_and_build_info():
    environ = {
        "INPUT_API_TOKEN": "token-1",
        "INPUT_SITE_ID": "site-1",
        "INPUT_API_BASE_URL": "https://hosting.test/api",
        "INPUT_SOURCE_DIR": "public",
        "GITHUB_RUN_ID": "77",
        "GITHUB_REPOSITORY": "acme/site",
        "GITHUB_SHA": "deadbeef",
        "GITHUB_ACTOR": "octo",
    }
    context = get_context(environ)

    assert context.config.api_token == "token-1"
    assert context.config.site_id == "site-1"
    assert context.config.api_base_url == "https://hosting.test/api"
    assert context.config.source_dir == "public"
    assert context.build.workflow_run == "77"
    assert context.build.repository_nwo == "acme/site"
    assert context.build.build_version == "deadbeef"
    assert context.build.build_actor == "octo"


def test_defaults_and_fixed_values():
    context = get_context({"INPUT_API_TOKEN": "t", "INPUT_SITE_ID": "s"})

    assert context.config.api_base_url == "https://api.example.com"
    assert context.config.source_dir == "./dist"
    assert context.config.target_path == "/"
    assert context.config.timeout == 600000
    assert context.config.max_retries == 3
    assert context.build.build_version is None


def test_bare_variable_fallback():
    context = get_context({"API_TOKEN": "t", "SITE_ID": "s", "SOURCE_DIR": "out"})
    assert context.config.site_id == "s"
    assert context.config.source_dir == "out"


def test_input_takes_precedence_over_bare_variable():
    context = get_context({"INPUT_API_TOKEN": "t", "INPUT_SITE_ID": "from-input", "SITE_ID": "bare"})
    assert context.config.site_id == "from-input"


def test_missing_site_id_names_input():
    with pytest.raises(ContextError, match="site_id"):
        get_context({"INPUT_API_TOKEN": "t"})


def test_blank_token_is_missing():
    with pytest.raises(ContextError, match="api_token"):
        get_context({"INPUT_API_TOKEN": "   ", "INPUT_SITE_ID": "s"})


def test_undefined_field_fails_closed(monkeypatch):
    monkeypatch.setattr(
        "site_uploader.context._read_config",
        lambda runtime: UploadConfig(api_token="t", site_id="s", api_base_url=None),
    )
    with pytest.raises(ContextError, match="api_base_url is undefined"):
        get_context({})


def test_token_masked_on_runner(capsys):
    runtime = WorkflowRuntime({"GITHUB_ACTIONS": "true", "INPUT_API_TOKEN": "t0ken", "INPUT_SITE_ID": "s"})
    get_context(runtime=runtime)
    assert "::add-mask::t0ken" in capsys.readouterr().out


def test_token_not_printed_locally(capsys):
    get_context({"INPUT_API_TOKEN": "t0ken", "INPUT_SITE_ID": "s"})
    assert "t0ken" not in capsys.readouterr().out
