import json
import subprocess
from unittest.mock import patch

import pytest

from lint_mcp.config import Settings
from lint_mcp.errors import ToolInvocationError, ToolNotFoundError
from lint_mcp.invoker import build_args, execute, invoke, lint_file, lint_packages, missing_linter_issue

SETTINGS = Settings()


class _Proc:
    def __init__(self, returncode=0, stdout=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = None


def _payload(*texts: str, filename: str = "a/a.go") -> str:
    issues = [
        {"FromLinter": "govet", "Text": t, "Pos": {"Filename": filename, "Line": 3, "Column": 1}}
        for t in texts
    ]
    return json.dumps({"Issues": issues})


def test_build_args_full_and_vendor():
    assert build_args(["./a"], vendor_mode=True) == [
        "run",
        "--modules-download-mode=vendor",
        "--out-format",
        "json",
        "--print-issued-lines=false",
        "--print-linter-name=true",
        "./a",
    ]


def test_build_args_minimal_with_new_from_rev():
    assert build_args(["x.go"], vendor_mode=False, minimal=True, new_from_rev="HEAD~1") == [
        "run",
        "--out-format",
        "json",
        "--new-from-rev",
        "HEAD~1",
        "x.go",
    ]


@patch("lint_mcp.invoker.subprocess.run")
def test_execute_runs_in_project_root_with_combined_output(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout=_payload("x"))
    run = execute("/repo", ["run"], SETTINGS)
    assert run.returncode == 1
    kwargs = mock_run.call_args.kwargs
    assert kwargs["cwd"] == "/repo"
    assert kwargs["stderr"] == subprocess.STDOUT
    assert kwargs["timeout"] == SETTINGS.timeout_seconds
    assert mock_run.call_args.args[0][0] == "golangci-lint"


@patch("lint_mcp.invoker.subprocess.run")
def test_execute_fails_only_on_silent_nonzero_exit(mock_run):
    mock_run.return_value = _Proc(returncode=3, stdout="")
    with pytest.raises(ToolInvocationError):
        execute("/repo", ["run"], SETTINGS)

    mock_run.return_value = _Proc(returncode=0, stdout="")
    assert execute("/repo", ["run"], SETTINGS).output == ""


def test_execute_timeout_is_invocation_error():
    with patch("lint_mcp.invoker.subprocess.run", side_effect=subprocess.TimeoutExpired("golangci-lint", 1)):
        with pytest.raises(ToolInvocationError):
            execute("/repo", ["run"], SETTINGS)


def test_execute_missing_binary():
    with patch("lint_mcp.invoker.subprocess.run", side_effect=FileNotFoundError()):
        with pytest.raises(ToolNotFoundError):
            execute("/repo", ["run"], SETTINGS)


@patch("lint_mcp.invoker.subprocess.run")
def test_invoke_parses_noisy_nonzero_output(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout="level=warning msg=x\n" + _payload("a", "b") + "\n")
    result = invoke("/repo", ["run"], SETTINGS)
    assert [i.text for i in result.issues] == ["a", "b"]


@patch("lint_mcp.invoker.subprocess.run")
def test_invoke_without_payload_is_empty(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout="level=error msg=\"typechecking error\"\n")
    assert invoke("/repo", ["run"], SETTINGS).issues == []


@patch("lint_mcp.invoker.subprocess.run")
def test_ladder_stops_after_first_attempt_with_issues(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout=_payload("found"))
    result = lint_file("/repo", "/repo/a/a.go", vendor_mode=False, settings=SETTINGS)
    assert [i.text for i in result.issues] == ["found"]
    assert mock_run.call_count == 1
    assert "--print-linter-name=true" in mock_run.call_args.args[0]


@patch("lint_mcp.invoker.subprocess.run")
def test_ladder_falls_through_to_relative_path(mock_run):
    mock_run.side_effect = [
        _Proc(returncode=0, stdout='{"Issues": []}'),
        _Proc(returncode=5, stdout=""),
        _Proc(returncode=1, stdout=_payload("third")),
    ]
    result = lint_file("/repo", "/repo/a/a.go", vendor_mode=True, settings=SETTINGS)

    assert [i.text for i in result.issues] == ["third"]
    calls = [c.args[0] for c in mock_run.call_args_list]
    assert calls[0][-1] == "/repo/a/a.go"
    assert calls[1] == ["golangci-lint", "run", "--modules-download-mode=vendor", "--out-format", "json", "/repo/a/a.go"]
    assert calls[2][-1] == "a/a.go"


@patch("lint_mcp.invoker.subprocess.run")
def test_ladder_skips_relative_attempt_outside_root(mock_run):
    mock_run.return_value = _Proc(returncode=0, stdout='{"Issues": []}')
    result = lint_file("/repo", "/elsewhere/x.go", vendor_mode=False, settings=SETTINGS)
    assert result.issues == []
    assert mock_run.call_count == 2


@patch("lint_mcp.invoker.subprocess.run")
def test_lint_packages_single_invocation(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout=_payload("p"))
    result = lint_packages("/repo", ["./a", "./b"], vendor_mode=False, settings=SETTINGS)
    assert [i.text for i in result.issues] == ["p"]
    assert mock_run.call_count == 1
    assert mock_run.call_args.args[0][-2:] == ["./a", "./b"]


@patch("lint_mcp.invoker.subprocess.run")
def test_lint_packages_reports_unparseable_output_in_band(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout="panic: something went wrong")
    result = lint_packages("/repo", ["."], vendor_mode=False, settings=SETTINGS)
    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.from_linter == "golangci-lint"
    assert issue.pos.filename == "unknown"
    assert "panic: something went wrong" in issue.text
    assert "exit code 1" in issue.text


@patch("lint_mcp.invoker.subprocess.run")
def test_lint_packages_reports_silent_failure_in_band(mock_run):
    mock_run.return_value = _Proc(returncode=2, stdout="")
    result = lint_packages("/repo", ["."], vendor_mode=False, settings=SETTINGS)
    assert result.issues[0].pos.filename == "unknown"


def test_missing_linter_issue_has_install_hint():
    with patch("lint_mcp.invoker.shutil.which", return_value=None):
        issue = missing_linter_issue(SETTINGS)
    assert issue is not None
    assert issue.from_linter == "lint-mcp"
    assert issue.pos.filename == "system"
    assert "go install" in issue.text

    with patch("lint_mcp.invoker.shutil.which", return_value="/usr/bin/golangci-lint"):
        assert missing_linter_issue(SETTINGS) is None


@patch("lint_mcp.invoker.subprocess.run")
def test_deeply_nested_output_is_treated_as_missing_payload(mock_run):
    mock_run.return_value = _Proc(returncode=1, stdout="level=warning msg=x\n" + '{"Issues": ' + "[" * 100000)
    assert invoke("/repo", ["run"], SETTINGS).issues == []

    result = lint_packages("/repo", ["."], vendor_mode=False, settings=SETTINGS)
    assert [i.pos.filename for i in result.issues] == ["unknown"]
    assert "Could not extract JSON" in result.issues[0].text


@patch("lint_mcp.invoker.subprocess.run")
def test_lint_packages_keeps_issue_with_malformed_position(mock_run):
    mock_run.return_value = _Proc(
        returncode=1, stdout='{"Issues": [{"FromLinter": "govet", "Text": "bad pos", "Pos": "oops"}]}'
    )
    result = lint_packages("/repo", ["."], vendor_mode=False, settings=SETTINGS)
    assert [(i.from_linter, i.text, i.pos.filename) for i in result.issues] == [("govet", "bad pos", "")]
