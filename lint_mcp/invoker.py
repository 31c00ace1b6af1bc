from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import shutil
import subprocess

from lint_mcp.config import Settings
from lint_mcp.errors import ToolInvocationError, ToolNotFoundError
from lint_mcp.extract import extract_json, parse_issues
from lint_mcp.models import Issue, LintResult, system_issue, tool_issue

LOG = logging.getLogger(__name__)

VENDOR_FLAG = "--modules-download-mode=vendor"
FULL_OUTPUT_FLAGS = ("--out-format", "json", "--print-issued-lines=false", "--print-linter-name=true")
MINIMAL_OUTPUT_FLAGS = ("--out-format", "json")
OUTPUT_PREVIEW_CHARS = 200

INSTALL_HINT = """golangci-lint is not installed. Install golangci-lint v1.52.2 first:

Option 1 - go install:
go install github.com/golangci/golangci-lint/cmd/golangci-lint@v1.52.2

Option 2 - package manager:
# macOS (Homebrew)
brew install golangci-lint
brew pin golangci-lint && brew install golangci-lint@1.52.2

Option 3 - install script:
curl -sSfL https://raw.githubusercontent.com/golangci/golangci-lint/master/install.sh | sh -s -- -b $(go env GOPATH)/bin v1.52.2

Make sure golangci-lint is on PATH afterwards."""


@dataclass(frozen=True)
class ToolRun:
    output: str
    returncode: int


def missing_linter_issue(settings: Settings) -> Issue | None:
    if shutil.which(settings.linter) is None:
        return system_issue(INSTALL_HINT)
    return None


def build_args(
    targets: list[str],
    vendor_mode: bool,
    minimal: bool = False,
    new_from_rev: str | None = None,
) -> list[str]:
    args = ["run"]
    if vendor_mode:
        args.append(VENDOR_FLAG)
    args.extend(MINIMAL_OUTPUT_FLAGS if minimal else FULL_OUTPUT_FLAGS)
    if new_from_rev:
        args.extend(["--new-from-rev", new_from_rev])
    args.extend(targets)
    return args


def execute(
    root: str,
    args: list[str],
    settings: Settings,
    logger: logging.Logger | None = None,
) -> ToolRun:
    """Run the linter in ``root`` and capture combined stdout and stderr.

    A non-zero exit is normal when issues are found; only an exit with no
    output at all is treated as a failure.
    """
    log = logger or LOG
    cmd = [settings.linter, *args]
    log.info("Running %s (cwd %s)", " ".join(cmd), root)

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(root),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            check=False,
            timeout=settings.timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(
            f"{settings.linter} command not found. Make sure it is installed and on PATH."
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolInvocationError(
            f"{settings.linter} timed out after {settings.timeout_seconds}s"
        ) from exc

    output = proc.stdout or ""
    log.debug("%s exited with %d, %d bytes of output", settings.linter, proc.returncode, len(output))
    if not output and proc.returncode != 0:
        raise ToolInvocationError(
            f"{settings.linter} failed with exit code {proc.returncode} and no output"
        )
    return ToolRun(output=output, returncode=proc.returncode)


def invoke(
    root: str,
    args: list[str],
    settings: Settings,
    logger: logging.Logger | None = None,
) -> LintResult:
    log = logger or LOG
    run = execute(root, args, settings, logger=log)
    payload = extract_json(run.output, logger=log)
    if not payload:
        log.warning(
            "No JSON payload in %s output (exit code %d): %s",
            settings.linter,
            run.returncode,
            run.output[:OUTPUT_PREVIEW_CHARS],
        )
        return LintResult()
    try:
        issues = parse_issues(payload)
    except (ValueError, TypeError, AttributeError) as exc:
        log.warning("Cannot decode %s payload: %s", settings.linter, exc)
        return LintResult()
    log.info("Parsed %d issues", len(issues))
    return LintResult(issues=issues)


def lint_packages(
    root: str,
    packages: list[str],
    vendor_mode: bool,
    settings: Settings,
    logger: logging.Logger | None = None,
) -> LintResult:
    """Lint whole packages of one project in a single invocation.

    Failures are reported in-band as issues instead of raised.
    """
    log = logger or LOG
    log.info("Linting packages %s in %s (vendor mode: %s)", packages, root, vendor_mode)
    args = build_args(packages, vendor_mode, new_from_rev=settings.new_from_rev)

    try:
        run = execute(root, args, settings, logger=log)
    except ToolInvocationError as exc:
        return LintResult(issues=[tool_issue(f"{settings.linter} failed: {exc}")])

    if not run.output:
        log.info("%s produced no output, no issues", settings.linter)
        return LintResult()

    payload = extract_json(run.output, logger=log)
    if not payload:
        preview = run.output[:OUTPUT_PREVIEW_CHARS]
        return LintResult(issues=[tool_issue(
            f"Could not extract JSON from {settings.linter} output (exit code {run.returncode})\n"
            f"First {OUTPUT_PREVIEW_CHARS} characters of output: {preview}"
        )])

    try:
        issues = parse_issues(payload)
    except (ValueError, TypeError, AttributeError) as exc:
        return LintResult(issues=[tool_issue(
            f"Could not decode {settings.linter} JSON output: {exc}"
        )])

    log.info("Parsed %d issues", len(issues))
    return LintResult(issues=issues)


def _relative_target(root: str, file: str) -> str | None:
    try:
        rel = os.path.relpath(file, root)
    except ValueError:
        return None
    if rel == ".." or rel.startswith(".." + os.sep) or os.path.isabs(rel):
        return None
    return rel


def lint_file(
    root: str,
    file: str,
    vendor_mode: bool,
    settings: Settings,
    logger: logging.Logger | None = None,
) -> LintResult:
    """Lint one file, retrying with simpler argument forms.

    golangci-lint resolves package context differently depending on flags
    and path form, so the first attempt that reports issues wins. A file
    where every attempt reports nothing is clean.
    """
    log = logger or LOG
    attempts = [
        build_args([file], vendor_mode),
        build_args([file], vendor_mode, minimal=True),
    ]
    rel = _relative_target(root, file)
    if rel is not None:
        attempts.append(build_args([rel], vendor_mode, minimal=True))

    for number, args in enumerate(attempts, start=1):
        try:
            result = invoke(root, args, settings, logger=log)
        except ToolInvocationError as exc:
            log.warning("Attempt %d for %s failed: %s", number, file, exc)
            continue
        if result.issues:
            log.info("Attempt %d for %s found %d issues", number, file, len(result.issues))
            return result

    log.info("No issues in %s after %d attempts (vendor mode: %s)", file, len(attempts), vendor_mode)
    return LintResult()
