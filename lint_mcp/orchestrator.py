from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from typing import Any

from lint_mcp.config import Settings
from lint_mcp.discovery import discover_source_files
from lint_mcp.errors import LintMcpError, NoChangesFoundError, RequestError
from lint_mcp.git_scope import collect_changed_files
from lint_mcp.invoker import lint_file, lint_packages, missing_linter_issue
from lint_mcp.models import LintResult, system_issue
from lint_mcp.project import detect_vendor_mode, locate_project_root, partition_files

LOG = logging.getLogger(__name__)

MISSING_LOCATION_HINT = (
    "Missing project location: provide projectPath (absolute path of the project root, recommended) "
    "or files (absolute path of any file inside the project). "
    'Example: {"projectPath": "/Users/you/path/to/project"}.'
)


@dataclass
class LintRequest:
    files: list[str] = field(default_factory=list)
    project_path: str = ""
    check_only_changes: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "LintRequest":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("request arguments must be a JSON object")

        files = data.get("files") or []
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ValueError("'files' must be a list of strings")
        project_path = data.get("projectPath") or ""
        if not isinstance(project_path, str):
            raise ValueError("'projectPath' must be a string")
        check_only_changes = data.get("checkOnlyChanges", True)
        if not isinstance(check_only_changes, bool):
            raise ValueError("'checkOnlyChanges' must be a boolean")

        return cls(files=files, project_path=project_path, check_only_changes=check_only_changes)

    def has_location(self) -> bool:
        return bool(self.project_path.strip()) or bool(self.files and self.files[0].strip())


def resolve_base_dir(request: LintRequest, settings: Settings, logger: logging.Logger | None = None) -> str:
    log = logger or LOG

    if request.project_path.strip():
        path = request.project_path.strip()
        if not os.path.isabs(path):
            raise RequestError(f"projectPath must be an absolute path: {path}")
        path = os.path.normpath(path)
        if not os.path.isdir(path):
            raise RequestError(f"projectPath is invalid or not a directory: {path}")
        return path

    if request.files and request.files[0].strip():
        try:
            return locate_project_root(request.files[0].strip(), marker_file=settings.marker_file, logger=log)
        except LintMcpError as exc:
            raise RequestError(f"Failed to infer project root from files: {exc}") from exc

    return os.path.abspath(os.getcwd())


def _changed_files(base_dir: str, settings: Settings, log: logging.Logger) -> list[str]:
    try:
        return collect_changed_files(
            base_dir,
            source_suffix=settings.source_suffix,
            timeout=settings.git_timeout_seconds,
            logger=log,
        )
    except NoChangesFoundError as exc:
        log.warning("Git change detection failed (%s), scanning every source file", exc)

    try:
        return discover_source_files(
            base_dir,
            source_suffix=settings.source_suffix,
            vendor_dir=settings.vendor_dir,
            logger=log,
        )
    except LintMcpError as exc:
        raise RequestError(
            f"Git change detection found nothing in {base_dir} and the fallback scan failed: {exc}\n\n"
            "Provide projectPath or files to point at the project explicitly."
        ) from exc


def _vendor_mode(root: str, settings: Settings, log: logging.Logger) -> bool:
    return detect_vendor_mode(
        root,
        ignore_file=settings.ignore_file,
        vendor_dir=settings.vendor_dir,
        logger=log,
    )


def run_changed(base_dir: str, settings: Settings, logger: logging.Logger | None = None) -> LintResult:
    log = logger or LOG
    files = _changed_files(base_dir, settings, log)
    groups = partition_files(
        files,
        marker_file=settings.marker_file,
        source_suffix=settings.source_suffix,
        logger=log,
    )

    result = LintResult()
    for root, group in groups.items():
        vendor_mode = _vendor_mode(root, settings, log)
        log.info("Linting %d changed files in %s", len(group.files), root)
        for file in group.files:
            result.extend(lint_file(root, file, vendor_mode, settings, logger=log))
    return result


def run_full(files: list[str], settings: Settings, logger: logging.Logger | None = None) -> LintResult:
    log = logger or LOG
    groups = partition_files(
        files,
        marker_file=settings.marker_file,
        source_suffix=settings.source_suffix,
        logger=log,
    )

    result = LintResult()
    for root, group in groups.items():
        vendor_mode = _vendor_mode(root, settings, log)
        result.extend(lint_packages(root, group.packages, vendor_mode, settings, logger=log))
    return result


def handle_request(
    request: LintRequest | dict[str, Any] | None,
    settings: Settings | None = None,
    logger: logging.Logger | None = None,
) -> LintResult:
    """Answer one lint request. Never raises.

    Every failure, expected or not, comes back as a single ``lint-mcp``
    issue whose filename is ``system``.
    """
    log = logger or LOG
    settings = settings or Settings()

    try:
        if not isinstance(request, LintRequest):
            try:
                request = LintRequest.from_dict(request)
            except ValueError as exc:
                return LintResult(issues=[system_issue(f"Invalid request arguments: {exc}")])
        log.info("Lint request: %s", request)

        if not request.has_location():
            return LintResult(issues=[system_issue(MISSING_LOCATION_HINT)])

        base_dir = resolve_base_dir(request, settings, logger=log)
        log.info("Base directory: %s", base_dir)

        missing = missing_linter_issue(settings)
        if missing is not None:
            return LintResult(issues=[missing])

        if request.check_only_changes:
            return run_changed(base_dir, settings, logger=log)
        return run_full(request.files, settings, logger=log)
    except LintMcpError as exc:
        log.warning("Request failed: %s", exc)
        return LintResult(issues=[system_issue(str(exc))])
    except Exception as exc:
        log.exception("Unexpected error while handling lint request")
        return LintResult(issues=[system_issue(f"Internal error: {exc}")])
