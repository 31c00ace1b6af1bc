from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from lint_mcp.errors import InvalidArgumentError, NoValidPackagesError
from lint_mcp.models import ProjectGroup

LOG = logging.getLogger(__name__)


def locate_project_root(
    path: str,
    marker_file: str = "go.mod",
    logger: logging.Logger | None = None,
) -> str:
    """Return the nearest ancestor directory holding ``marker_file``.

    Falls back to the starting directory when no marker exists anywhere
    up to the filesystem root.
    """
    log = logger or LOG
    if not os.path.isabs(path):
        raise InvalidArgumentError(f"Path must be absolute: {path}")

    start = Path(os.path.normpath(path))
    if not start.is_dir():
        start = start.parent

    for candidate in (start, *start.parents):
        if (candidate / marker_file).is_file():
            log.debug("Found project root %s for %s", candidate, path)
            return str(candidate)

    log.debug("No %s above %s, using %s as project root", marker_file, path, start)
    return str(start)


def detect_vendor_mode(
    root: str,
    ignore_file: str = ".gitignore",
    vendor_dir: str = "vendor",
    logger: logging.Logger | None = None,
) -> bool:
    """True when dependencies are vendored, False for module mode.

    Only a whole-directory ignore rule for ``vendor_dir`` selects module mode.
    """
    log = logger or LOG
    ignore_path = Path(root) / ignore_file
    try:
        content = ignore_path.read_text(errors="ignore")
    except OSError as exc:
        log.info("Cannot read %s (%s), assuming vendor mode", ignore_path, exc)
        return True

    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        clean = line.removesuffix("/").removeprefix("/")
        if clean == vendor_dir:
            log.info("%s ignores %s/ (rule %r), using module mode", ignore_path, vendor_dir, line)
            return False

    log.info("%s has no %s/ directory rule, using vendor mode", ignore_path, vendor_dir)
    return True


def package_id(root: str, file: str) -> str:
    rel = os.path.relpath(os.path.dirname(file), root)
    if rel in ("", "."):
        return "."
    rel = rel.replace(os.sep, "/").replace("\\", "/")
    if not rel.startswith("./"):
        rel = "./" + rel
    return rel


def partition_files(
    files: Iterable[str],
    marker_file: str = "go.mod",
    source_suffix: str = ".go",
    logger: logging.Logger | None = None,
) -> dict[str, ProjectGroup]:
    """Group source files by owning project root, in first-seen order."""
    log = logger or LOG
    groups: dict[str, ProjectGroup] = {}

    for file in files:
        if not file or not file.strip():
            continue
        if not os.path.isabs(file):
            raise InvalidArgumentError(f"File path must be absolute: {file}")

        path = os.path.normpath(file)
        if not os.path.isfile(path):
            log.warning("File %s does not exist, skipping", file)
            continue
        if not path.endswith(source_suffix):
            log.warning("File %s is not a %s file, skipping", file, source_suffix)
            continue

        root = locate_project_root(path, marker_file=marker_file, logger=log)
        group = groups.setdefault(root, ProjectGroup(root=root))
        pkg = package_id(root, path)
        if pkg not in group.packages:
            log.debug("Found package %s (project %s, file %s)", pkg, root, path)
        group.add(path, pkg)

    if not groups:
        raise NoValidPackagesError(f"No valid {source_suffix} packages found")
    return groups
