from __future__ import annotations

import logging
import os
from typing import Iterable

from lint_mcp.errors import NoSourceFilesError

LOG = logging.getLogger(__name__)

GENERATED_MARKERS = (".pb.go", ".gen.go")
TEST_SUFFIX = "_test.go"


def _is_candidate(name: str, source_suffix: str) -> bool:
    if not name.endswith(source_suffix):
        return False
    if name.endswith(TEST_SUFFIX):
        return False
    return not any(marker in name for marker in GENERATED_MARKERS)


def iter_source_files(root: str, source_suffix: str = ".go", vendor_dir: str = "vendor") -> Iterable[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != vendor_dir and not d.startswith("."))
        for name in sorted(filenames):
            if _is_candidate(name, source_suffix):
                yield os.path.abspath(os.path.join(dirpath, name))


def discover_source_files(
    root: str,
    source_suffix: str = ".go",
    vendor_dir: str = "vendor",
    logger: logging.Logger | None = None,
) -> list[str]:
    """Every non-test, non-generated source file under ``root``.

    Used when git cannot tell what changed. Vendor and hidden directories
    are skipped.
    """
    log = logger or LOG
    log.info("Scanning %s for %s files", root, source_suffix)
    files = list(iter_source_files(root, source_suffix=source_suffix, vendor_dir=vendor_dir))
    if not files:
        raise NoSourceFilesError(f"No {source_suffix} files found under {root}")
    log.info("Found %d %s files under %s", len(files), source_suffix, root)
    return files
