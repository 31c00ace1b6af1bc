from __future__ import annotations

import logging
import os
import re
import subprocess

from lint_mcp.errors import GitScopeError, NoChangesFoundError
from lint_mcp.models import ChangeScope

LOG = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT_SECONDS = 30.0
REMOTE_NAMES = ("origin", "upstream", "remote")
MAIN_BRANCH_CANDIDATES = (
    "origin/main",
    "main",
    "origin/master",
    "master",
    "origin/develop",
    "develop",
)
REFLOG_DEPTH = 15
RECENT_HISTORY = range(2, 6)

_CHECKOUT_RE = re.compile(r"checkout: moving from (\S+) to (\S+)")


def run_git(root: str, *args: str, timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS) -> str:
    cmd = ["git", "-c", "core.quotepath=off", *args]

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(root),
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise GitScopeError("git is not installed or not available in PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitScopeError(f"git {' '.join(args)} timed out after {timeout}s") from exc

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise GitScopeError(
            f"git {' '.join(args)} failed with exit code {proc.returncode}. {stderr}".strip()
        )
    return proc.stdout or ""


def _query(root: str, *args: str, timeout: float, log: logging.Logger) -> str | None:
    try:
        return run_git(root, *args, timeout=timeout)
    except GitScopeError as exc:
        log.debug("%s", exc)
        return None


def ref_exists(root: str, ref: str, timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS) -> bool:
    try:
        run_git(root, "rev-parse", "--verify", "--quiet", ref, timeout=timeout)
    except GitScopeError:
        return False
    return True


def current_branch(
    root: str,
    timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> str:
    """Current branch name, ``HEAD`` when detached, empty string on failure."""
    out = _query(root, "rev-parse", "--abbrev-ref", "HEAD", timeout=timeout, log=logger or LOG)
    return (out or "").strip()


def count_commits(
    root: str,
    since: str,
    timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> int | None:
    out = _query(root, "rev-list", "--count", f"{since}..HEAD", timeout=timeout, log=logger or LOG)
    if out is None:
        return None
    try:
        return int(out.strip())
    except ValueError:
        return None


def _prefer_remote(root: str, branch: str, timeout: float) -> str:
    remote = f"origin/{branch}"
    if ref_exists(root, remote, timeout=timeout):
        return remote
    if ref_exists(root, branch, timeout=timeout):
        return branch
    return ""


def detect_main_branch(
    root: str,
    timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> str:
    """Best guess at the branch the current one was forked from, or ``""``."""
    log = logger or LOG

    default_ref = _query(root, "symbolic-ref", "refs/remotes/origin/HEAD", timeout=timeout, log=log)
    if default_ref:
        parts = default_ref.strip().split("/")
        if len(parts) > 3:
            found = _prefer_remote(root, "/".join(parts[3:]), timeout)
            if found:
                log.info("Primary branch from origin default: %s", found)
                return found

    branch = current_branch(root, timeout=timeout, logger=log)
    if branch:
        reflog = _query(root, "reflog", "--oneline", "-n", str(REFLOG_DEPTH), timeout=timeout, log=log)
        for line in (reflog or "").splitlines():
            match = _CHECKOUT_RE.search(line)
            if not match:
                continue
            source, target = match.groups()
            if target != branch or source == branch:
                continue
            found = _prefer_remote(root, source, timeout)
            if found:
                log.info("Primary branch from reflog: %s", found)
                return found

    for candidate in MAIN_BRANCH_CANDIDATES:
        if ref_exists(root, candidate, timeout=timeout):
            log.info("Primary branch from candidates: %s", candidate)
            return candidate

    log.info("No primary branch found")
    return ""


def _unpushed_scope(root: str, timeout: float, log: logging.Logger) -> ChangeScope | None:
    branch = current_branch(root, timeout=timeout, logger=log)
    if not branch:
        return None
    log.debug("Current branch: %s", branch)

    for remote in REMOTE_NAMES:
        ref = f"{remote}/{branch}"
        if not ref_exists(root, ref, timeout=timeout):
            continue
        count = count_commits(root, ref, timeout=timeout, logger=log)
        if count:
            return ChangeScope(base=ref, strategy=f"unpushed commits ({count})")
    return None


def _divergence_scope(root: str, timeout: float, log: logging.Logger) -> ChangeScope | None:
    main = detect_main_branch(root, timeout=timeout, logger=log)
    if not main:
        return None

    out = _query(root, "merge-base", "HEAD", main, timeout=timeout, log=log)
    merge_base = (out or "").strip()
    if not merge_base:
        return None

    count = count_commits(root, merge_base, timeout=timeout, logger=log)
    if count:
        return ChangeScope(base=merge_base, strategy=f"branch divergence (vs {main}, {count} commits)")
    return None


def _has_worktree_changes(root: str, timeout: float, log: logging.Logger) -> bool:
    out = _query(root, "status", "--porcelain", timeout=timeout, log=log)
    return bool(out and out.strip())


def resolve_base_commit(
    root: str,
    timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> ChangeScope:
    """Pick the baseline that "what changed" is measured against.

    Strategies, first applicable wins: unpushed commits on the current
    branch, divergence from the primary branch, uncommitted work, a few
    commits back in history, and finally the previous commit. Never raises;
    a repository with no prior commit gets the working-tree-only scope.
    """
    log = logger or LOG

    scope = _unpushed_scope(root, timeout, log)
    if scope is None:
        scope = _divergence_scope(root, timeout, log)
    if scope is None and _has_worktree_changes(root, timeout, log):
        scope = ChangeScope(base="", strategy="working tree changes")
    if scope is None:
        for depth in RECENT_HISTORY:
            ref = f"HEAD~{depth}"
            if ref_exists(root, ref, timeout=timeout):
                scope = ChangeScope(base=ref, strategy=f"last {depth} commits")
                break
    if scope is None:
        if ref_exists(root, "HEAD~1", timeout=timeout):
            scope = ChangeScope(base="HEAD~1", strategy="last commit")
        else:
            scope = ChangeScope(base="", strategy="working tree only (no prior commit)")

    log.info("Change scope for %s: %s (base %r)", root, scope.strategy, scope.base)
    return scope


def collect_changed_files(
    root: str,
    source_suffix: str = ".go",
    timeout: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Absolute paths of changed source files under ``root``.

    Union of unstaged, staged, untracked and committed-range changes.
    """
    log = logger or LOG
    scope = resolve_base_commit(root, timeout=timeout, logger=log)

    queries = [
        ("diff", "--name-only", "--relative"),
        ("diff", "--name-only", "--relative", "--cached"),
        ("ls-files", "--others", "--exclude-standard"),
    ]
    if not scope.working_tree_only:
        queries.append(("diff", "--name-only", "--relative", scope.base, "HEAD"))

    changed: set[str] = set()
    for args in queries:
        try:
            out = run_git(root, *args, timeout=timeout)
        except GitScopeError as exc:
            log.warning("%s", exc)
            continue
        for line in out.splitlines():
            name = line.strip()
            if not name or not name.endswith(source_suffix):
                continue
            path = os.path.abspath(os.path.join(root, name))
            if os.path.isfile(path):
                changed.add(path)

    if not changed:
        raise NoChangesFoundError(
            f"No changed {source_suffix} files found in {root} (working tree and commit range are empty)"
        )

    result = sorted(changed)
    log.info("Collected %d changed %s files", len(result), source_suffix)
    return result
