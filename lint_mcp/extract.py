from __future__ import annotations

import json
import logging
from typing import Any

from lint_mcp.models import Issue

LOG = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()


def _parse_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _longest_object(output: str) -> str:
    # Quadratic in the worst case; linter output is assumed to be bounded.
    best = ""
    idx = output.find("{")
    while idx != -1:
        try:
            value, end = _DECODER.raw_decode(output, idx)
        except (ValueError, RecursionError):
            idx = output.find("{", idx + 1)
            continue
        if isinstance(value, dict) and end - idx > len(best):
            best = output[idx:end]
        idx = output.find("{", end)
    return best


def extract_json(output: str, logger: logging.Logger | None = None) -> str:
    """Recover the JSON object embedded in noisy linter output.

    Tries, in order: the whole trimmed output, any single line that is a
    JSON object on its own, and the longest decodable object found by
    scanning from every opening brace. Returns ``""`` when nothing parses.
    """
    log = logger or LOG
    trimmed = output.strip()
    if not trimmed:
        return ""

    if trimmed.startswith("{") and trimmed.endswith("}"):
        if _parse_object(trimmed) is not None:
            return trimmed
        log.debug("Output looks like JSON but does not parse, scanning lines")

    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith("{") and line.endswith("}") and _parse_object(line) is not None:
            log.debug("Found JSON payload on a single line")
            return line

    best = _longest_object(output)
    if best:
        log.debug("Found embedded JSON payload of length %d", len(best))
    else:
        log.debug("No JSON payload in output")
    return best


def parse_issues(payload: str) -> list[Issue]:
    """Decode the ``Issues`` list of a golangci-lint JSON payload."""
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("payload is not a JSON object")
    raw_issues = data.get("Issues") or []
    if not isinstance(raw_issues, list):
        raise ValueError("'Issues' is not a list")
    return [Issue.from_dict(item) for item in raw_issues if isinstance(item, dict)]
