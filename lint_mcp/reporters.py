from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lint_mcp import __version__
from lint_mcp.models import SYSTEM_LINTER, LintResult


SARIF_LEVEL_MAP = {
    "error": "error",
    "warning": "warning",
    "info": "note",
    "": "warning",
}


def write_json_report(result: LintResult, path: Path) -> None:
    path.write_text(result.to_json(indent=2))


def build_markdown_report(result: LintResult, scanned_path: str) -> str:
    linters = sorted({i.from_linter for i in result.issues})
    files = {i.pos.filename for i in result.issues}
    lines = [
        "# lint-mcp report",
        "",
        f"- **Scanned Path:** `{scanned_path}`",
        f"- **Total Issues:** {len(result.issues)}",
        f"- **Files With Issues:** {len(files)}",
        f"- **Linters:** {', '.join(linters) if linters else 'n/a'}",
        "",
        "## Issues",
        "",
    ]

    if not result.issues:
        lines.append("No issues.")
        return "\n".join(lines)

    for issue in result.issues:
        location = issue.pos.filename
        if issue.pos.line:
            location += f":{issue.pos.line}"
            if issue.pos.column:
                location += f":{issue.pos.column}"
        lines.extend(
            [
                f"### [{issue.from_linter}] `{location}`",
                f"- Severity: **{(issue.severity or 'n/a').upper()}**",
                f"- Message: {issue.text}",
            ]
        )
        if issue.replacement and issue.replacement.new_lines:
            lines.append("- Suggested replacement:")
            lines.append("```go")
            lines.extend(issue.replacement.new_lines)
            lines.append("```")
        lines.append("")

    return "\n".join(lines)


def write_markdown_report(result: LintResult, path: Path, scanned_path: str) -> None:
    path.write_text(build_markdown_report(result, scanned_path))


def build_sarif_report(result: LintResult) -> dict[str, Any]:
    results = []
    for issue in result.issues:
        entry: dict[str, Any] = {
            "ruleId": issue.from_linter,
            "level": SARIF_LEVEL_MAP.get(issue.severity.lower(), "warning"),
            "message": {"text": issue.text},
            "properties": {
                "severity": issue.severity,
                "expect_no_lint": issue.expect_no_lint,
                "expected_no_lint_linter": issue.expected_no_lint_linter,
            },
        }
        if issue.from_linter == SYSTEM_LINTER:
            entry["level"] = "error"
        else:
            entry["locations"] = [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": issue.pos.filename},
                        "region": {
                            "startLine": issue.pos.line or 1,
                            "startColumn": issue.pos.column or 1,
                        },
                    }
                }
            ]
        results.append(entry)

    rules = [{"id": name, "name": name} for name in dict.fromkeys(i.from_linter for i in result.issues)]

    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "lint-mcp",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }


def write_sarif_report(result: LintResult, path: Path) -> None:
    path.write_text(json.dumps(build_sarif_report(result), indent=2))
