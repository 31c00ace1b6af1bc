from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any


SYSTEM_LINTER = "lint-mcp"
SYSTEM_FILENAME = "system"
TOOL_LINTER = "golangci-lint"
UNKNOWN_FILENAME = "unknown"


def _lines(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(x) for x in value)


@dataclass(frozen=True)
class Position:
    filename: str = ""
    offset: int = 0
    line: int = 0
    column: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "Filename": self.filename,
            "Offset": self.offset,
            "Line": self.line,
            "Column": self.column,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Position":
        data = data if isinstance(data, dict) else {}
        return cls(
            filename=str(data.get("Filename") or ""),
            offset=int(data.get("Offset") or 0),
            line=int(data.get("Line") or 0),
            column=int(data.get("Column") or 0),
        )


@dataclass(frozen=True)
class Replacement:
    new_lines: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"NewLines": list(self.new_lines)}


@dataclass(frozen=True)
class Issue:
    from_linter: str
    text: str
    pos: Position = field(default_factory=Position)
    severity: str = ""
    source_lines: tuple[str, ...] = ()
    replacement: Replacement | None = None
    expect_no_lint: bool = False
    expected_no_lint_linter: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "FromLinter": self.from_linter,
            "Text": self.text,
            "Severity": self.severity,
            "SourceLines": list(self.source_lines),
            "Replacement": self.replacement.to_dict() if self.replacement else None,
            "Pos": self.pos.to_dict(),
            "ExpectNoLint": self.expect_no_lint,
            "ExpectedNoLintLinter": self.expected_no_lint_linter,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        replacement = None
        raw_replacement = data.get("Replacement")
        if isinstance(raw_replacement, dict):
            replacement = Replacement(new_lines=_lines(raw_replacement.get("NewLines")))
        return cls(
            from_linter=str(data.get("FromLinter") or ""),
            text=str(data.get("Text") or ""),
            pos=Position.from_dict(data.get("Pos")),
            severity=str(data.get("Severity") or ""),
            source_lines=_lines(data.get("SourceLines")),
            replacement=replacement,
            expect_no_lint=bool(data.get("ExpectNoLint", False)),
            expected_no_lint_linter=str(data.get("ExpectedNoLintLinter") or ""),
        )


@dataclass
class LintResult:
    issues: list[Issue] = field(default_factory=list)

    def extend(self, other: "LintResult") -> None:
        self.issues.extend(other.issues)

    def to_dict(self) -> dict[str, Any]:
        return {"Issues": [i.to_dict() for i in self.issues]}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class ChangeScope:
    """Comparison baseline for a repository.

    An empty ``base`` means only the working tree is compared.
    """

    base: str
    strategy: str

    @property
    def working_tree_only(self) -> bool:
        return self.base == ""


@dataclass
class ProjectGroup:
    root: str
    files: list[str] = field(default_factory=list)
    packages: list[str] = field(default_factory=list)

    def add(self, file: str, package: str) -> None:
        if file not in self.files:
            self.files.append(file)
        if package not in self.packages:
            self.packages.append(package)


def system_issue(message: str) -> Issue:
    return Issue(
        from_linter=SYSTEM_LINTER,
        text=message,
        pos=Position(filename=SYSTEM_FILENAME),
    )


def tool_issue(message: str) -> Issue:
    return Issue(
        from_linter=TOOL_LINTER,
        text=message,
        pos=Position(filename=UNKNOWN_FILENAME),
    )
