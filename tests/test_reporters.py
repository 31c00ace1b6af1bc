from lint_mcp.models import Issue, LintResult, Position, Replacement, system_issue
from lint_mcp.reporters import build_markdown_report, build_sarif_report


def _issue() -> Issue:
    return Issue(
        from_linter="gofmt",
        text="File is not `gofmt`-ed",
        severity="warning",
        source_lines=("x := []int{ 1 }",),
        replacement=Replacement(new_lines=("x := []int{1}",)),
        pos=Position(filename="a/a.go", offset=10, line=20, column=3),
    )


def test_markdown_lists_issue_location_and_replacement():
    out = build_markdown_report(LintResult(issues=[_issue()]), "/repo")
    assert "Total Issues:** 1" in out
    assert "`a/a.go:20:3`" in out
    assert "x := []int{1}" in out


def test_markdown_empty_result():
    out = build_markdown_report(LintResult(), "/repo")
    assert "No issues." in out


def test_sarif_maps_levels_and_locations():
    sarif = build_sarif_report(LintResult(issues=[_issue(), system_issue("broken env")]))
    results = sarif["runs"][0]["results"]
    assert results[0]["level"] == "warning"
    region = results[0]["locations"][0]["physicalLocation"]["region"]
    assert region == {"startLine": 20, "startColumn": 3}
    assert results[1]["ruleId"] == "lint-mcp"
    assert results[1]["level"] == "error"
    assert "locations" not in results[1]
    assert [r["id"] for r in sarif["runs"][0]["tool"]["driver"]["rules"]] == ["gofmt", "lint-mcp"]


def test_response_payload_uses_wire_keys():
    data = LintResult(issues=[_issue()]).to_dict()
    issue = data["Issues"][0]
    assert issue["FromLinter"] == "gofmt"
    assert issue["Pos"] == {"Filename": "a/a.go", "Offset": 10, "Line": 20, "Column": 3}
    assert issue["Replacement"] == {"NewLines": ["x := []int{1}"]}
    assert issue["SourceLines"] == ["x := []int{ 1 }"]
    assert issue["ExpectNoLint"] is False
