from __future__ import annotations

import json
import logging
from pathlib import Path
import sys
import typer

from lint_mcp.config import Settings, load_env_file, load_settings
from lint_mcp.models import LintResult, system_issue
from lint_mcp.orchestrator import LintRequest, handle_request
from lint_mcp.reporters import write_json_report, write_markdown_report, write_sarif_report

app = typer.Typer(help="lint-mcp: change-scoped golangci-lint runner")


@app.callback()
def main() -> None:
    """lint-mcp command group."""


def _setup(config: str | None, verbose: bool) -> Settings:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    load_env_file(Path.cwd() / ".env")
    try:
        return load_settings(config)
    except (OSError, ValueError) as exc:
        typer.secho(f"Invalid config: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def _emit(
    result: LintResult,
    scanned_path: str,
    json_out: str | None,
    sarif_out: str | None,
    md_out: str | None,
    fail_on_issues: bool,
) -> None:
    typer.echo(result.to_json(indent=2))

    written = []
    if json_out:
        write_json_report(result, Path(json_out))
        written.append(json_out)
    if sarif_out:
        write_sarif_report(result, Path(sarif_out))
        written.append(sarif_out)
    if md_out:
        write_markdown_report(result, Path(md_out), scanned_path)
        written.append(md_out)

    typer.echo(f"Issues total={len(result.issues)}", err=True)
    if written:
        typer.echo(f"Wrote: {', '.join(written)}", err=True)

    if fail_on_issues and result.issues:
        raise typer.Exit(code=1)


@app.command()
def lint(
    project_path: str | None = typer.Option(None, help="Absolute path of the project root"),
    file: list[str] = typer.Option([], "--file", help="Absolute path of a file in the project (repeatable)"),
    check_only_changes: bool = typer.Option(True, "--changes/--full", help="Lint only changed files, or whole packages of --file"),
    config: str | None = typer.Option(None, help="Settings YAML path"),
    json_out: str | None = typer.Option(None, help="Optional JSON report output path"),
    sarif_out: str | None = typer.Option(None, help="Optional SARIF output path"),
    md_out: str | None = typer.Option(None, help="Optional Markdown report output path"),
    fail_on_issues: bool = typer.Option(False, help="Exit with code 1 when any issue is reported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
    settings = _setup(config, verbose)
    request = LintRequest(
        files=list(file),
        project_path=project_path or "",
        check_only_changes=check_only_changes,
    )
    result = handle_request(request, settings)
    _emit(result, project_path or (file[0] if file else "."), json_out, sarif_out, md_out, fail_on_issues)


@app.command()
def request(
    payload: str = typer.Argument("-", help="JSON request payload file, '-' for stdin"),
    config: str | None = typer.Option(None, help="Settings YAML path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
    """Answer a code_lint request payload with a response payload."""
    settings = _setup(config, verbose)
    try:
        raw = sys.stdin.read() if payload == "-" else Path(payload).read_text()
    except OSError as exc:
        typer.secho(f"Cannot read payload: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    try:
        data = json.loads(raw) if raw.strip() else None
    except ValueError as exc:
        result = LintResult(issues=[system_issue(f"Invalid request arguments: {exc}")])
    else:
        result = handle_request(data, settings)
    typer.echo(result.to_json())


if __name__ == "__main__":
    app()
