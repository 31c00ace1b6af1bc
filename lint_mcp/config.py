from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import os
import yaml


DEFAULT_SETTINGS: dict[str, Any] = {
    "linter": "golangci-lint",
    "marker_file": "go.mod",
    "ignore_file": ".gitignore",
    "vendor_dir": "vendor",
    "source_suffix": ".go",
    "timeout_seconds": 300,
    "git_timeout_seconds": 30,
    "new_from_rev": None,
}

ENV_OVERRIDES = {
    "LINT_MCP_LINTER": "linter",
    "LINT_MCP_TIMEOUT_SECONDS": "timeout_seconds",
    "LINT_MCP_GIT_TIMEOUT_SECONDS": "git_timeout_seconds",
    "LINT_MCP_NEW_FROM_REV": "new_from_rev",
}


@dataclass(frozen=True)
class Settings:
    linter: str = DEFAULT_SETTINGS["linter"]
    marker_file: str = DEFAULT_SETTINGS["marker_file"]
    ignore_file: str = DEFAULT_SETTINGS["ignore_file"]
    vendor_dir: str = DEFAULT_SETTINGS["vendor_dir"]
    source_suffix: str = DEFAULT_SETTINGS["source_suffix"]
    timeout_seconds: float = DEFAULT_SETTINGS["timeout_seconds"]
    git_timeout_seconds: float = DEFAULT_SETTINGS["git_timeout_seconds"]
    new_from_rev: str | None = DEFAULT_SETTINGS["new_from_rev"]


def load_env_file(path: Path, override: bool = False) -> list[str]:
    """Apply ``LINT_MCP_*`` settings from a .env file to the process environment.

    Lines may carry an ``export`` prefix and quoted values. Keys other than
    the settings overrides are ignored. Returns the keys that were applied.
    """
    if not path.is_file():
        return []

    applied = []
    for raw in path.read_text(errors="ignore").splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key not in ENV_OVERRIDES:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        if override or key not in os.environ:
            os.environ[key] = value
            applied.append(key)
    return applied


def _coerce(key: str, value: Any) -> Any:
    if key in {"timeout_seconds", "git_timeout_seconds"}:
        try:
            seconds = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid {key}: {value!r}") from exc
        if seconds <= 0:
            raise ValueError(f"{key} must be positive, got {value!r}")
        return seconds
    if key == "new_from_rev":
        text = str(value).strip() if value is not None else ""
        return text or None
    if value is None or not str(value).strip():
        return DEFAULT_SETTINGS[key]
    return str(value).strip()


def load_settings(path: str | None = None) -> Settings:
    values = dict(DEFAULT_SETTINGS)

    if path:
        settings_path = Path(path)
        if not settings_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        data = yaml.safe_load(settings_path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        for key, value in data.items():
            if key in values:
                values[key] = value

    for env_key, key in ENV_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw is not None and raw.strip():
            values[key] = raw.strip()

    return Settings(**{k: _coerce(k, v) for k, v in values.items()})
