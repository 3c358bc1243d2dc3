"""Configuration loading helpers for Site-Searcher."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import SearchConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "site_searcher.yaml"
HOME_ENV_VAR = "SITE_SEARCHER_HOME"
PATH_FIELDS = ("input_path", "output_path", "log_dir")


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def _anchor_overrides(overrides: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    anchored: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in PATH_FIELDS:
            value = Path(value).expanduser()
            if not value.is_absolute():
                value = (base_dir / value).resolve()
        anchored[key] = value
    return anchored


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the searcher home and the paths derived from it."""

    project_root: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if self.project_root is not None:
            root = Path(self.project_root)
        elif env_root:
            root = Path(env_root).expanduser()
        else:
            root = Path.cwd()
        self.project_root = root.resolve()

    def config_path(self) -> Path:
        return self.project_root / CONFIG_FILENAME

    def logs_dir(self) -> Path:
        return self.project_root / "logs"


class ConfigRepository:
    """Load, validate and persist :class:`SearchConfig` files."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()

    def load(self, path: Path | None = None, **overrides: Any) -> SearchConfig:
        """Read the config file (defaults when the implicit one is absent) and apply overrides.

        ``None`` overrides are ignored so CLI options left unset keep file values.
        Relative paths from the file are anchored at the searcher home; relative
        path overrides are anchored at the current working directory.
        """

        target = path or self.locator.config_path()
        if target.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration format: {target.suffix or target.name}")
        if target.exists():
            payload = _read_file(target)
        elif path is not None:
            raise FileNotFoundError(f"Configuration file not found: {path}")
        else:
            payload = {}
        payload.update(_anchor_overrides(overrides, Path.cwd()))
        config = SearchConfig.model_validate(payload)
        if config.log_dir is None:
            config = config.model_copy(update={"log_dir": self.locator.logs_dir()})
        return config.resolve_paths(self.locator.project_root)

    def save(self, config: SearchConfig, path: Path | None = None) -> Path:
        target = path or self.locator.config_path()
        payload = config.model_dump(mode="json", exclude_none=True)
        _write_file(target, payload)
        return target


__all__ = ["CONFIG_EXTENSIONS", "CONFIG_FILENAME", "ConfigLocator", "ConfigRepository", "HOME_ENV_VAR"]
