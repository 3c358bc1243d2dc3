"""Pydantic models describing a search run."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..engine.fetcher import DEFAULT_USER_AGENT
from ..engine.matcher import DEFAULT_PATTERN, RegexMatcher
from ..engine.work import DEFAULT_SCHEME

DEFAULT_WORKERS = 20
DEFAULT_INPUT_PATH = Path("urls.txt")
DEFAULT_OUTPUT_PATH = Path("results.txt")


class SearchConfig(BaseModel):
    """Settings for one search run: pool size, pattern, files and transport."""

    workers: int = Field(default=DEFAULT_WORKERS, gt=0)
    pattern: str = DEFAULT_PATTERN
    case_sensitive: bool = False
    input_path: Path = Field(default=DEFAULT_INPUT_PATH)
    output_path: Path = Field(default=DEFAULT_OUTPUT_PATH)
    default_scheme: str = DEFAULT_SCHEME
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout: float | None = Field(default=15.0, gt=0)
    exit_when_idle: bool = True
    log_dir: Path | None = None

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid search pattern {value!r}: {exc}") from exc
        return value

    @field_validator("default_scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        if not re.match(r"^[A-Za-z][A-Za-z0-9+.\-]*://$", value):
            raise ValueError("default_scheme must look like 'http://'")
        return value

    @field_validator("input_path", "output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def build_matcher(self) -> RegexMatcher:
        return RegexMatcher.compile(self.pattern, case_sensitive=self.case_sensitive)

    def resolve_paths(self, base_dir: Path) -> "SearchConfig":
        """Return a copy with relative file paths anchored at ``base_dir``."""

        updates: dict[str, Path] = {}
        for name in ("input_path", "output_path", "log_dir"):
            value = getattr(self, name)
            if value is not None and not value.is_absolute():
                updates[name] = (base_dir / value).resolve()
        return self.model_copy(update=updates)


__all__ = ["DEFAULT_INPUT_PATH", "DEFAULT_OUTPUT_PATH", "DEFAULT_WORKERS", "SearchConfig"]
