"""Configuration helpers for the catalog command line and hosts."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator


class AppConfig(BaseModel):
    """Application level configuration."""

    library_root: Path = Field(default=Path("."))
    path_prefix: str = ""
    schema_path: Optional[Path] = None
    preset: str = "general-library"
    extensions: Tuple[str, ...] = (".md",)
    exclude_dirs: Tuple[str, ...] = (".git", ".obsidian", ".trash", "__pycache__")
    items_per_page: int = Field(default=25, ge=1)
    default_sort_field: Optional[str] = None
    default_sort_desc: bool = False
    workers: int = Field(default=1, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if value.upper() not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}; got {value!r}")
        return value.upper()


def load_config(path: Path) -> AppConfig:
    """Load configuration from a YAML file; a missing file yields defaults."""

    data: Dict[str, Any] = {}
    if path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return AppConfig(**data)
