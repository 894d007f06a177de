from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest
from loguru import logger
from typer.testing import CliRunner

from catalogcli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger.remove()
    logging.getLogger().handlers.clear()


@pytest.fixture
def library(tmp_path: Path) -> Path:
    works = tmp_path / "library"
    works.mkdir()
    (works / "dagon.md").write_text(
        "---\ntitle: Dagon\nauthor: Lovecraft\nstatus: read\nyear: 1919\nrating: 4\n---\n", encoding="utf-8"
    )
    (works / "hound.md").write_text(
        "---\ntitle: The Hound\nauthor: Lovecraft\nstatus: unread\nyear: 1924\n---\n", encoding="utf-8"
    )
    (works / "broken.md").write_text("---\ntitle: Broken\nyear: soon\n---\n", encoding="utf-8")
    return works


def test_parse_reports_counts(library: Path) -> None:
    result = runner.invoke(app, ["parse", str(library)])
    assert result.exit_code == 0, result.output
    assert "Parsed 3 records" in result.output
    assert "1 diagnostics" in result.output


def test_status_counts(library: Path) -> None:
    result = runner.invoke(app, ["status", str(library)])
    assert result.exit_code == 0, result.output
    assert "read" in result.output
    assert "unread" in result.output


def test_table_sorted_and_filtered(library: Path) -> None:
    result = runner.invoke(app, ["table", str(library), "--sort", "year", "--desc", "--filter", "author=Lovecraft"])
    assert result.exit_code == 0, result.output
    assert result.output.index("Hound") < result.output.index("Dagon")
    assert "Broken" not in result.output
    assert "2 records" in result.output


def test_table_rejects_unknown_filter_field(library: Path) -> None:
    result = runner.invoke(app, ["table", str(library), "--filter", "colour=red"])
    assert result.exit_code != 0


def test_summarize_outputs_json(library: Path) -> None:
    result = runner.invoke(app, ["summarize", str(library), "--preset", "general-library"])
    assert result.exit_code == 0, result.output
    start = result.output.index("{")
    payload = json.loads(result.output[start : result.output.rindex("}") + 1])
    assert payload["total_records"] == 3
    assert payload["status_counts"] == {"read": 1, "unread": 1}
    assert payload["numeric_fields"]["year"]["count"] == 2


def test_schema_file_and_config(tmp_path: Path, library: Path) -> None:
    schema_path = tmp_path / "schema.yml"
    schema_path.write_text(
        "name: Minimal\ntitle_field_key: title\nfields:\n  - {key: title}\n  - {key: year, type: number}\n",
        encoding="utf-8",
    )
    config_path = tmp_path / "config.yml"
    config_path.write_text(f"library_root: {library.as_posix()}\nitems_per_page: 1\n", encoding="utf-8")
    result = runner.invoke(app, ["table", "--schema", str(schema_path), "--config", str(config_path), "--sort", "year"])
    assert result.exit_code == 0, result.output
    assert "Page 1 of 3" in result.output
    assert "Dagon" in result.output


def test_missing_library(tmp_path: Path) -> None:
    result = runner.invoke(app, ["parse", str(tmp_path / "nowhere")])
    assert result.exit_code != 0
