"""Typer-based command line interface for the catalog engine."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from catalog import (  # type: ignore  # noqa: E402
    BatchResult,
    CatalogError,
    CatalogSchema,
    FileSystemDocumentSource,
    get_preset,
    load_catalog,
    load_schema,
)
from catalog.values import coerce_value, display_value  # type: ignore  # noqa: E402
from query import (  # type: ignore  # noqa: E402
    CatalogSummary,
    Equals,
    FieldFilter,
    Includes,
    count_by_field,
    filter_records,
    paginate,
    sort_by_field,
)
from query.filters import CompoundFilter  # type: ignore  # noqa: E402
from query.sorting import first_element  # type: ignore  # noqa: E402
from utils.config import AppConfig, load_config  # type: ignore  # noqa: E402
from utils.logging import configure_logging, get_logger  # type: ignore  # noqa: E402

app = typer.Typer(add_completion=False)
console = Console()
LOGGER = get_logger(__name__)

_state: Dict[str, Any] = {"verbose": False}


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")) -> None:
    _state["verbose"] = verbose
    configure_logging("DEBUG" if verbose else "INFO")


def _load_settings(config_path: Optional[Path]) -> AppConfig:
    if config_path is None:
        return AppConfig()
    if not config_path.exists():
        raise typer.BadParameter(f"Config {config_path} not found")
    settings = load_config(config_path)
    if not _state["verbose"]:
        configure_logging(settings.log_level)
    return settings


def _resolve_schema(settings: AppConfig, schema_path: Optional[Path], preset: Optional[str]) -> CatalogSchema:
    path = schema_path or settings.schema_path
    try:
        if path is not None:
            if not Path(path).exists():
                raise typer.BadParameter(f"Schema file {path} not found")
            return load_schema(Path(path))
        return get_preset(preset or settings.preset)
    except CatalogError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load(
    root: Optional[Path],
    schema_path: Optional[Path],
    preset: Optional[str],
    config_path: Optional[Path],
) -> Tuple[AppConfig, CatalogSchema, BatchResult]:
    settings = _load_settings(config_path)
    schema = _resolve_schema(settings, schema_path, preset)
    library_root = root or settings.library_root
    if not library_root.exists():
        raise typer.BadParameter(f"Path {library_root} does not exist")
    LOGGER.debug("Loading %s with schema %s", library_root, schema.name)
    source = FileSystemDocumentSource(
        library_root,
        extensions=settings.extensions,
        exclude_dirs=settings.exclude_dirs,
    )
    try:
        batch = load_catalog(source, settings.path_prefix, schema, workers=settings.workers)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return settings, schema, batch


def _parse_filters(raw_filters: List[str], schema: CatalogSchema) -> CompoundFilter:
    filters: List[FieldFilter] = []
    for raw in raw_filters:
        key, sep, text = raw.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Filter {raw!r} must look like field=value")
        key = key.strip()
        definition = schema.get_field(key)
        if definition is None:
            raise typer.BadParameter(f"Unknown field {key!r} in schema {schema.name!r}")
        if definition.is_sequence:
            filters.append(FieldFilter(key, Includes(text.strip())))
            continue
        value = coerce_value(text, definition.type)
        if value is None:
            raise typer.BadParameter(f"Cannot read {text!r} as {definition.type.value} for {key!r}")
        filters.append(FieldFilter(key, Equals(value)))
    return CompoundFilter(tuple(filters), "and")


ROOT_ARGUMENT = typer.Argument(None, help="Directory holding the documents (defaults to library_root).")
SCHEMA_OPTION = typer.Option(None, "--schema", help="YAML schema file.")
PRESET_OPTION = typer.Option(None, "--preset", help="Built-in schema preset name.")
CONFIG_OPTION = typer.Option(None, "--config", help="YAML application config.")


@app.command()
def parse(
    root: Optional[Path] = ROOT_ARGUMENT,
    schema_path: Optional[Path] = SCHEMA_OPTION,
    preset: Optional[str] = PRESET_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Parse every document and report diagnostics and failures."""

    _, schema, batch = _load(root, schema_path, preset, config_path)
    for diagnostic in batch.diagnostics:
        console.print(f"[yellow]{diagnostic.source_location}[/yellow]: {diagnostic.message}")
    for failure in batch.failures:
        console.print(f"[red]{failure.source_location}[/red]: {failure.reason}")
    typer.echo(
        f"Parsed {len(batch.records)} records for {schema.name} "
        f"({len(batch.diagnostics)} diagnostics, {len(batch.failures)} failures)"
    )


@app.command()
def status(
    root: Optional[Path] = ROOT_ARGUMENT,
    schema_path: Optional[Path] = SCHEMA_OPTION,
    preset: Optional[str] = PRESET_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Count records per status value."""

    _, schema, batch = _load(root, schema_path, preset, config_path)
    if schema.status_field_key is None:
        raise typer.BadParameter(f"Schema {schema.name!r} has no status field")
    counts = count_by_field(batch.records, schema.status_field_key, schema)
    grid = Table(title=f"{schema.name}: {schema.status_field.label}")
    grid.add_column("Status")
    grid.add_column("Records", justify="right")
    for value, count in counts.most_common():
        grid.add_row(display_value(value), str(count))
    if counts.absent:
        grid.add_row(display_value(None), str(counts.absent))
    console.print(grid)


@app.command()
def table(
    root: Optional[Path] = ROOT_ARGUMENT,
    schema_path: Optional[Path] = SCHEMA_OPTION,
    preset: Optional[str] = PRESET_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    sort: Optional[str] = typer.Option(None, "--sort", help="Field to sort by."),
    desc: bool = typer.Option(False, "--desc/--asc", help="Sort descending."),
    page: int = typer.Option(0, "--page", min=0, help="Zero based page index."),
    filters: List[str] = typer.Option([], "--filter", help="field=value, may be repeated."),
) -> None:
    """Render the visible fields of the catalog as a table."""

    settings, schema, batch = _load(root, schema_path, preset, config_path)
    records = batch.records
    try:
        if filters:
            records = filter_records(records, _parse_filters(filters, schema), schema)
        sort_key = sort or settings.default_sort_field
        if sort_key:
            definition = schema.require_field(sort_key)
            extractor = first_element if definition.is_sequence else None
            records = sort_by_field(
                records,
                sort_key,
                desc if sort else settings.default_sort_desc,
                extractor=extractor,
                schema=schema,
            )
    except CatalogError as exc:
        raise typer.BadParameter(str(exc)) from exc

    result = paginate(records, page, settings.items_per_page)
    columns = schema.visible_fields()
    grid = Table(title=schema.name)
    for definition in columns:
        grid.add_column(definition.label)
    for record in result.items:
        grid.add_row(*(display_value(record.get_field(d.key), d.type) for d in columns))
    console.print(grid)
    typer.echo(f"Page {result.page_index + 1} of {result.total_pages} ({result.total_items} records)")


@app.command()
def summarize(
    root: Optional[Path] = ROOT_ARGUMENT,
    schema_path: Optional[Path] = SCHEMA_OPTION,
    preset: Optional[str] = PRESET_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Print catalog statistics as JSON."""

    _, schema, batch = _load(root, schema_path, preset, config_path)
    summary = CatalogSummary.from_records(batch.records, schema)
    typer.echo(summary.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
