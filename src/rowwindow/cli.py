"""Typer-based CLI for previewing windows over a JSON data file."""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, cast

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from .application.services import ListRowProvider
from .domain.models.rows import LookupState, RowSlot, column_value
from .domain.models.sort import ColumnSort, SortEntry, SortState
from .errors import OptionsLoadError, OptionsValidationError, ProviderError, RowWindowError
from .gui.viewmodels import EngineStatus, RowWindowEngine
from .settings import TableOptions, load_options
from .strategies import DisplayStrategyKind, PaginationStrategy, VirtualizationStrategy

app = typer.Typer(help="Preview windowed, sorted views of tabular JSON data")

_SORT_MARKERS = {ColumnSort.ASCENDING: "▲", ColumnSort.DESCENDING: "▼"}


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OptionsLoadError, OptionsValidationError) as exc:
            typer.echo(f"Error: invalid options: {exc}", err=True)
            raise typer.Exit(1) from exc
        except ProviderError as exc:
            typer.echo(f"Error: could not load rows: {exc}", err=True)
            raise typer.Exit(1) from exc
        except RowWindowError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _load_rows(path: Path) -> List[dict]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"cannot read {path}: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
        raise typer.BadParameter(f"{path} must contain a JSON array of objects")
    return payload


def _parse_sort(values: Sequence[str]) -> SortState:
    entries: List[SortEntry] = []
    for value in values:
        column, _, direction = value.partition(":")
        try:
            parsed = ColumnSort.parse(direction or "asc")
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        if parsed is ColumnSort.NONE:
            continue
        entries.append(SortEntry(column.strip(), parsed))
    try:
        return SortState(tuple(entries))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _base_options(options_file: Optional[Path]) -> TableOptions:
    if options_file is None:
        return TableOptions()
    return load_options(options_file)


def _columns_for(slots: Sequence[RowSlot], requested: Sequence[str]) -> List[str]:
    if requested:
        return list(requested)
    columns: List[str] = []
    for slot in slots:
        if not slot.is_loaded:
            continue
        for key in slot.row:
            if key not in columns:
                columns.append(key)
    return columns


def _header(column: str, sort: SortState) -> str:
    direction = sort.direction_for(column)
    marker = _SORT_MARKERS.get(direction)
    if marker is None:
        return column
    if len(sort) > 1:
        return f"{column} {marker}{sort.priority_of(column) + 1}"
    return f"{column} {marker}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return escape(str(value))


def _render(engine: RowWindowEngine, slots: Sequence[RowSlot], columns: Sequence[str], summary: str) -> None:
    table = Table()
    table.add_column("#", justify="right", style="dim")
    for column in columns:
        table.add_column(_header(column, engine.sort_state))
    for slot in slots:
        if slot.state is LookupState.HIT:
            cells = [_cell(column_value(slot.row, column, None)) for column in columns]
        elif slot.state is LookupState.ERROR:
            cells = [f"[red]error: {escape(str(slot.error))}"] + [""] * (len(columns) - 1)
        else:
            cells = ["…"] * len(columns)
        table.add_row(str(slot.index), *cells)
    print(table)
    print(f"[dim]{escape(summary)}[/dim]")


def _build_engine(
    data: Path, options: TableOptions, sort: List[str]
) -> RowWindowEngine:
    provider = ListRowProvider(_load_rows(data))
    return RowWindowEngine(provider, options, sort=_parse_sort(sort))


def _ensure_ready(engine: RowWindowEngine) -> None:
    if engine.status is EngineStatus.ERROR and engine.row_count_error is not None:
        raise engine.row_count_error


@app.command()
@_handle_errors
def page(
    data: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of row objects"),
    page_number: int = typer.Option(0, "--page", "-p", min=0, help="Zero-based page number"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    sort: List[str] = typer.Option([], "--sort", "-s", help="column[:asc|desc], repeatable"),
    columns: List[str] = typer.Option([], "--column", "-c", help="Columns to show, repeatable"),
    options_file: Optional[Path] = typer.Option(None, "--options", exists=True, dir_okay=False),
) -> None:
    """Print one page of DATA."""

    options = _base_options(options_file)
    changes: dict[str, Any] = {"display_strategy": DisplayStrategyKind.PAGINATION}
    if page_size is not None:
        changes["page_size"] = page_size
    engine = _build_engine(data, options.with_changes(**changes), sort)
    strategy = cast(PaginationStrategy, engine.strategy)
    strategy.set_page(page_number)

    slots = engine.current_rows()
    _ensure_ready(engine)
    extent = engine.extent()
    row_count = engine.row_count or 0
    shown = strategy.current_page(row_count) + 1 if extent and extent.page_count else 0
    summary = f"Page {shown}/{extent.page_count if extent else 0} ({row_count} rows)"
    _render(engine, slots, _columns_for(slots, columns), summary)


@app.command()
@_handle_errors
def window(
    data: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of row objects"),
    scroll_top: float = typer.Option(0.0, "--scroll-top", min=0.0, help="Scroll offset in pixels"),
    viewport_height: float = typer.Option(240.0, "--viewport-height", min=0.0),
    row_height: Optional[float] = typer.Option(None, "--row-height", min=0.1),
    overscan: Optional[int] = typer.Option(None, "--overscan", min=0),
    sort: List[str] = typer.Option([], "--sort", "-s", help="column[:asc|desc], repeatable"),
    columns: List[str] = typer.Option([], "--column", "-c", help="Columns to show, repeatable"),
    options_file: Optional[Path] = typer.Option(None, "--options", exists=True, dir_okay=False),
) -> None:
    """Print the rows a virtualized table would request for a scroll position."""

    options = _base_options(options_file)
    changes: dict[str, Any] = {"display_strategy": DisplayStrategyKind.VIRTUALIZATION}
    if row_height is not None:
        changes["row_height"] = row_height
    if overscan is not None:
        changes["overscan"] = overscan
    engine = _build_engine(data, options.with_changes(**changes), sort)
    strategy = cast(VirtualizationStrategy, engine.strategy)
    strategy.set_viewport(scroll_top, viewport_height)

    slots = engine.current_rows()
    _ensure_ready(engine)
    required = engine.required_window()
    visible = strategy.visible_range(engine.row_count or 0)
    summary = f"Rows {required.start}-{required.end} of {engine.row_count} (visible {visible.start}-{visible.end})"
    _render(engine, slots, _columns_for(slots, columns), summary)


if __name__ == "__main__":  # pragma: no cover
    app()
