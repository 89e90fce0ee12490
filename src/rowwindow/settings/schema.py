"""Schema helpers for table options."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from ..config import (
    DEFAULT_OVERSCAN,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETENTION_MARGIN,
    DEFAULT_ROW_HEIGHT,
    OPTIONS_SCHEMA_ID,
)
from ..domain.models.selection import SelectionMode
from ..errors import OptionsLoadError, OptionsValidationError
from ..strategies.base import DisplayStrategyKind

OPTIONS_SCHEMA: dict[str, Any] = {
    "$id": "rowwindow/options.schema.json",
    "type": "object",
    "properties": {
        "schema": {"const": OPTIONS_SCHEMA_ID},
        "display_strategy": {
            "type": "string",
            "enum": [kind.value for kind in DisplayStrategyKind],
        },
        "overscan": {"type": "integer", "minimum": 0},
        "page_size": {"type": "integer", "minimum": 1},
        "selection_mode": {
            "type": "string",
            "enum": [mode.value for mode in SelectionMode],
        },
        "retention_margin": {"type": ["integer", "null"], "minimum": 0},
        "row_height": {"type": "number", "exclusiveMinimum": 0},
        "infinite_scroll_threshold": {"type": ["integer", "null"], "minimum": 0},
        "multi_sort": {"type": "boolean"},
    },
    "additionalProperties": False,
}

DEFAULT_OPTIONS: dict[str, Any] = {
    "schema": OPTIONS_SCHEMA_ID,
    "display_strategy": DisplayStrategyKind.VIRTUALIZATION.value,
    "overscan": DEFAULT_OVERSCAN,
    "page_size": DEFAULT_PAGE_SIZE,
    "selection_mode": SelectionMode.OFF.value,
    "retention_margin": DEFAULT_RETENTION_MARGIN,
    "row_height": DEFAULT_ROW_HEIGHT,
    "infinite_scroll_threshold": None,
    "multi_sort": False,
}

_validator = Draft202012Validator(OPTIONS_SCHEMA)


def _normalise(key: str, value: Any) -> Any:
    """Accept enum members where the schema expects their string values."""

    if isinstance(value, (DisplayStrategyKind, SelectionMode)):
        return value.value
    if key in {"display_strategy", "selection_mode"} and isinstance(value, str):
        return value.strip().lower().replace("-", "_")
    return value


def merge_with_defaults(data: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_OPTIONS` and validate the result."""

    merged = deepcopy(DEFAULT_OPTIONS)
    if data:
        for key, value in data.items():
            merged[key] = _normalise(key, value)
    validate_options(merged)
    return merged


def validate_options(data: Mapping[str, Any]) -> None:
    """Validate *data* against the options schema."""

    try:
        _validator.validate(dict(data))
    except ValidationError as exc:
        location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
        raise OptionsValidationError(f"{location}: {exc.message}") from exc


@dataclass(frozen=True)
class TableOptions:
    """Validated configuration of one table instance."""

    display_strategy: DisplayStrategyKind = DisplayStrategyKind.VIRTUALIZATION
    overscan: int = DEFAULT_OVERSCAN
    page_size: int = DEFAULT_PAGE_SIZE
    selection_mode: SelectionMode = SelectionMode.OFF
    retention_margin: Optional[int] = DEFAULT_RETENTION_MARGIN
    row_height: float = DEFAULT_ROW_HEIGHT
    infinite_scroll_threshold: Optional[int] = None
    multi_sort: bool = False

    def __post_init__(self) -> None:
        validate_options(self.to_mapping())

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> "TableOptions":
        merged = merge_with_defaults(data)
        merged.pop("schema", None)
        return cls(
            display_strategy=DisplayStrategyKind(merged["display_strategy"]),
            overscan=merged["overscan"],
            page_size=merged["page_size"],
            selection_mode=SelectionMode(merged["selection_mode"]),
            retention_margin=merged["retention_margin"],
            row_height=float(merged["row_height"]),
            infinite_scroll_threshold=merged["infinite_scroll_threshold"],
            multi_sort=merged["multi_sort"],
        )

    def to_mapping(self) -> dict[str, Any]:
        payload = {key: _normalise(key, value) for key, value in asdict(self).items()}
        payload["schema"] = OPTIONS_SCHEMA_ID
        return payload

    def with_changes(self, **changes: Any) -> "TableOptions":
        payload = self.to_mapping()
        payload.update(changes)
        return TableOptions.from_mapping(payload)


def load_options(path: Path) -> TableOptions:
    """Read table options from a JSON file."""

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise OptionsLoadError(f"cannot read options from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise OptionsLoadError(f"options file {path} must contain a JSON object")
    return TableOptions.from_mapping(payload)


__all__ = [
    "DEFAULT_OPTIONS",
    "OPTIONS_SCHEMA",
    "TableOptions",
    "load_options",
    "merge_with_defaults",
    "validate_options",
]
