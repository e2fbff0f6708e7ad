"""Field-to-config mapping: handler registry, mapping resolution and projection.

A configuration frame column is turned into field configuration by a *handler*
selected through its handler key. Keys come from explicit `FieldMapping`s or,
for unmapped columns, from the column's display name (case-insensitive).
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from frame_config.core.matchers import field_display_name
from frame_config.core.reducers import ReducerID, is_known_reducer
from frame_config.core.types import FieldMapping, Frame
from frame_config.core.utils import is_null, to_number


class MappingConfigError(ValueError):
    """A user mapping names a handler or reducer that does not exist."""


class MappingConsistencyError(RuntimeError):
    """The mapping resolution does not cover a field it was computed for."""


IGNORE_KEY = "__ignore"
VALUE_MAPPING_TYPE = "value"
_THRESHOLD_KEY = re.compile(r"^threshold\d*$", re.IGNORECASE)


@dataclass
class ValueMappingRows:
    """Value/color/text columns collected by row index before assembly."""

    rows: dict[int, dict[str, Any]] = field(default_factory=dict)

    def set(self, index: int, part: str, value: Any) -> None:
        self.rows.setdefault(index, {})[part] = value

    def __bool__(self) -> bool:
        return bool(self.rows)

    def finalize(self, config: dict[str, Any]) -> None:
        options: dict[str, dict[str, Any]] = {}
        for index in sorted(self.rows):
            row = self.rows[index]
            value = row.get("value")
            if is_null(value):
                continue
            result: dict[str, Any] = {"index": index}
            for part in ("text", "color"):
                if not is_null(row.get(part)):
                    result[part] = row[part]
            options[_mapping_key(value)] = result
        if not options:
            return
        mappings = list(config.get("mappings") or [])
        mappings.append({"type": VALUE_MAPPING_TYPE, "options": options})
        config["mappings"] = mappings


def _mapping_key(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class HandlerContext:
    handler_arguments: Mapping[str, Any] = field(default_factory=dict)
    value_mappings: ValueMappingRows = field(default_factory=ValueMappingRows)


Processor = Callable[[dict[str, Any], Any, HandlerContext], None]


@dataclass(frozen=True)
class FieldConfigHandler:
    key: str
    name: str
    processor: Processor | None = None
    target_property: str | None = None
    default_reducer: str | None = None


def _numeric_setter(key: str) -> Processor:
    def _process(config: dict[str, Any], value: Any, context: HandlerContext) -> None:
        numeric = to_number(value)
        if not math.isnan(numeric):
            config[key] = numeric

    return _process


def _text_setter(key: str) -> Processor:
    def _process(config: dict[str, Any], value: Any, context: HandlerContext) -> None:
        config[key] = str(value)

    return _process


def _fixed_color(config: dict[str, Any], value: Any, context: HandlerContext) -> None:
    config["color"] = {"mode": "fixed", "fixedColor": str(value)}


def _threshold(config: dict[str, Any], value: Any, context: HandlerContext) -> None:
    numeric = to_number(value)
    if math.isnan(numeric):
        return
    threshold_args = context.handler_arguments.get("threshold") or {}
    color = threshold_args.get("color") or "red"
    thresholds = config.setdefault("thresholds", {"mode": "absolute", "steps": []})
    steps = list(thresholds.get("steps") or [])
    steps.append({"value": numeric, "color": color})
    steps.sort(key=lambda step: step["value"])
    thresholds["steps"] = steps


def _value_mapping_part(part: str) -> Processor:
    def _process(config: dict[str, Any], value: Any, context: HandlerContext) -> None:
        if not isinstance(value, (list, tuple)):
            return
        for index, item in enumerate(value):
            context.value_mappings.set(index, part, item)

    return _process


_HANDLERS: dict[str, FieldConfigHandler] = {}


def register_handler(handler: FieldConfigHandler) -> FieldConfigHandler:
    if not handler.key:
        raise ValueError("Handler key must not be empty")
    if handler.default_reducer is not None and not is_known_reducer(handler.default_reducer):
        raise ValueError(f"Handler {handler.key} uses unknown reducer {handler.default_reducer}")
    _HANDLERS[handler.key] = handler
    return handler


for _handler in (
    FieldConfigHandler(IGNORE_KEY, "Ignore"),
    FieldConfigHandler("max", "Max", _numeric_setter("max"), default_reducer=ReducerID.max),
    FieldConfigHandler("min", "Min", _numeric_setter("min")),
    FieldConfigHandler("decimals", "Decimals", _numeric_setter("decimals")),
    FieldConfigHandler("unit", "Unit", _text_setter("unit")),
    FieldConfigHandler("displayName", "Display name", _text_setter("displayName")),
    FieldConfigHandler("color", "Color", _fixed_color),
    FieldConfigHandler("threshold1", "Threshold", _threshold, target_property="thresholds"),
    FieldConfigHandler(
        "mappings.value",
        "Value mappings / Value",
        _value_mapping_part("value"),
        target_property="mappings",
        default_reducer=ReducerID.all_values,
    ),
    FieldConfigHandler(
        "mappings.color",
        "Value mappings / Color",
        _value_mapping_part("color"),
        target_property="mappings",
        default_reducer=ReducerID.all_values,
    ),
    FieldConfigHandler(
        "mappings.text",
        "Value mappings / Display text",
        _value_mapping_part("text"),
        target_property="mappings",
        default_reducer=ReducerID.all_values,
    ),
):
    register_handler(_handler)


def available_handlers() -> list[FieldConfigHandler]:
    return [_HANDLERS[key] for key in sorted(_HANDLERS)]


def lookup_handler(key: str | None) -> FieldConfigHandler | None:
    if not key:
        return None
    handler = _HANDLERS.get(key)
    if handler is not None:
        return handler
    if _THRESHOLD_KEY.match(key):
        return _HANDLERS["threshold1"]
    lowered = key.lower()
    for candidate in _HANDLERS.values():
        if candidate.key.lower() == lowered:
            return candidate
    return None


@dataclass(frozen=True)
class MappingEntry:
    handler_key: str
    handler: FieldConfigHandler
    reducer_id: str
    handler_arguments: Mapping[str, Any] = field(default_factory=dict)
    automatic: bool = True


@dataclass
class MappingResolution:
    index: dict[str, MappingEntry] = field(default_factory=dict)

    def entry_for(self, name: str) -> MappingEntry:
        try:
            return self.index[name]
        except KeyError as exc:
            raise MappingConsistencyError(f"No mapping resolved for field {name!r}") from exc


def evaluate_field_mappings(
    frame: Frame, mappings: Iterable[FieldMapping], strict: bool = False
) -> MappingResolution:
    """Resolve the handler and reducer for every field of `frame`.

    With `strict=False` fields that have neither an explicit mapping nor an
    automatic handler are ignored; with `strict=True` they are an error.
    """

    by_name = {m.field_name: m for m in mappings}
    ignore = _HANDLERS[IGNORE_KEY]
    result = MappingResolution()
    for f in frame.fields:
        name = field_display_name(f, frame)
        mapping = by_name.get(name)
        if mapping is None and f.name != name:
            mapping = by_name.get(f.name)

        if mapping is not None and mapping.handler_key:
            handler = lookup_handler(mapping.handler_key)
            if handler is None:
                raise MappingConfigError(
                    f"Unknown handler {mapping.handler_key!r} for field {name!r}"
                )
            handler_key = mapping.handler_key
        else:
            handler = lookup_handler(name)
            if handler is None:
                if strict:
                    raise MappingConfigError(f"No handler for field {name!r}")
                handler = ignore
            handler_key = handler.key

        reducer_id = (
            (mapping.reducer_id if mapping is not None else None)
            or handler.default_reducer
            or ReducerID.last_not_null
        )
        result.index[name] = MappingEntry(
            handler_key=handler_key,
            handler=handler,
            reducer_id=reducer_id,
            handler_arguments=dict(mapping.handler_arguments) if mapping is not None else {},
            automatic=mapping is None,
        )
    return result


def get_field_config_from_frame(
    frame: Frame, row_index: int, resolution: MappingResolution
) -> dict[str, Any]:
    """Project one row of a (reduced) configuration frame into a config fragment."""

    config: dict[str, Any] = {}
    value_mappings = ValueMappingRows()
    for f in frame.fields:
        entry = resolution.entry_for(field_display_name(f, frame))
        if entry.handler.processor is None:
            continue
        if row_index >= len(f.values):
            continue
        value = f.values[row_index]
        if is_null(value):
            continue
        context = HandlerContext(
            handler_arguments=entry.handler_arguments, value_mappings=value_mappings
        )
        entry.handler.processor(config, value, context)

    if value_mappings:
        value_mappings.finalize(config)
    return config
