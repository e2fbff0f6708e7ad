from __future__ import annotations

import copy
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping

from jsonschema import validate

from frame_config.core.field_mapping import MappingConfigError, lookup_handler
from frame_config.core.reducers import is_known_reducer
from frame_config.core.types import ConfigFromQueryOptions, FieldMapping, MatcherConfig
from frame_config.core.utils import read_json

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "config_from_query.schema.json"

DEFAULT_OPTIONS: dict[str, Any] = {
    "configRefId": "config",
    "mappings": [],
}

# snake_case attribute names accepted alongside the camelCase wire form
_ALIASES = {
    "config_ref_id": "configRefId",
    "apply_to": "applyTo",
    "field_name": "fieldName",
    "handler_key": "handlerKey",
    "reducer_id": "reducerId",
    "handler_arguments": "handlerArguments",
}
_OPAQUE_KEYS = {"options", "handlerArguments"}

_schema_cache: dict[Path, dict[str, Any]] = {}


def load_schema(path: Path = SCHEMA_PATH) -> dict[str, Any]:
    if path not in _schema_cache:
        _schema_cache[path] = read_json(path)
    return _schema_cache[path]


def _apply_defaults(schema: Any, instance: Any) -> Any:
    """Fill `default`s from object properties and array items into `instance`."""

    if not isinstance(schema, dict):
        return instance
    if instance is None and "default" in schema:
        instance = copy.deepcopy(schema["default"])

    if isinstance(instance, dict):
        props = schema.get("properties") or {}
        for key in sorted(props):
            prop_schema = props[key]
            if key not in instance and isinstance(prop_schema, dict) and "default" in prop_schema:
                instance[key] = copy.deepcopy(prop_schema["default"])
            if key in instance:
                instance[key] = _apply_defaults(prop_schema, instance[key])
    elif isinstance(instance, list) and isinstance(schema.get("items"), dict):
        for idx, value in enumerate(list(instance)):
            instance[idx] = _apply_defaults(schema["items"], value)
    return instance


def _camelize(value: Any) -> Any:
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            key = _ALIASES.get(key, key)
            # free-form payloads are passed through as given
            out[key] = item if key in _OPAQUE_KEYS else _camelize(item)
        return out
    if isinstance(value, (list, tuple)):
        return [_camelize(item) for item in value]
    return value


def options_to_dict(options: ConfigFromQueryOptions) -> dict[str, Any]:
    return _camelize(asdict(options))


def _check_mappings(mappings: list[FieldMapping]) -> None:
    for mapping in mappings:
        if mapping.handler_key and lookup_handler(mapping.handler_key) is None:
            raise MappingConfigError(
                f"Unknown handler {mapping.handler_key!r} for field {mapping.field_name!r}"
            )
        if mapping.reducer_id and not is_known_reducer(mapping.reducer_id):
            raise MappingConfigError(
                f"Unknown reducer {mapping.reducer_id!r} for field {mapping.field_name!r}"
            )


def resolve_options(
    raw: ConfigFromQueryOptions | Mapping[str, Any] | None,
) -> ConfigFromQueryOptions:
    """Apply schema defaults, validate, and build typed options.

    Raises `jsonschema.ValidationError` for malformed input and
    `MappingConfigError` for unknown handler keys or reducer ids.
    """

    if isinstance(raw, ConfigFromQueryOptions):
        raw = options_to_dict(raw)
    resolved = _camelize(copy.deepcopy(dict(raw or {})))
    schema = load_schema()
    _apply_defaults(schema, resolved)
    validate(instance=resolved, schema=schema)

    mappings = [
        FieldMapping(
            field_name=item["fieldName"],
            handler_key=item.get("handlerKey"),
            reducer_id=item.get("reducerId"),
            handler_arguments=dict(item.get("handlerArguments") or {}),
        )
        for item in resolved["mappings"]
    ]
    _check_mappings(mappings)

    apply_to = resolved.get("applyTo")
    return ConfigFromQueryOptions(
        config_ref_id=resolved.get("configRefId"),
        mappings=mappings,
        apply_to=MatcherConfig(id=apply_to["id"], options=apply_to.get("options")) if apply_to else None,
    )
