from __future__ import annotations

import pytest

from frame_config.core.field_mapping import (
    IGNORE_KEY,
    FieldConfigHandler,
    MappingConfigError,
    available_handlers,
    evaluate_field_mappings,
    get_field_config_from_frame,
    lookup_handler,
    register_handler,
)
from frame_config.core.reducers import ReducerID
from frame_config.core.types import FieldMapping
from tests.conftest import make_frame


def test_automatic_mappings_use_field_names(config_frame):
    resolution = evaluate_field_mappings(config_frame, [])

    assert resolution.index["Max"].handler_key == "max"
    assert resolution.index["Max"].reducer_id == ReducerID.max
    assert resolution.index["Max"].automatic
    assert resolution.index["Min"].reducer_id == ReducerID.last_not_null
    assert resolution.index["Names"].handler_key == IGNORE_KEY
    assert resolution.index["Names"].reducer_id == ReducerID.last_not_null
    assert resolution.index["Time"].handler_key == IGNORE_KEY


def test_explicit_mapping_overrides_defaults(config_frame):
    resolution = evaluate_field_mappings(
        config_frame,
        [FieldMapping(field_name="Names", handler_key="displayName", reducer_id=ReducerID.first)],
    )

    entry = resolution.index["Names"]
    assert entry.handler_key == "displayName"
    assert entry.reducer_id == ReducerID.first
    assert not entry.automatic


def test_strict_mode_rejects_unhandled_fields(config_frame):
    with pytest.raises(MappingConfigError):
        evaluate_field_mappings(config_frame, [], strict=True)


def test_unknown_handler_key_is_config_error(config_frame):
    with pytest.raises(MappingConfigError):
        evaluate_field_mappings(
            config_frame, [FieldMapping(field_name="Max", handler_key="nope")]
        )


def test_threshold_keys_resolve_to_threshold_handler():
    assert lookup_handler("threshold1").key == "threshold1"
    assert lookup_handler("threshold7").key == "threshold1"
    assert lookup_handler("DisplayName").key == "displayName"
    assert lookup_handler("") is None
    assert lookup_handler("names") is None


def test_projection_skips_ignored_and_null_values():
    frame = make_frame(
        [
            {"name": "Max", "type": "number", "values": [None]},
            {"name": "Unit", "type": "string", "values": ["ms"]},
            {"name": "Notes", "type": "string", "values": ["free text"]},
        ]
    )
    resolution = evaluate_field_mappings(frame, [])

    assert get_field_config_from_frame(frame, 0, resolution) == {"unit": "ms"}


def test_projection_skips_non_numeric_for_numeric_handlers():
    frame = make_frame(
        [
            {"name": "Min", "type": "string", "values": ["low"]},
            {"name": "Decimals", "type": "string", "values": ["2"]},
        ]
    )
    resolution = evaluate_field_mappings(frame, [])

    config = get_field_config_from_frame(frame, 0, resolution)

    assert "min" not in config
    assert config["decimals"] == 2.0


def test_threshold_default_color_is_red():
    frame = make_frame([{"name": "Limit", "type": "number", "values": [80]}])
    resolution = evaluate_field_mappings(
        frame, [FieldMapping(field_name="Limit", handler_key="threshold2")]
    )

    config = get_field_config_from_frame(frame, 0, resolution)

    assert config["thresholds"] == {
        "mode": "absolute",
        "steps": [{"value": 80, "color": "red"}],
    }


def test_color_handler_sets_fixed_color():
    frame = make_frame([{"name": "Color", "type": "string", "values": ["purple"]}])

    config = get_field_config_from_frame(frame, 0, evaluate_field_mappings(frame, []))

    assert config["color"] == {"mode": "fixed", "fixedColor": "purple"}


def test_value_mapping_rows_line_up_by_index():
    frame = make_frame(
        [
            {"name": "v", "type": "other", "values": [[10, 20.0, None]]},
            {"name": "t", "type": "other", "values": [["ten", None, "nothing"]]},
        ]
    )
    resolution = evaluate_field_mappings(
        frame,
        [
            FieldMapping(field_name="v", handler_key="mappings.value"),
            FieldMapping(field_name="t", handler_key="mappings.text"),
        ],
    )

    config = get_field_config_from_frame(frame, 0, resolution)

    assert config["mappings"] == [
        {
            "type": "value",
            "options": {
                "10": {"index": 0, "text": "ten"},
                "20": {"index": 1},
            },
        }
    ]


def test_value_mapping_handlers_default_to_all_values(mapping_config_frame):
    resolution = evaluate_field_mappings(
        mapping_config_frame, [FieldMapping(field_name="value", handler_key="mappings.value")]
    )

    assert resolution.index["value"].reducer_id == ReducerID.all_values


def test_register_custom_handler():
    def _noop(config, value, context):
        config["noValue"] = str(value)

    register_handler(FieldConfigHandler("noValue", "No value", _noop))
    frame = make_frame([{"name": "Empty", "type": "string", "values": ["n/a"]}])

    config = get_field_config_from_frame(
        frame, 0, evaluate_field_mappings(frame, [FieldMapping(field_name="Empty", handler_key="noValue")])
    )

    assert config == {"noValue": "n/a"}
    assert "noValue" in {h.key for h in available_handlers()}


def test_register_handler_rejects_unknown_reducer():
    with pytest.raises(ValueError):
        register_handler(FieldConfigHandler("broken", "Broken", default_reducer="nope"))


def test_boolean_mapping_values_use_lowercase_keys():
    frame = make_frame(
        [
            {"name": "v", "type": "other", "values": [[True, False]]},
            {"name": "c", "type": "other", "values": [["green", "red"]]},
        ]
    )
    resolution = evaluate_field_mappings(
        frame,
        [
            FieldMapping(field_name="v", handler_key="mappings.value"),
            FieldMapping(field_name="c", handler_key="mappings.color"),
        ],
    )

    config = get_field_config_from_frame(frame, 0, resolution)

    assert config["mappings"][0]["options"] == {
        "true": {"index": 0, "color": "green"},
        "false": {"index": 1, "color": "red"},
    }
