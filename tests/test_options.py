from __future__ import annotations

import pytest
from jsonschema import ValidationError

from frame_config.core.field_mapping import MappingConfigError
from frame_config.core.options import DEFAULT_OPTIONS, options_to_dict, resolve_options
from frame_config.core.types import ConfigFromQueryOptions, FieldMapping, MatcherConfig


def test_resolve_options_applies_defaults():
    options = resolve_options(None)

    assert options.config_ref_id == "config"
    assert options.mappings == []
    assert options.apply_to is None


def test_default_options_not_shared():
    options = resolve_options({})
    options.mappings.append(FieldMapping(field_name="x"))

    assert DEFAULT_OPTIONS["mappings"] == []
    assert resolve_options({}).mappings == []


def test_camel_case_payload():
    options = resolve_options(
        {
            "configRefId": "A",
            "mappings": [
                {
                    "fieldName": "Max",
                    "handlerKey": "threshold1",
                    "reducerId": "max",
                    "handlerArguments": {"threshold": {"color": "orange"}},
                },
                {"fieldName": "Min"},
            ],
            "applyTo": {"id": "byName", "options": "Value"},
        }
    )

    assert options.config_ref_id == "A"
    assert options.mappings[0] == FieldMapping(
        field_name="Max",
        handler_key="threshold1",
        reducer_id="max",
        handler_arguments={"threshold": {"color": "orange"}},
    )
    assert options.mappings[1].handler_arguments == {}
    assert options.apply_to == MatcherConfig(id="byName", options="Value")


def test_snake_case_payload():
    options = resolve_options(
        {"config_ref_id": "B", "mappings": [{"field_name": "Min", "handler_key": "decimals"}]}
    )

    assert options.config_ref_id == "B"
    assert options.mappings[0].handler_key == "decimals"


def test_dataclass_round_trip():
    original = ConfigFromQueryOptions(
        config_ref_id="C",
        mappings=[FieldMapping(field_name="Names", handler_key="displayName", reducer_id="first")],
        apply_to=MatcherConfig(id="numeric"),
    )

    payload = options_to_dict(original)

    assert payload["configRefId"] == "C"
    assert payload["mappings"][0]["fieldName"] == "Names"
    assert resolve_options(original) == original


def test_unknown_handler_rejected():
    with pytest.raises(MappingConfigError):
        resolve_options({"mappings": [{"fieldName": "Max", "handlerKey": "maximum"}]})


def test_unknown_reducer_rejected():
    with pytest.raises(MappingConfigError):
        resolve_options({"mappings": [{"fieldName": "Max", "reducerId": "p95"}]})


@pytest.mark.parametrize(
    "payload",
    [
        {"mappings": "Max"},
        {"mappings": [{"handlerKey": "max"}]},
        {"applyTo": {"options": "Value"}},
        {"unexpected": True},
    ],
)
def test_schema_violations(payload):
    with pytest.raises(ValidationError):
        resolve_options(payload)
