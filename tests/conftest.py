from __future__ import annotations

import pytest

from frame_config.core.types import Field, FieldType, Frame


def make_frame(fields: list[dict], ref_id: str | None = None, name: str | None = None) -> Frame:
    return Frame(
        fields=tuple(
            Field(
                name=f["name"],
                type=FieldType(f.get("type", "other")),
                values=tuple(f["values"]),
                config=dict(f.get("config", {})),
            )
            for f in fields
        ),
        ref_id=ref_id,
        name=name,
    )


@pytest.fixture()
def config_frame() -> Frame:
    return make_frame(
        [
            {"name": "Time", "type": "time", "values": [1, 2, 3]},
            {"name": "Max", "type": "number", "values": [1, 10, 50]},
            {"name": "Min", "type": "number", "values": [1, 10, 5]},
            {"name": "Names", "type": "string", "values": ["first-name", "middle", "last-name"]},
        ],
        ref_id="A",
    )


@pytest.fixture()
def series_a() -> Frame:
    return make_frame(
        [
            {"name": "Time", "type": "time", "values": [1, 2, 3]},
            {
                "name": "Value",
                "type": "number",
                "values": [2, 3, 4],
                "config": {"displayName": "SeriesA"},
            },
        ]
    )


@pytest.fixture()
def series_b() -> Frame:
    return make_frame(
        [
            {"name": "Time", "type": "time", "values": [1, 2, 3]},
            {
                "name": "Other",
                "type": "number",
                "values": [7, 8, 9],
                "config": {"displayName": "SeriesB", "unit": "ms"},
            },
        ],
        ref_id="B",
    )


@pytest.fixture()
def mapping_config_frame() -> Frame:
    return make_frame(
        [
            {"name": "value", "type": "number", "values": [1, 2, 3]},
            {"name": "threshold", "type": "number", "values": [4, 4, 4]},
            {"name": "text", "type": "string", "values": ["one", "two", "three"]},
            {"name": "color", "type": "string", "values": ["red", "blue", "green"]},
        ],
        ref_id="config",
    )
