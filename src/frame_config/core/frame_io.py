from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from frame_config.core.types import Field, FieldType, Frame
from frame_config.core.utils import to_python


def infer_field_type(series: pd.Series) -> FieldType:
    if pd.api.types.is_bool_dtype(series):
        return FieldType.BOOLEAN
    if pd.api.types.is_datetime64_any_dtype(series):
        return FieldType.TIME
    if pd.api.types.is_numeric_dtype(series):
        return FieldType.NUMBER
    if pd.api.types.is_string_dtype(series) or pd.api.types.is_object_dtype(series):
        sample = series.dropna()
        if not sample.empty and all(isinstance(v, str) for v in sample):
            return FieldType.STRING
    return FieldType.OTHER


def _infer_from_values(values: Iterable[Any]) -> FieldType:
    return infer_field_type(pd.Series(list(values)))


def field_from_dict(data: Mapping[str, Any]) -> Field:
    values = list(data.get("values") or [])
    raw_type = data.get("type")
    field_type = FieldType(raw_type) if raw_type else _infer_from_values(values)
    return Field(
        name=str(data.get("name", "")),
        type=field_type,
        values=tuple(values),
        config=dict(data.get("config") or {}),
    )


def frame_from_dict(data: Mapping[str, Any]) -> Frame:
    """Build a frame from `{refId, name, fields: [{name, type, values, config}]}`."""

    return Frame(
        fields=tuple(field_from_dict(f) for f in data.get("fields") or []),
        ref_id=data.get("refId"),
        name=data.get("name"),
    )


def frame_to_dict(frame: Frame) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "fields": [
            {
                "name": f.name,
                "type": f.type.value,
                "values": [to_python(v) for v in f.values],
                "config": dict(f.config),
            }
            for f in frame.fields
        ],
        "length": frame.length,
    }
    if frame.ref_id is not None:
        payload["refId"] = frame.ref_id
    if frame.name is not None:
        payload["name"] = frame.name
    return payload


def frames_from_payload(payload: Any) -> list[Frame]:
    if isinstance(payload, Mapping):
        payload = payload.get("frames", [payload])
    if not isinstance(payload, list):
        raise ValueError("Expected a list of frames or an object with a 'frames' list")
    return [frame_from_dict(item) for item in payload]


def frame_from_pandas(
    df: pd.DataFrame,
    ref_id: str | None = None,
    name: str | None = None,
    config: Mapping[str, Mapping[str, Any]] | None = None,
) -> Frame:
    config = config or {}
    fields = []
    for col in df.columns:
        series = df[col]
        field_type = infer_field_type(series)
        if field_type == FieldType.TIME:
            # epoch milliseconds, the usual wire form for time fields
            values = [None if pd.isna(v) else int(v.value // 1_000_000) for v in series]
        else:
            values = [None if _is_missing(v) else to_python(v) for v in series]
        fields.append(
            Field(
                name=str(col),
                type=field_type,
                values=tuple(values),
                config=dict(config.get(str(col), {})),
            )
        )
    return Frame(fields=tuple(fields), ref_id=ref_id, name=name)


def _is_missing(value: Any) -> bool:
    return not isinstance(value, (list, tuple, dict)) and bool(pd.isna(value))


def frame_to_pandas(frame: Frame) -> pd.DataFrame:
    data: dict[str, Any] = {}
    for f in frame.fields:
        if f.type == FieldType.TIME:
            data[f.name] = pd.to_datetime(list(f.values), unit="ms")
        else:
            data[f.name] = list(f.values)
    return pd.DataFrame(data)
