from __future__ import annotations

from typing import Any, Callable, Iterable

import pandas as pd

from frame_config.core.types import Field
from frame_config.core.utils import to_python


class ReducerID:
    min = "min"
    max = "max"
    mean = "mean"
    median = "median"
    sum = "sum"
    count = "count"
    range = "range"
    first = "first"
    last = "last"
    first_not_null = "firstNotNull"
    last_not_null = "lastNotNull"
    all_values = "allValues"
    unique_values = "uniqueValues"
    distinct_count = "distinctCount"


def _non_null(series: pd.Series) -> pd.Series:
    return series[series.notna()]


def _min(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.min() if not values.empty else None


def _max(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.max() if not values.empty else None


def _mean(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.mean() if not values.empty else None


def _median(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.median() if not values.empty else None


def _sum(series: pd.Series) -> Any:
    return _non_null(series).sum()


def _range(series: pd.Series) -> Any:
    values = _non_null(series)
    if values.empty:
        return None
    return values.max() - values.min()


def _first(series: pd.Series) -> Any:
    return series.iloc[0] if len(series) else None


def _last(series: pd.Series) -> Any:
    return series.iloc[-1] if len(series) else None


def _first_not_null(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.iloc[0] if not values.empty else None


def _last_not_null(series: pd.Series) -> Any:
    values = _non_null(series)
    return values.iloc[-1] if not values.empty else None


def _unique_values(series: pd.Series) -> list[Any]:
    return [to_python(v) for v in pd.unique(_non_null(series))]


REDUCERS: dict[str, Callable[[pd.Series], Any]] = {
    ReducerID.min: _min,
    ReducerID.max: _max,
    ReducerID.mean: _mean,
    ReducerID.median: _median,
    ReducerID.sum: _sum,
    ReducerID.count: len,
    ReducerID.range: _range,
    ReducerID.first: _first,
    ReducerID.last: _last,
    ReducerID.first_not_null: _first_not_null,
    ReducerID.last_not_null: _last_not_null,
    ReducerID.all_values: lambda series: [to_python(v) for v in series.tolist()],
    ReducerID.unique_values: _unique_values,
    ReducerID.distinct_count: lambda series: int(_non_null(series).nunique()),
}


def available_reducers() -> list[str]:
    return sorted(REDUCERS)


def is_known_reducer(reducer_id: str) -> bool:
    return reducer_id in REDUCERS


def reduce_field(field: Field, reducer_ids: Iterable[str]) -> dict[str, Any]:
    """Reduce a field's values to one scalar per requested reducer.

    Errors raised by pandas (e.g. `mean` over strings) are not caught here.
    """

    reducer_ids = list(reducer_ids)
    for reducer_id in reducer_ids:
        if reducer_id not in REDUCERS:
            raise ValueError(f"Unknown reducer: {reducer_id}")
    # object dtype keeps ints as ints and leaves string columns alone
    series = pd.Series(list(field.values), dtype=object)
    return {
        reducer_id: to_python(REDUCERS[reducer_id](series))
        for reducer_id in reducer_ids
    }
