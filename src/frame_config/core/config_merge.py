from __future__ import annotations

import math
from typing import Any, Iterable, Mapping


def _step_value(step: Mapping[str, Any]) -> float:
    # null is how the -Infinity base step survives a JSON round trip
    value = step.get("value")
    if value is None:
        return -math.inf
    return value


def merge_threshold_steps(*step_lists: Iterable[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
    """Concatenate step lists, sort by value and keep the last step per value.

    The sort is stable, so among equal values the step from the later list wins.
    """

    merged = [dict(step) for steps in step_lists if steps for step in steps]
    merged.sort(key=_step_value)
    deduped: list[dict[str, Any]] = []
    for index, step in enumerate(merged):
        if index + 1 < len(merged) and _step_value(merged[index + 1]) == _step_value(step):
            continue
        deduped.append(step)
    return deduped


def merge_field_config(
    target: Mapping[str, Any] | None, source: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Overlay `source` onto `target`; threshold steps are combined, not replaced."""

    target = target or {}
    source = source or {}
    result: dict[str, Any] = {**target, **source}

    target_thresholds = target.get("thresholds")
    source_thresholds = source.get("thresholds")
    if not target_thresholds and not source_thresholds:
        result.pop("thresholds", None)
        return result

    thresholds = dict(source_thresholds or target_thresholds)
    target_steps = (target_thresholds or {}).get("steps")
    source_steps = (source_thresholds or {}).get("steps")
    if target_steps is not None or source_steps is not None:
        thresholds["steps"] = merge_threshold_steps(target_steps, source_steps)
    result["thresholds"] = thresholds
    return result
