from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Sequence

from frame_config.core.types import Field, FieldMatcher, FieldType, Frame, MatcherConfig


class FieldMatcherID:
    numeric = "numeric"
    time = "time"
    by_name = "byName"
    by_names = "byNames"
    by_regexp = "byRegexp"
    by_type = "byType"
    by_frame_ref_id = "byFrameRefID"
    first = "first"
    first_time_field = "firstTimeField"


def field_display_name(field: Field, frame: Frame | None = None) -> str:
    display_name = field.config.get("displayName") if field.config else None
    if isinstance(display_name, str) and display_name:
        return display_name
    if field.name:
        return field.name
    if frame is not None and frame.name:
        return frame.name
    return "Value"


def _by_type(field_type: FieldType) -> FieldMatcher:
    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return field.type == field_type

    return _matches


def _by_name(options: Any) -> FieldMatcher:
    if not isinstance(options, str) or not options:
        raise ValueError("byName matcher requires a field name")

    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return options in (field.name, field_display_name(field, frame))

    return _matches


def _by_names(options: Any) -> FieldMatcher:
    if isinstance(options, Mapping):
        names = options.get("names") or []
    else:
        names = options or []
    if isinstance(names, str):
        names = [names]
    wanted = {str(n) for n in names}

    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return field.name in wanted or field_display_name(field, frame) in wanted

    return _matches


def _by_regexp(options: Any) -> FieldMatcher:
    if not isinstance(options, str) or not options:
        raise ValueError("byRegexp matcher requires a pattern")
    # Accept the /pattern/flags form as well as a bare pattern.
    flags = 0
    body = options
    literal = re.fullmatch(r"/(.*)/([a-z]*)", options)
    if literal:
        body = literal.group(1)
        if "i" in literal.group(2):
            flags |= re.IGNORECASE
    pattern = re.compile(body, flags)

    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return pattern.search(field_display_name(field, frame)) is not None

    return _matches


def _by_frame_ref_id(options: Any) -> FieldMatcher:
    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return frame.ref_id == options

    return _matches


def _first(options: Any) -> FieldMatcher:
    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        return bool(frame.fields) and frame.fields[0] is field

    return _matches


def _first_time_field(options: Any) -> FieldMatcher:
    def _matches(field: Field, frame: Frame, frames: Sequence[Frame]) -> bool:
        for candidate in frame.fields:
            if candidate.type == FieldType.TIME:
                return candidate is field
        return False

    return _matches


_FACTORIES: dict[str, Callable[[Any], FieldMatcher]] = {
    FieldMatcherID.numeric: lambda options: _by_type(FieldType.NUMBER),
    FieldMatcherID.time: lambda options: _by_type(FieldType.TIME),
    FieldMatcherID.by_type: lambda options: _by_type(FieldType(options)),
    FieldMatcherID.by_name: _by_name,
    FieldMatcherID.by_names: _by_names,
    FieldMatcherID.by_regexp: _by_regexp,
    FieldMatcherID.by_frame_ref_id: _by_frame_ref_id,
    FieldMatcherID.first: _first,
    FieldMatcherID.first_time_field: _first_time_field,
}


def available_matchers() -> list[str]:
    return sorted(_FACTORIES)


def get_field_matcher(config: MatcherConfig | Mapping[str, Any] | None) -> FieldMatcher:
    """Compile a matcher config into a `(field, frame, frames) -> bool` predicate.

    A missing config selects numeric fields.
    """

    if config is None:
        config = MatcherConfig(id=FieldMatcherID.numeric)
    elif isinstance(config, Mapping):
        config = MatcherConfig(id=str(config.get("id", "")), options=config.get("options"))
    factory = _FACTORIES.get(config.id)
    if factory is None:
        raise ValueError(f"Unknown field matcher: {config.id}")
    return factory(config.options)
