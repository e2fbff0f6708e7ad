from __future__ import annotations

import copy
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

from frame_config.core.config_merge import merge_field_config
from frame_config.core.field_mapping import (
    MappingResolution,
    evaluate_field_mappings,
    get_field_config_from_frame,
)
from frame_config.core.matchers import field_display_name, get_field_matcher
from frame_config.core.options import DEFAULT_OPTIONS, resolve_options
from frame_config.core.reducers import reduce_field
from frame_config.core.types import (
    ConfigFromQueryOptions,
    Field,
    Frame,
    FrameSetOperator,
    TransformerInfo,
)

TRANSFORMER_ID = "configFromData"

Logger = Callable[[str], None]


def _noop_logger(msg: str) -> None:
    return None


def find_config_frame(frames: Sequence[Frame], config_ref_id: str | None) -> Frame | None:
    for frame in frames:
        if frame.ref_id == config_ref_id:
            return frame
    return None


def reduce_config_frame(config_frame: Frame, resolution: MappingResolution) -> Frame:
    """Collapse every column of the configuration frame to one value.

    Every field is reduced with its resolved reducer, ignored ones included.
    """

    reduced: list[Field] = []
    for field in config_frame.fields:
        entry = resolution.entry_for(field_display_name(field, config_frame))
        result = reduce_field(field, [entry.reducer_id])
        reduced.append(field.with_values([result[entry.reducer_id]]))
    return Frame(fields=tuple(reduced), ref_id=config_frame.ref_id, name=config_frame.name)


def extract_config_from_query(
    options: ConfigFromQueryOptions | Mapping[str, Any] | None,
    frames: Sequence[Frame],
    logger: Logger | None = None,
) -> Sequence[Frame]:
    """Apply configuration reduced from the config frame onto matching fields.

    Returns `frames` unchanged when no frame carries `options.config_ref_id`.
    """

    log = logger or _noop_logger
    if not isinstance(options, ConfigFromQueryOptions):
        options = resolve_options(options)

    config_frame = find_config_frame(frames, options.config_ref_id)
    if config_frame is None:
        log(f"config frame {options.config_ref_id!r} not found; passing {len(frames)} frame(s) through")
        return frames

    resolution = evaluate_field_mappings(config_frame, options.mappings, strict=False)
    reduced = reduce_config_frame(config_frame, resolution)
    fragment = get_field_config_from_frame(reduced, 0, resolution)
    matcher = get_field_matcher(options.apply_to)

    # A lone config frame configures itself; among several it is consumed.
    self_apply = len(frames) == 1
    output: list[Frame] = []
    touched = 0
    for frame in frames:
        if frame is config_frame and not self_apply:
            continue
        fields: list[Field] = []
        for field in frame.fields:
            if matcher(field, frame, frames):
                fields.append(field.with_config(merge_field_config(field.config, copy.deepcopy(fragment))))
                touched += 1
            else:
                fields.append(field)
        output.append(Frame(fields=tuple(fields), ref_id=frame.ref_id, name=frame.name))

    log(
        f"config frame {options.config_ref_id!r}: applied {sorted(fragment)} to {touched} field(s) "
        f"across {len(output)} frame(s)"
    )
    return output


def config_from_data_transformer() -> TransformerInfo:
    def _operator(options: ConfigFromQueryOptions | Mapping[str, Any] | None) -> FrameSetOperator:
        resolved = options if isinstance(options, ConfigFromQueryOptions) else resolve_options(options)

        def _apply(source: Iterable[Sequence[Frame]]) -> Iterator[Sequence[Frame]]:
            for frames in source:
                yield extract_config_from_query(resolved, frames)

        return _apply

    return TransformerInfo(
        id=TRANSFORMER_ID,
        name="Config from query results",
        description="Set unit, min, max and more.",
        default_options=copy.deepcopy(DEFAULT_OPTIONS),
        operator=_operator,
    )
