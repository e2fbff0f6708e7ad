from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence


class FieldType(str, Enum):
    TIME = "time"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OTHER = "other"


@dataclass(frozen=True)
class Field:
    name: str
    type: FieldType = FieldType.OTHER
    values: tuple[Any, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so the field stays a value object.
        if not isinstance(self.values, tuple):
            object.__setattr__(self, "values", tuple(self.values))
        if not isinstance(self.type, FieldType):
            object.__setattr__(self, "type", FieldType(self.type))

    def __len__(self) -> int:
        return len(self.values)

    def with_config(self, config: Mapping[str, Any]) -> "Field":
        return replace(self, config=config)

    def with_values(self, values: Iterable[Any]) -> "Field":
        return replace(self, values=tuple(values))


@dataclass(frozen=True)
class Frame:
    fields: tuple[Field, ...] = ()
    ref_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))
        lengths = {len(f) for f in self.fields}
        if len(lengths) > 1:
            raise ValueError(
                f"Frame {self.ref_id or self.name or '?'} has fields of unequal length: {sorted(lengths)}"
            )

    @property
    def length(self) -> int:
        return len(self.fields[0]) if self.fields else 0

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)


@dataclass(frozen=True)
class MatcherConfig:
    id: str
    options: Any = None


@dataclass(frozen=True)
class FieldMapping:
    field_name: str
    handler_key: str | None = None
    reducer_id: str | None = None
    handler_arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class ConfigFromQueryOptions:
    config_ref_id: str | None = "config"
    mappings: list[FieldMapping] = field(default_factory=list)
    apply_to: MatcherConfig | None = None


FieldMatcher = Callable[[Field, Frame, Sequence[Frame]], bool]
FrameSetOperator = Callable[[Iterable[Sequence[Frame]]], Iterator[Sequence[Frame]]]


@dataclass(frozen=True)
class TransformerInfo:
    id: str
    name: str
    description: str
    default_options: dict[str, Any]
    operator: Callable[[Any], FrameSetOperator]
