from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Relationship:
    """A back-reference from one List to the List that points at it."""

    path: str
    ref: str
    ref_path: str
    label: str
    options: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class UIElement:
    """One entry of a List's admin form layout: a field or a heading."""

    type: str
    path: str | None = None
    heading: str | None = None
    options: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ColumnSpec:
    """An expanded admin list column."""

    path: str
    label: str
    type: str
    width: str | None = None
