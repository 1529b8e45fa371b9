"""Diagram data models.

Defines the component graph handed over by the graph builder and the small
enums that steer rendering. These are pure data containers with no rendering
logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Union


class Context(Enum):
    """Where a component token is being emitted."""
    LAYER = "layer"                # declaration inside a package or at top level
    RELATIONSHIP = "relationship"  # endpoint of a connector


class OutputDirection(str, Enum):
    """Layout direction passed to PlantUML."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class OutputFormat(str, Enum):
    """Image formats the remote service converts PlantUML into."""
    SVG = "svg"
    PNG = "png"


@dataclass(frozen=True)
class NoLayer:
    """Sentinel layer for ungrouped components."""

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class NamedLayer:
    """A named logical layer, rendered as a PlantUML package."""
    id: str

    def __str__(self) -> str:
        return self.id


Layer = Union[NoLayer, NamedLayer]

NO_LAYER = NoLayer()


def as_layer(value: Optional[Union[str, Layer]]) -> Layer:
    """Coerce a raw layer value into a Layer variant.

    None and empty strings mean "ungrouped".
    """
    if isinstance(value, (NoLayer, NamedLayer)):
        return value
    if not value:
        return NO_LAYER
    return NamedLayer(str(value))


@dataclass(eq=False)
class Component:
    """A file or collapsed directory in the dependency graph.

    ``filename`` is the unique identity; a trailing ``**`` marks a directory
    aggregate. ``imports`` holds filenames of dependencies and may reference
    components that are not part of the current diagram.
    """

    name: str
    filename: str
    layer: Layer = NO_LAYER
    is_imported: bool = False  # discovered only as an import target
    imports: Set[str] = field(default_factory=set)

    @property
    def is_directory(self) -> bool:
        return self.filename.endswith("**")

    @property
    def has_layer(self) -> bool:
        return isinstance(self.layer, NamedLayer)


# Insertion-ordered: the order is the package order in the emitted diagram
Layers = Dict[Layer, List[Component]]
