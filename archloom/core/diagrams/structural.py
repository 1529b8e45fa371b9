"""Deterministic PlantUML generator for component dependency diagrams.

Takes components produced by the graph builder and produces PlantUML syntax.
No I/O, purely data-driven.
"""

import logging
import posixpath
import re
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from .models import (
    NO_LAYER,
    Component,
    Context,
    Layer,
    Layers,
    OutputDirection,
    as_layer,
)

if TYPE_CHECKING:
    from ..config.config_loader import OutputSpec

logger = logging.getLogger(__name__)

# Monochrome theme; border thickness encodes the shape kind:
# usecase = layered file, rectangle = plain file, component = directory.
# https://github.com/plantuml/plantuml/blob/master/src/net/sourceforge/plantuml/SkinParam.java
_SKINPARAM = """
skinparam monochrome true
skinparam shadowing false
skinparam nodesep 20
skinparam ranksep 20
skinparam defaultFontName Tahoma
skinparam defaultFontSize 12
skinparam roundCorner 4
skinparam dpi 150
skinparam arrowThickness 0.7
skinparam packageTitleAlignment left

' oval
skinparam usecase {
  borderThickness 0.4
  fontSize 12
}

' rectangle
skinparam rectangle {
  borderThickness 0.8
}

' component
skinparam component {
  borderThickness 1.2
}
"""

# Above this many components the diagram is laid out left to right
_HORIZONTAL_THRESHOLD = 20

_MAX_CONNECTION_LENGTH = 4

_UNSAFE_CHARS = re.compile(r"[^\w]", re.ASCII)


def _safe_name(name: str) -> str:
    """Turn a display name into a PlantUML identifier."""
    return _UNSAFE_CHARS.sub("_", name)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def render_component(component: Component, context: Context) -> str:
    """Render one component as a PlantUML token.

    Directories become ``[name]`` and layered files ``(name)`` in either
    context. Plain files are declared as a rectangle with an alias in
    ``Context.LAYER`` and referenced by that alias in
    ``Context.RELATIONSHIP``. Files found only as import targets are not
    emphasized.
    """
    if component.is_directory:
        return f"[{component.name}]"

    if component.has_layer:
        return f"({component.name})"

    safe_name = _safe_name(component.name)
    if context is Context.RELATIONSHIP:
        return safe_name

    label = component.name if component.is_imported else f"<b>{component.name}</b>"
    return f'rectangle "{label}" as {safe_name}'


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


def build_layers(
    components: Iterable[Component], order: Optional[Sequence[str]] = None
) -> Layers:
    """Group components by layer.

    Layers listed in ``order`` come first, in that order; the rest follow in
    the order their first component appears.
    """
    layers: Layers = {}
    for layer_id in order or []:
        layers[as_layer(layer_id)] = []

    for component in components:
        layers.setdefault(component.layer, []).append(component)

    return {layer: members for layer, members in layers.items() if members}


def all_components(layers: Layers, unique: bool = False) -> List[Component]:
    """Flatten a layers map, optionally dropping repeated components."""
    flattened = [c for components in layers.values() for c in components]
    if not unique:
        return flattened
    return list(dict.fromkeys(flattened))


def compile_layer(layer: Layer, components: Sequence[Component]) -> str:
    """Render the declarations of one layer.

    Named layers are wrapped in a package block; ungrouped components are
    emitted at top level.
    """
    if not components:
        return ""

    lines = [""]
    is_layer = layer != NO_LAYER

    if is_layer:
        lines.append(f'package "{layer}" {{')

    for component in components:
        declaration = render_component(component, Context.LAYER)
        lines.append(f"  {declaration}" if is_layer else declaration)

    if is_layer:
        lines.append("}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


def connection_length(component: Component, imported: Component) -> int:
    """Connector length from the directory distance between two files.

    Clamped to [1, 4]; connectors from import-only components are at least 2.
    """
    relative = posixpath.relpath(imported.filename, start=component.filename)
    levels = len(posixpath.dirname(relative).split("/"))
    minimum = 2 if component.is_imported else 1
    return max(minimum, min(_MAX_CONNECTION_LENGTH, levels))


def connection_sign(component: Component, imported: Component) -> str:
    """Connector glyph: solid from primary files, dotted within a layer."""
    if not component.is_imported:
        return "="
    if component.layer == imported.layer and component.has_layer:
        return "."
    return "-"


def render_relationships(layers: Layers) -> str:
    """Render one connector per import edge whose target is in the diagram."""
    lines = [""]
    components = all_components(layers, unique=True)
    by_filename = {}
    for component in components:
        by_filename.setdefault(component.filename, component)

    for component in components:
        for imported_filename in sorted(component.imports):
            imported = by_filename.get(imported_filename)
            if imported is None:
                continue

            length = connection_length(component, imported)
            connection = connection_sign(component, imported) * length + ">"
            lines.append(
                " ".join(
                    [
                        render_component(component, Context.RELATIONSHIP),
                        connection,
                        render_component(imported, Context.RELATIONSHIP),
                    ]
                )
            )

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def resolve_direction(output: "OutputSpec", layers: Layers) -> OutputDirection:
    """Explicit direction, or horizontal for diagrams over the threshold."""
    if output.direction:
        return OutputDirection(output.direction)
    if len(all_components(layers)) > _HORIZONTAL_THRESHOLD:
        return OutputDirection.HORIZONTAL
    return OutputDirection.VERTICAL


def render_skin(output: "OutputSpec", layers: Layers) -> str:
    """Render scale, direction and skinparams."""
    lines = ["", "scale max 1920 width"]

    if resolve_direction(output, layers) is OutputDirection.HORIZONTAL:
        lines.append("left to right direction")
    else:
        lines.append("top to bottom direction")

    lines.append(_SKINPARAM)
    return "\n".join(lines)


def compile_diagram(output: "OutputSpec", components: Iterable[Component]) -> str:
    """Generate the complete PlantUML document for one output.

    Args:
        output: OutputSpec carrying the optional direction and layer order.
        components: Components of this diagram, already de-conflicted and
            sorted by the graph builder.

    Returns:
        PlantUML text from ``@startuml`` to ``@enduml``.
    """
    logger.info("Generating layers...")
    layers = build_layers(components, output.layers)
    logger.debug("Layers: %s", [str(layer) or "<none>" for layer in layers])

    lines = ["@startuml", render_skin(output, layers)]

    for layer, layer_components in layers.items():
        lines.append(compile_layer(layer, layer_components))

    lines.append(render_relationships(layers))
    lines.append("")
    lines.append("@enduml")

    return "\n".join(lines)
