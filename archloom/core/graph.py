"""Component graph input.

archloom does not scan source trees; it reads the component graph produced
by a graph builder. The CLI accepts it as a YAML or JSON file::

    components:
      - filename: src/app.ts
        layer: ui
        imports: [src/core/store.ts]
      - filename: src/core/store.ts
        imported: true
      - filename: src/vendor/**
        name: vendor

``name`` defaults to the file name without extension.
"""

import logging
import posixpath
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import yaml

from .diagrams.models import Component, as_layer
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


class StaticGraph:
    """A fixed set of components served fresh to every output."""

    def __init__(self, components: Iterable[Component]):
        self._components = list(components)

    def __len__(self) -> int:
        return len(self._components)

    def components_for(self, output) -> List[Component]:
        """Return copies of the components so outputs never share state."""
        return [replace(c, imports=set(c.imports)) for c in self._components]


def component_from_dict(raw: Dict[str, Any]) -> Component:
    """Build a Component from one graph file entry."""
    if not isinstance(raw, dict) or not raw.get("filename"):
        raise ConfigError(f"Component entry needs a filename: {raw!r}")

    filename = str(raw["filename"])
    name = raw.get("name")
    if not name:
        base = posixpath.basename(filename.rstrip("*").rstrip("/")) or filename
        name = posixpath.splitext(base)[0] if not filename.endswith("**") else base

    imports = raw.get("imports") or []
    if isinstance(imports, str):
        imports = [imports]

    return Component(
        name=str(name),
        filename=filename,
        layer=as_layer(raw.get("layer")),
        is_imported=bool(raw.get("imported", False)),
        imports={str(i) for i in imports},
    )


def load_graph(path: Union[str, Path]) -> StaticGraph:
    """Load a component graph from a YAML or JSON file.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    graph_path = Path(path)
    if not graph_path.is_file():
        raise ConfigError(f"Graph file not found: {graph_path}")

    try:
        with open(graph_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid graph file {graph_path}: {e}") from e

    entries = data.get("components") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ConfigError(f"{graph_path} must list components")

    components = [component_from_dict(entry) for entry in entries]
    logger.info("Loaded %d components from %s", len(components), graph_path)
    return StaticGraph(components)
