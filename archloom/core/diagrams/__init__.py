"""PlantUML component diagrams from a precomputed import graph.

  structural — deterministic component graph -> PlantUML compiler
  exporter   — per-destination export (delete, convert, write)
  renderer   — process-wide FIFO queue for remote image conversion

Public API:
  DiagramService — compiles every configured output and exports it
"""

from .models import Component, Context, NamedLayer, NO_LAYER, OutputDirection, OutputFormat
from .service import DiagramService, ExportResult

__all__ = [
    "Component",
    "Context",
    "DiagramService",
    "ExportResult",
    "NamedLayer",
    "NO_LAYER",
    "OutputDirection",
    "OutputFormat",
]
