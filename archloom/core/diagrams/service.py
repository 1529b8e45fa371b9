"""DiagramService — compiles every configured output and exports it.

For each output the component graph is compiled fresh into PlantUML, an
attribution comment is appended, and one export is started per destination.
All exports of all outputs run concurrently; remote conversions are still
serialized by the shared conversion queue. A failing destination is logged
and reported in its ExportResult without affecting the others.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Union

from .exporter import export_one
from .renderer import ConversionQueue, get_conversion_queue
from .structural import compile_diagram

if TYPE_CHECKING:
    from ..config.config_loader import DiagramConfig, OutputSpec

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of exporting one output to one destination."""
    output_index: int
    destination: str
    payload: Optional[Union[bytes, str]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DiagramService:
    """Generates diagrams for every output in a DiagramConfig."""

    def __init__(self, config: "DiagramConfig", queue: Optional[ConversionQueue] = None):
        """Initialize DiagramService.

        Args:
            config: Validated configuration
            queue: Conversion queue; defaults to the process-wide queue
        """
        self._config = config
        self._queue = queue or get_conversion_queue(
            server_url=config.server_url, timeout=config.timeout
        )

    def generate_puml(self, output: "OutputSpec", graph) -> str:
        """Compile one output's diagram, attribution included."""
        logger.info("Generating components...")
        components = graph.components_for(output)
        logger.debug("Components: %s", [c.filename for c in components])

        puml = compile_diagram(output, components)
        return f"{puml}\n\n' View and edit on {self._config.attribution_url}"

    async def generate(self, graph) -> List[ExportResult]:
        """Compile and export every configured output.

        Args:
            graph: Provider with ``components_for(output)`` returning the
                components of that output.

        Returns:
            One ExportResult per destination, in configuration order.
        """
        targets = []

        # Compile everything first: a compile error aborts before any export
        for index, output in enumerate(self._config.outputs):
            puml = self.generate_puml(output, graph)
            for destination in output.destinations:
                targets.append((index, destination, puml))

        settled = await asyncio.gather(
            *(
                export_one(destination, puml, self._config.directory, self._queue)
                for _, destination, puml in targets
            ),
            return_exceptions=True,
        )

        results = []
        for (index, destination, _), outcome in zip(targets, settled):
            if isinstance(outcome, BaseException):
                logger.warning("Export to %s failed: %s", destination, outcome)
                results.append(ExportResult(index, destination, error=outcome))
            else:
                results.append(ExportResult(index, destination, payload=outcome))

        failed = sum(1 for r in results if not r.ok)
        logger.info("Exported %d destination(s), %d failed", len(results), failed)
        return results
