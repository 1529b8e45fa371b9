import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .core.config import OutputSpec, load_config
from .core.diagrams import DiagramService, ExportResult
from .core.diagrams.exporter import writes_to_disk
from .core.exceptions import ConfigError
from .core.graph import load_graph


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging.

    Logs go to stderr; stdout carries diagram output.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _write_stdout(results: List[ExportResult]) -> None:
    """Print payloads of destinations that were not saved to a file."""
    for result in results:
        if not result.ok or writes_to_disk(result.destination):
            continue
        if isinstance(result.payload, bytes):
            sys.stdout.buffer.write(result.payload)
            sys.stdout.buffer.flush()
        else:
            sys.stdout.write(result.payload)
            sys.stdout.write("\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for archloom."""
    parser = argparse.ArgumentParser(
        description="archloom - PlantUML component diagrams from an import graph"
    )
    parser.add_argument(
        "graph",
        help="YAML or JSON file listing components and their imports"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (defaults to ./archloom.yaml when present)"
    )
    parser.add_argument(
        "--directory",
        type=str,
        default=None,
        help="Base directory for relative destinations"
    )
    parser.add_argument(
        "-o", "--output",
        action="append",
        default=None,
        help="Destination path or image format; replaces configured outputs"
    )
    parser.add_argument(
        "--direction",
        type=str,
        default=None,
        choices=["horizontal", "vertical"],
        help="Layout direction; replaces configured outputs"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = load_config(args.config, directory=args.directory)
        graph = load_graph(args.graph)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    if args.output or args.direction:
        config.outputs = [OutputSpec(path=args.output or [], direction=args.direction)]

    logger.info(
        "Generating %d output(s) from %d components into %s",
        len(config.outputs),
        len(graph),
        config.directory,
    )

    service = DiagramService(config)
    results = asyncio.run(service.generate(graph))

    _write_stdout(results)

    failed = [r for r in results if not r.ok]
    for result in failed:
        logger.error("Failed to export %s: %s", result.destination, result.error)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
