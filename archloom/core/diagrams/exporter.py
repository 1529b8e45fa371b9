"""Export one compiled diagram to one destination.

A destination is either a path (relative to the configured directory) or a
bare image format keyword:

  ``arch.svg`` / ``arch.png``  convert remotely, save the image, return bytes
  ``svg`` / ``png``            convert remotely, return bytes without saving
  ``arch.puml``                save the PlantUML source, return it
  anything else                return the PlantUML source, write nothing

An existing file at the resolved path is removed first, so exports always
overwrite. Removes and writes run in worker threads so concurrent exports
keep the event loop free.
"""

import asyncio
import logging
import os
from typing import Union

from .models import OutputFormat
from .renderer import ConversionQueue

logger = logging.getLogger(__name__)

PUML_EXTENSION = ".puml"

_IMAGE_FORMATS = {fmt.value for fmt in OutputFormat}


def resolve_destination(directory: str, destination: str) -> str:
    """Absolute path of a destination under the export directory."""
    return os.path.abspath(os.path.join(directory, destination))


def _write_bytes(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


def _write_text(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def writes_to_disk(destination: str) -> bool:
    """True when exporting to ``destination`` leaves a file behind."""
    ext = os.path.splitext(destination)[1]
    return ext.lstrip(".") in _IMAGE_FORMATS or ext == PUML_EXTENSION


async def export_one(
    destination: str,
    puml: str,
    directory: str,
    queue: ConversionQueue,
) -> Union[bytes, str]:
    """Export PlantUML source to a single destination.

    Args:
        destination: Path or bare image format keyword.
        puml: Complete PlantUML document.
        directory: Base directory for relative paths.
        queue: Conversion queue used for image formats.

    Returns:
        Image bytes for image destinations, otherwise the PlantUML source.

    Raises:
        UnknownFormatError: If the image format cannot be identified.
        ConversionError: If the remote conversion fails.
        OSError: If the file cannot be removed or written.
    """
    full_path = resolve_destination(directory, destination)
    ext = os.path.splitext(full_path)[1]
    should_convert_and_save = ext.lstrip(".") in _IMAGE_FORMATS
    should_convert_and_output = destination in _IMAGE_FORMATS

    if os.path.exists(full_path):
        logger.debug("Removing %s", full_path)
        await asyncio.to_thread(os.remove, full_path)

    if should_convert_and_save or should_convert_and_output:
        logger.debug("Converting %s", full_path if ext else destination)
        image = await queue.convert(puml, ext or destination)

        if should_convert_and_save:
            logger.debug("Saving %s (%d bytes)", full_path, len(image))
            await asyncio.to_thread(_write_bytes, full_path, image)

        return image

    if ext == PUML_EXTENSION:
        logger.debug("Saving %s", full_path)
        await asyncio.to_thread(_write_text, full_path, puml)

    return puml
