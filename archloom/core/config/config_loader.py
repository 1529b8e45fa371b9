"""Load archloom configuration from YAML.

Example ``archloom.yaml``::

    directory: docs
    server_url: https://arkit.herokuapp.com
    outputs:
      - path: [architecture.svg, architecture.puml]
        direction: horizontal
        layers: [ui, core]

Every key is optional. A missing file yields the defaults: one output
rendered to ``svg`` and returned to the caller.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..diagrams.models import OutputDirection
from ..diagrams.renderer import DEFAULT_SERVER
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "archloom.yaml"

DEFAULT_DESTINATION = "svg"


class OutputSpec(BaseModel):
    """One rendering target."""
    direction: Optional[OutputDirection] = Field(
        None, description="Explicit layout direction; inferred from size when unset"
    )
    path: List[str] = Field(
        default_factory=list, description="Destination paths or bare image formats"
    )
    layers: List[str] = Field(
        default_factory=list, description="Layers to emit first, in this order"
    )

    @field_validator("path", mode="before")
    @classmethod
    def _wrap_single_path(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def destinations(self) -> List[str]:
        """Configured destinations, or the default ``svg`` keyword."""
        return list(self.path) or [DEFAULT_DESTINATION]


class DiagramConfig(BaseModel):
    """Top-level configuration."""
    directory: str = Field(".", description="Base directory for relative destinations")
    server_url: str = Field(DEFAULT_SERVER, description="Remote PlantUML conversion service")
    timeout: Optional[float] = Field(
        None, description="Conversion request timeout in seconds; None waits forever"
    )
    attribution_url: str = Field(
        DEFAULT_SERVER, description="URL in the trailing attribution comment"
    )
    outputs: List[OutputSpec] = Field(default_factory=lambda: [OutputSpec()])


def load_config(
    path: Optional[Union[str, Path]] = None,
    directory: Optional[str] = None,
) -> DiagramConfig:
    """Load configuration from a YAML file.

    Args:
        path: Config file. When None, ``archloom.yaml`` in the current
            directory is used if it exists.
        directory: Overrides the configured base directory.

    Returns:
        Validated DiagramConfig. A relative ``directory`` from the file is
        resolved against the file's folder.

    Raises:
        ConfigError: If the file is given but missing, or is not valid.
    """
    data = {}
    base = Path.cwd()

    if path is None and Path(DEFAULT_CONFIG_FILE).is_file():
        path = DEFAULT_CONFIG_FILE

    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")

        base = config_path.resolve().parent
        logger.debug("Loaded config from %s", config_path)

    env_server = os.environ.get("ARCHLOOM_SERVER_URL")
    if env_server:
        data["server_url"] = env_server

    try:
        config = DiagramConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if directory is not None:
        config.directory = str(Path(directory).resolve())
    else:
        config.directory = str((base / config.directory).resolve())

    return config
