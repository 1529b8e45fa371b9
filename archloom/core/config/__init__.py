"""Configuration loading.

Public API:
  load_config  — read and validate archloom.yaml
  DiagramConfig, OutputSpec — validated configuration models
"""

from .config_loader import DiagramConfig, OutputSpec, load_config

__all__ = ["DiagramConfig", "OutputSpec", "load_config"]
