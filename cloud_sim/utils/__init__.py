"""Utility modules for the cloud simulator."""

from .config import (
    CloudletConfig,
    DatacenterConfig,
    HostConfig,
    ScenarioConfig,
    TerminationConfig,
    UtilizationConfig,
    VmConfig,
    load_config,
    save_config,
)
from .logging import configure_logging

__all__ = [
    "CloudletConfig",
    "DatacenterConfig",
    "HostConfig",
    "ScenarioConfig",
    "TerminationConfig",
    "UtilizationConfig",
    "VmConfig",
    "load_config",
    "save_config",
    "configure_logging",
]
