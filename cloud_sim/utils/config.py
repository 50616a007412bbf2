"""Configuration management utilities."""

import json
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from ..scheduling.allocation import PlacementPolicy
from ..scheduling.cloudlet_scheduler import CloudletSchedulerType
from ..scheduling.vm_scheduler import VmSchedulerType


class UtilizationConfig(BaseModel):
    """How much of its allocated MIPS a cloudlet uses."""
    model: Literal["full", "constant", "stochastic"] = "full"
    value: float = Field(1.0, ge=0.0, le=1.0)
    seed: Optional[int] = None


class HostConfig(BaseModel):
    """A group of identical hosts."""
    count: int = Field(1, gt=0)
    pes: int = Field(1, gt=0)
    mips: float = Field(1000.0, gt=0)
    ram: float = Field(2048.0, gt=0)
    bw: float = Field(10000.0, gt=0)
    storage: float = Field(1000000.0, gt=0)
    vm_scheduler: VmSchedulerType = VmSchedulerType.TIME_SHARED
    oversubscription: float = Field(1.0, ge=1.0)


class DatacenterConfig(BaseModel):
    """Hosts, placement policy and (pass-through) cost characteristics."""
    hosts: List[HostConfig] = Field(default_factory=lambda: [HostConfig()])
    allocation_policy: PlacementPolicy = PlacementPolicy.FIRST_FIT
    scheduling_interval: float = Field(0.0, ge=0.0)

    architecture: str = "x86"
    os: str = "Linux"
    vmm: str = "Xen"
    time_zone: float = 10.0
    cost_per_second: float = Field(3.0, ge=0.0)
    cost_per_mem: float = Field(0.05, ge=0.0)
    cost_per_storage: float = Field(0.001, ge=0.0)
    cost_per_bw: float = Field(0.0, ge=0.0)


class VmConfig(BaseModel):
    """A group of identical VMs."""
    count: int = Field(1, gt=0)
    mips: float = Field(1000.0, gt=0)
    pes: int = Field(1, gt=0)
    ram: float = Field(512.0, gt=0)
    bw: float = Field(1000.0, gt=0)
    size: float = Field(10000.0, gt=0)
    cloudlet_scheduler: CloudletSchedulerType = CloudletSchedulerType.SPACE_SHARED


class CloudletConfig(BaseModel):
    """A group of identical cloudlets, optionally bound to one VM by index."""
    count: int = Field(1, gt=0)
    length: float = Field(10000.0, gt=0)
    pes: int = Field(1, gt=0)
    file_size: float = Field(300.0, gt=0)
    output_size: float = Field(300.0, gt=0)
    utilization: UtilizationConfig = Field(default_factory=UtilizationConfig)
    vm_index: Optional[int] = Field(None, ge=0)


class TerminationConfig(BaseModel):
    """Optional early-stop rules."""
    at_time: Optional[float] = Field(None, ge=0.0)
    cloudlet_progress: Optional[float] = Field(None, gt=0.0, le=1.0)
    cloudlet_index: int = -1


class ScenarioConfig(BaseModel):
    """Main configuration class."""

    name: str = "scenario"
    datacenter: DatacenterConfig = Field(default_factory=DatacenterConfig)
    vms: List[VmConfig] = Field(default_factory=lambda: [VmConfig()])
    cloudlets: List[CloudletConfig] = Field(default_factory=lambda: [CloudletConfig()])
    vm_submission_delay: float = Field(0.0, ge=0.0)
    cloudlet_submission_delay: float = Field(0.0, ge=0.0)
    termination: TerminationConfig = Field(default_factory=TerminationConfig)


def load_config(config_path: Path) -> ScenarioConfig:
    """Load configuration from file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, 'r') as f:
        if config_path.suffix.lower() in ['.yaml', '.yml']:
            try:
                config_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse YAML config file: {e}")
        elif config_path.suffix.lower() == '.json':
            config_data = json.load(f)
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

    config = ScenarioConfig.model_validate(config_data or {})

    logger.info(
        f"Configuration '{config.name}' loaded: {sum(h.count for h in config.datacenter.hosts)} hosts, "
        f"{sum(v.count for v in config.vms)} VMs, {sum(c.count for c in config.cloudlets)} cloudlets"
    )
    return config


def save_config(config: ScenarioConfig, config_path: Path) -> None:
    """Save configuration to file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="json")

    with open(config_path, 'w') as f:
        if config_path.suffix.lower() in ['.yaml', '.yml']:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)
        elif config_path.suffix.lower() == '.json':
            json.dump(config_dict, f, indent=2)
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

    logger.info(f"Configuration saved to {config_path}")
