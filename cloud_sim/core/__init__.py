"""Core simulation components."""

from .exceptions import InvalidConfigurationError
from .events import EventType, SimulationEvent
from .engine import SimEntity, Simulation
from .resources import Pe, PeProvisioner, PeStatus, ResourcePool, ResourceProvisioner
from .utilization import (
    UtilizationModel,
    UtilizationModelConstant,
    UtilizationModelFull,
    UtilizationModelStochastic,
)
from .cloudlet import Cloudlet, CloudletProgressEvent, CloudletStatus
from .vm import Vm
from .host import Host
from .datacenter import Datacenter, DatacenterCharacteristics
from .broker import DatacenterBroker

__all__ = [
    "InvalidConfigurationError",
    "EventType",
    "SimulationEvent",
    "SimEntity",
    "Simulation",
    "Pe",
    "PeProvisioner",
    "PeStatus",
    "ResourcePool",
    "ResourceProvisioner",
    "UtilizationModel",
    "UtilizationModelConstant",
    "UtilizationModelFull",
    "UtilizationModelStochastic",
    "Cloudlet",
    "CloudletProgressEvent",
    "CloudletStatus",
    "Vm",
    "Host",
    "Datacenter",
    "DatacenterCharacteristics",
    "DatacenterBroker",
]
