"""Discrete-event simulator of cloud datacenters, VMs and cloudlets."""

__version__ = "0.1.0"
__author__ = "Cloud Project Team"

from .core import (
    Cloudlet,
    CloudletStatus,
    Datacenter,
    DatacenterBroker,
    DatacenterCharacteristics,
    Host,
    Pe,
    Simulation,
    Vm,
)
from .scheduling import (
    CloudletSchedulerSpaceShared,
    CloudletSchedulerTimeShared,
    FirstFitAllocationPolicy,
    VmSchedulerSpaceShared,
    VmSchedulerTimeShared,
)

__all__ = [
    "Cloudlet",
    "CloudletStatus",
    "Datacenter",
    "DatacenterBroker",
    "DatacenterCharacteristics",
    "Host",
    "Pe",
    "Simulation",
    "Vm",
    "CloudletSchedulerSpaceShared",
    "CloudletSchedulerTimeShared",
    "FirstFitAllocationPolicy",
    "VmSchedulerSpaceShared",
    "VmSchedulerTimeShared",
]
