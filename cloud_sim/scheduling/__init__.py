"""VM placement, VM scheduling and cloudlet scheduling policies."""

from .vm_scheduler import (
    VmScheduler,
    VmSchedulerType,
    VmSchedulerTimeShared,
    VmSchedulerSpaceShared,
    create_vm_scheduler,
)
from .cloudlet_scheduler import (
    CloudletScheduler,
    CloudletSchedulerType,
    CloudletSchedulerSpaceShared,
    CloudletSchedulerTimeShared,
    create_cloudlet_scheduler,
)
from .allocation import (
    VmAllocationPolicy,
    PlacementPolicy,
    FirstFitAllocationPolicy,
    BestFitAllocationPolicy,
    WorstFitAllocationPolicy,
    create_allocation_policy,
)

__all__ = [
    "VmScheduler",
    "VmSchedulerType",
    "VmSchedulerTimeShared",
    "VmSchedulerSpaceShared",
    "create_vm_scheduler",
    "CloudletScheduler",
    "CloudletSchedulerType",
    "CloudletSchedulerSpaceShared",
    "CloudletSchedulerTimeShared",
    "create_cloudlet_scheduler",
    "VmAllocationPolicy",
    "PlacementPolicy",
    "FirstFitAllocationPolicy",
    "BestFitAllocationPolicy",
    "WorstFitAllocationPolicy",
    "create_allocation_policy",
]
