"""VM placement policies: which host of a datacenter receives a new VM."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from loguru import logger

if TYPE_CHECKING:
    from ..core.host import Host
    from ..core.vm import Vm


class PlacementPolicy(Enum):
    """Placement policies for VM allocation."""
    FIRST_FIT = "first_fit"
    BEST_FIT = "best_fit"
    WORST_FIT = "worst_fit"


class VmAllocationPolicy(ABC):
    """Abstract base class for VM allocation policies."""

    def __init__(self, placement_policy: PlacementPolicy):
        self.placement_policy = placement_policy
        self.hosts: List["Host"] = []
        self.vm_table: Dict["Vm", "Host"] = {}
        logger.debug(f"VM allocation policy initialized with {placement_policy.value} policy")

    def attach(self, hosts: List["Host"]) -> None:
        self.hosts = hosts

    @abstractmethod
    def find_host_for_vm(self, vm: "Vm") -> Optional["Host"]:
        """Select a host for the VM without reserving anything."""
        pass

    def allocate_host_for_vm(self, vm: "Vm") -> Optional["Host"]:
        """Place the VM, returning its host, or ``None`` when no host accepts it."""
        if vm in self.vm_table:
            return self.vm_table[vm]

        tried = set()
        host = self.find_host_for_vm(vm)
        while host is not None and host.host_id not in tried:
            if host.create_vm(vm):
                self.vm_table[vm] = host
                logger.info(f"VM {vm.vm_id} allocated to host {host.host_id} using '{self.placement_policy.value}'")
                return host
            # Suitability said yes but the reservation failed; try the remaining hosts
            tried.add(host.host_id)
            host = self._first_fit(vm, exclude=tried)

        logger.warning(f"No suitable host found for VM {vm.vm_id} with policy '{self.placement_policy.value}'")
        return None

    def deallocate_host_for_vm(self, vm: "Vm") -> None:
        """Release the VM's reservation on its host."""
        host = self.vm_table.pop(vm, None)
        if host is not None:
            host.destroy_vm(vm)
            logger.info(f"VM {vm.vm_id} deallocated from host {host.host_id}")

    def get_host(self, vm: "Vm") -> Optional["Host"]:
        return self.vm_table.get(vm)

    def _suitable_hosts(self, vm: "Vm") -> List["Host"]:
        return [host for host in self.hosts if host.is_suitable_for_vm(vm)]

    def _first_fit(self, vm: "Vm", exclude=()) -> Optional["Host"]:
        for host in self.hosts:
            if host.host_id not in exclude and host.is_suitable_for_vm(vm):
                return host
        return None


class FirstFitAllocationPolicy(VmAllocationPolicy):
    """Scans hosts in order and takes the first one that accepts the VM."""

    def __init__(self) -> None:
        super().__init__(PlacementPolicy.FIRST_FIT)

    def find_host_for_vm(self, vm: "Vm") -> Optional["Host"]:
        return self._first_fit(vm)


class BestFitAllocationPolicy(VmAllocationPolicy):
    """Prefers the suitable host with the fewest free Pe's, then the least free MIPS."""

    def __init__(self) -> None:
        super().__init__(PlacementPolicy.BEST_FIT)

    def find_host_for_vm(self, vm: "Vm") -> Optional["Host"]:
        candidates = self._suitable_hosts(vm)
        if not candidates:
            return None
        return min(candidates, key=lambda host: (host.free_pes_number, host.available_mips))


class WorstFitAllocationPolicy(VmAllocationPolicy):
    """Prefers the suitable host with the most free Pe's, spreading VMs out."""

    def __init__(self) -> None:
        super().__init__(PlacementPolicy.WORST_FIT)

    def find_host_for_vm(self, vm: "Vm") -> Optional["Host"]:
        candidates = self._suitable_hosts(vm)
        if not candidates:
            return None
        # max() keeps the first of equal hosts, so ties go to host order
        return max(candidates, key=lambda host: (host.free_pes_number, host.available_mips))


ALLOCATION_POLICIES = {
    PlacementPolicy.FIRST_FIT: FirstFitAllocationPolicy,
    PlacementPolicy.BEST_FIT: BestFitAllocationPolicy,
    PlacementPolicy.WORST_FIT: WorstFitAllocationPolicy,
}


def create_allocation_policy(policy) -> VmAllocationPolicy:
    """Create VM allocation policy instance from a policy or its name."""
    policy = PlacementPolicy(policy)
    return ALLOCATION_POLICIES[policy]()
