"""Host-level VM schedulers: how a host's processing elements are shared among VMs."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from loguru import logger

from ..core.exceptions import InvalidConfigurationError
from ..core.resources import Pe, PeStatus

if TYPE_CHECKING:
    from ..core.host import Host
    from ..core.vm import Vm

_EPSILON = 1e-9


class VmSchedulerType(Enum):
    """VM scheduling policies."""
    TIME_SHARED = "time_shared"
    SPACE_SHARED = "space_shared"


class VmScheduler(ABC):
    """Abstract base class for VM schedulers.

    Keeps, for each resident VM, the MIPS granted to each of its virtual Pe's.
    """

    def __init__(self) -> None:
        self.host: Optional["Host"] = None
        self._mips_map: Dict["Vm", List[float]] = {}

    @property
    def pes(self) -> List[Pe]:
        return self.host.pes if self.host is not None else []

    @property
    def total_mips(self) -> float:
        return sum(pe.mips for pe in self.pes)

    @property
    def allocated_mips(self) -> float:
        return sum(sum(mips) for mips in self._mips_map.values())

    @property
    def available_mips(self) -> float:
        return self.total_mips - self.allocated_mips

    def free_pes(self) -> List[Pe]:
        return [pe for pe in self.pes if pe.is_free()]

    def get_allocated_mips_for_vm(self, vm: "Vm") -> List[float]:
        """MIPS granted to each of the VM's Pe's (empty when not placed)."""
        return list(self._mips_map.get(vm, []))

    def get_total_allocated_mips_for_vm(self, vm: "Vm") -> float:
        return sum(self._mips_map.get(vm, []))

    def get_pes_allocated_for_vm(self, vm: "Vm") -> List[Pe]:
        return [pe for pe in self.pes if pe.provisioner.allocated_for(vm) > 0]

    def has_vm(self, vm: "Vm") -> bool:
        return vm in self._mips_map

    @abstractmethod
    def is_suitable_for_vm(self, vm: "Vm") -> bool:
        """Check if the VM's Pe demand could be allocated right now."""
        pass

    @abstractmethod
    def allocate_pes_for_vm(self, vm: "Vm") -> bool:
        """Allocate Pe's for the VM; ``False`` means the host cannot take it."""
        pass

    @abstractmethod
    def deallocate_pes_for_vm(self, vm: "Vm") -> None:
        pass


class VmSchedulerTimeShared(VmScheduler):
    """Shares every Pe among all resident VMs.

    Requests are granted in full while they fit in the host's total MIPS.
    With ``oversubscription`` above 1, more VMs are admitted and every VM's
    share is scaled down pro rata to its request.
    """

    def __init__(self, oversubscription: float = 1.0):
        super().__init__()
        if oversubscription < 1.0:
            raise InvalidConfigurationError(
                f"oversubscription must be at least 1.0, got {oversubscription}"
            )
        self.oversubscription = oversubscription
        self._requested: Dict["Vm", List[float]] = {}

    @property
    def requested_mips(self) -> float:
        return sum(sum(mips) for mips in self._requested.values())

    def is_suitable_for_vm(self, vm: "Vm") -> bool:
        if not self.pes or vm.pes_number > len(self.pes):
            return False
        if vm.mips > max(pe.mips for pe in self.pes):
            return False
        already = sum(self._requested.get(vm, []))
        demand = self.requested_mips - already + vm.mips * vm.pes_number
        return demand <= self.total_mips * self.oversubscription + _EPSILON

    def allocate_pes_for_vm(self, vm: "Vm") -> bool:
        if not self.is_suitable_for_vm(vm):
            logger.debug(f"Time-shared scheduler cannot fit VM {vm.vm_id} on host {self.host.host_id}")
            return False
        self._requested[vm] = [vm.mips] * vm.pes_number
        self._redistribute()
        return True

    def deallocate_pes_for_vm(self, vm: "Vm") -> None:
        if self._requested.pop(vm, None) is None:
            return
        self._mips_map.pop(vm, None)
        self._redistribute()

    def _redistribute(self) -> None:
        """Recompute every VM's share and map it onto the physical Pe's."""
        for pe in self.pes:
            for consumer in pe.provisioner.consumers():
                pe.provisioner.deallocate(consumer)
        self._mips_map.clear()

        total_requested = self.requested_mips
        scale = 1.0
        if total_requested > self.total_mips:
            scale = self.total_mips / total_requested

        pes = self.pes
        index = 0
        for vm, requested in self._requested.items():
            granted = []
            for mips in requested:
                share = mips * scale
                remaining = share
                while remaining > _EPSILON and index < len(pes):
                    pe = pes[index]
                    take = min(remaining, pe.available_mips)
                    if take > 0:
                        pe.provisioner.allocate(vm, pe.provisioner.allocated_for(vm) + take)
                        remaining -= take
                    if pe.available_mips <= _EPSILON:
                        index += 1
                # Pe's exhausted: the VM keeps a reduced share
                granted.append(share - max(remaining, 0.0))
            self._mips_map[vm] = granted

        for pe in pes:
            pe.status = PeStatus.BUSY if pe.provisioner.consumers() else PeStatus.FREE


class VmSchedulerSpaceShared(VmScheduler):
    """Dedicates whole Pe's to a single VM."""

    def __init__(self) -> None:
        super().__init__()
        self._pe_map: Dict["Vm", List[Pe]] = {}

    def _candidate_pes(self, vm: "Vm") -> List[Pe]:
        return [pe for pe in self.free_pes() if pe.mips >= vm.mips]

    def is_suitable_for_vm(self, vm: "Vm") -> bool:
        return vm in self._pe_map or len(self._candidate_pes(vm)) >= vm.pes_number

    def allocate_pes_for_vm(self, vm: "Vm") -> bool:
        if vm in self._pe_map:
            return True
        candidates = self._candidate_pes(vm)
        if len(candidates) < vm.pes_number:
            logger.debug(
                f"Space-shared scheduler has {len(candidates)} free Pe's for VM {vm.vm_id}, "
                f"{vm.pes_number} needed"
            )
            return False

        selected = candidates[:vm.pes_number]
        for pe in selected:
            pe.provisioner.allocate(vm, vm.mips)
            pe.status = PeStatus.BUSY
        self._pe_map[vm] = selected
        self._mips_map[vm] = [vm.mips] * vm.pes_number
        return True

    def deallocate_pes_for_vm(self, vm: "Vm") -> None:
        for pe in self._pe_map.pop(vm, []):
            pe.provisioner.deallocate(vm)
            pe.status = PeStatus.FREE
        self._mips_map.pop(vm, None)


VM_SCHEDULERS = {
    VmSchedulerType.TIME_SHARED: VmSchedulerTimeShared,
    VmSchedulerType.SPACE_SHARED: VmSchedulerSpaceShared,
}


def create_vm_scheduler(scheduler_type, **kwargs) -> VmScheduler:
    """Create VM scheduler instance from a type or its name."""
    scheduler_type = VmSchedulerType(scheduler_type)
    return VM_SCHEDULERS[scheduler_type](**kwargs)
