"""Physical hosts: processing elements plus RAM, bandwidth and storage pools."""

import math
from typing import TYPE_CHECKING, List, Optional

from loguru import logger

from .exceptions import InvalidConfigurationError
from .resources import Pe, ResourcePool, ResourceProvisioner
from .vm import Vm
from ..scheduling.vm_scheduler import VmScheduler, VmSchedulerTimeShared

if TYPE_CHECKING:
    from .datacenter import Datacenter


class Host:
    """Physical host in a datacenter."""

    def __init__(
        self,
        host_id: int,
        pes: List[Pe],
        ram: float,
        bw: float,
        storage: float,
        vm_scheduler: Optional[VmScheduler] = None,
    ):
        if not pes:
            raise InvalidConfigurationError(f"Host {host_id} needs at least one Pe")

        self.host_id = host_id
        self.pes = list(pes)
        self.ram_provisioner = ResourceProvisioner(ResourcePool(ram, name="ram"))
        self.bw_provisioner = ResourceProvisioner(ResourcePool(bw, name="bw"))
        self.storage_provisioner = ResourceProvisioner(ResourcePool(storage, name="storage"))

        self.vm_scheduler = vm_scheduler or VmSchedulerTimeShared()
        self.vm_scheduler.host = self

        self.vms: List[Vm] = []
        self.datacenter: Optional["Datacenter"] = None

        logger.info(
            f"Host {host_id} created with {len(self.pes)} Pe's ({self.total_mips:.0f} MIPS), "
            f"{ram} RAM, {bw} bw, {storage} storage"
        )

    def __repr__(self) -> str:
        return f"<Host {self.host_id} {len(self.vms)} VMs>"

    @property
    def total_mips(self) -> float:
        return sum(pe.mips for pe in self.pes)

    @property
    def available_mips(self) -> float:
        return self.vm_scheduler.available_mips

    @property
    def free_pes_number(self) -> int:
        return len(self.vm_scheduler.free_pes())

    def is_suitable_for_vm(self, vm: Vm) -> bool:
        """Check if the host can accommodate every resource the VM requests."""
        return (
            self.vm_scheduler.is_suitable_for_vm(vm) and
            self.ram_provisioner.is_suitable(vm, vm.ram) and
            self.bw_provisioner.is_suitable(vm, vm.bw) and
            self.storage_provisioner.is_suitable(vm, vm.size)
        )

    def create_vm(self, vm: Vm) -> bool:
        """Reserve the VM's resources; nothing is kept reserved on failure."""
        if not self.storage_provisioner.allocate(vm, vm.size):
            logger.debug(f"Host {self.host_id}: not enough storage for VM {vm.vm_id}")
            return False
        if not self.ram_provisioner.allocate(vm, vm.ram):
            logger.debug(f"Host {self.host_id}: not enough RAM for VM {vm.vm_id}")
            self.storage_provisioner.deallocate(vm)
            return False
        if not self.bw_provisioner.allocate(vm, vm.bw):
            logger.debug(f"Host {self.host_id}: not enough bw for VM {vm.vm_id}")
            self.storage_provisioner.deallocate(vm)
            self.ram_provisioner.deallocate(vm)
            return False
        if not self.vm_scheduler.allocate_pes_for_vm(vm):
            self.storage_provisioner.deallocate(vm)
            self.ram_provisioner.deallocate(vm)
            self.bw_provisioner.deallocate(vm)
            return False

        self.vms.append(vm)
        vm.host = self
        vm.created = True
        return True

    def destroy_vm(self, vm: Vm) -> None:
        """Release everything the VM holds on this host."""
        if vm not in self.vms:
            return
        self.vm_scheduler.deallocate_pes_for_vm(vm)
        self.ram_provisioner.deallocate(vm)
        self.bw_provisioner.deallocate(vm)
        self.storage_provisioner.deallocate(vm)
        self.vms.remove(vm)
        vm.created = False
        logger.debug(f"VM {vm.vm_id} removed from host {self.host_id}")

    def update_processing(self, time: float) -> float:
        """Advance every resident VM to ``time``; return the earliest next completion."""
        next_time = math.inf
        for vm in self.vms:
            mips_share = self.vm_scheduler.get_allocated_mips_for_vm(vm)
            next_time = min(next_time, vm.update_processing(time, mips_share))
        return next_time
