"""Datacenters: host collections that place VMs and run their cloudlets."""

import math
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from .cloudlet import Cloudlet, CloudletStatus
from .engine import SimEntity, Simulation
from .events import EventType, SimulationEvent
from .exceptions import InvalidConfigurationError
from .host import Host
from .vm import Vm
from ..scheduling.allocation import FirstFitAllocationPolicy, VmAllocationPolicy


@dataclass
class DatacenterCharacteristics:
    """Descriptive and cost attributes of a datacenter.

    Costs are carried through for reporting only; no scheduling decision
    depends on them.
    """
    architecture: str = "x86"
    os: str = "Linux"
    vmm: str = "Xen"
    time_zone: float = 10.0
    cost_per_second: float = 3.0
    cost_per_mem: float = 0.05
    cost_per_storage: float = 0.001
    cost_per_bw: float = 0.0


class Datacenter(SimEntity):
    """A set of hosts plus the policy that places VMs on them.

    Every event this entity receives first advances all hosts to the
    current clock, then is handled, then the next processing update is
    scheduled at the earliest predicted cloudlet completion (or the next
    ``scheduling_interval`` boundary when that comes first).
    """

    def __init__(
        self,
        simulation: Simulation,
        hosts: List[Host],
        vm_allocation_policy: Optional[VmAllocationPolicy] = None,
        characteristics: Optional[DatacenterCharacteristics] = None,
        scheduling_interval: float = 0.0,
        name: Optional[str] = None,
    ):
        if not hosts:
            raise InvalidConfigurationError("A datacenter needs at least one host")
        if scheduling_interval < 0:
            raise InvalidConfigurationError(
                f"scheduling_interval cannot be negative, got {scheduling_interval}"
            )
        super().__init__(simulation, name)

        self.hosts = list(hosts)
        for host in self.hosts:
            host.datacenter = self

        self.vm_allocation_policy = vm_allocation_policy or FirstFitAllocationPolicy()
        self.vm_allocation_policy.attach(self.hosts)
        self.characteristics = characteristics or DatacenterCharacteristics()
        self.scheduling_interval = scheduling_interval
        self._next_update: Optional[float] = None

        self._setup_event_handlers()

        logger.info(
            f"{self.name} created with {len(self.hosts)} hosts "
            f"using '{self.vm_allocation_policy.placement_policy.value}' placement"
        )

    def _setup_event_handlers(self) -> None:
        self.subscribe(EventType.VM_CREATE, self._handle_vm_create)
        self.subscribe(EventType.VM_DESTROY, self._handle_vm_destroy)
        self.subscribe(EventType.CLOUDLET_SUBMIT, self._handle_cloudlet_submit)
        self.subscribe(EventType.CLOUDLET_CANCEL, self._handle_cloudlet_cancel)
        self.subscribe(EventType.UPDATE_PROCESSING, self._handle_update_processing)

    @property
    def vms(self) -> List[Vm]:
        return [vm for host in self.hosts for vm in host.vms]

    def process_event(self, event: SimulationEvent) -> None:
        self.update_processing()
        super().process_event(event)
        self._schedule_next_update(self.update_processing())

    def update_processing(self) -> float:
        """Advance every host to the current clock; return the earliest next completion."""
        time = self.simulation.clock
        next_time = math.inf
        for host in self.hosts:
            next_time = min(next_time, host.update_processing(time))
        for vm in self.vms:
            self._return_cloudlets(vm.cloudlet_scheduler.pop_returned())
        return next_time

    def has_running_work(self) -> bool:
        return any(vm.cloudlet_scheduler.has_work() for vm in self.vms)

    def _schedule_next_update(self, next_completion: float) -> None:
        if not self.has_running_work():
            if self._next_update is not None:
                self.simulation.cancel_events(self._is_own_update_event)
                self._next_update = None
            return

        now = self.simulation.clock
        target = next_completion
        if self.scheduling_interval > 0:
            boundary = (math.floor(now / self.scheduling_interval) + 1) * self.scheduling_interval
            target = min(target, boundary)
        if math.isinf(target):
            return
        if target <= now:
            target = math.nextafter(now, math.inf)

        if self._next_update is not None and now < self._next_update <= target:
            return
        if self._next_update is not None:
            self.simulation.cancel_events(self._is_own_update_event)

        event = self.schedule(self, target - now, EventType.UPDATE_PROCESSING)
        self._next_update = event.timestamp

    def _is_own_update_event(self, event: SimulationEvent) -> bool:
        return event.target is self and event.event_type == EventType.UPDATE_PROCESSING

    def _return_cloudlets(self, cloudlets: List[Cloudlet]) -> None:
        for cloudlet in cloudlets:
            if cloudlet.broker is None:
                logger.warning(f"Cloudlet {cloudlet.cloudlet_id} has no broker to return to")
                continue
            self.schedule(cloudlet.broker, 0, EventType.CLOUDLET_RETURN, {"cloudlet": cloudlet})

    def _handle_vm_create(self, event: SimulationEvent) -> None:
        vm = event.data["vm"]
        host = self.vm_allocation_policy.allocate_host_for_vm(vm)
        created = host is not None
        vm.failed = not created
        if event.source is not None:
            self.schedule(event.source, 0, EventType.VM_CREATE_ACK, {"vm": vm, "created": created})

    def _handle_vm_destroy(self, event: SimulationEvent) -> None:
        vm = event.data["vm"]
        scheduler = vm.cloudlet_scheduler
        for cloudlet in scheduler.exec_list + scheduler.waiting_list:
            scheduler.cancel(cloudlet, self.simulation.clock)
        self._return_cloudlets(scheduler.pop_returned())
        self.vm_allocation_policy.deallocate_host_for_vm(vm)

    def _handle_cloudlet_submit(self, event: SimulationEvent) -> None:
        cloudlet = event.data["cloudlet"]
        vm = cloudlet.vm
        now = self.simulation.clock

        if vm is None or not vm.created or vm.host is None or vm.host.datacenter is not self:
            logger.warning(
                f"Cloudlet {cloudlet.cloudlet_id} submitted to {self.name} "
                f"without a VM running here; marking it failed"
            )
            cloudlet.set_status(CloudletStatus.FAILED)
            cloudlet.finish_time = now
            self._return_cloudlets([cloudlet])
            return

        vm.cloudlet_scheduler.submit(cloudlet, now)
        logger.debug(f"Cloudlet {cloudlet.cloudlet_id} submitted to VM {vm.vm_id} at {now:.2f}s")

    def _handle_cloudlet_cancel(self, event: SimulationEvent) -> None:
        cloudlet = event.data["cloudlet"]
        if cloudlet.vm is not None:
            cloudlet.vm.cloudlet_scheduler.cancel(cloudlet, self.simulation.clock)

    def _handle_update_processing(self, event: SimulationEvent) -> None:
        # The processing itself happens in process_event
        if self._next_update is not None and event.timestamp >= self._next_update:
            self._next_update = None

    def shutdown(self) -> None:
        """Release the capacity of every VM still placed."""
        remaining = list(self.vm_allocation_policy.vm_table)
        for vm in remaining:
            self.vm_allocation_policy.deallocate_host_for_vm(vm)
        if remaining:
            logger.info(f"{self.name} released {len(remaining)} VMs at shutdown")
