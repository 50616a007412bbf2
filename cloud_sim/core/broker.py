"""Datacenter broker: submits VMs and cloudlets on behalf of a cloud customer."""

from typing import Dict, List, Optional, Sequence

from loguru import logger

from .cloudlet import Cloudlet, CloudletStatus
from .datacenter import Datacenter
from .engine import SimEntity, Simulation
from .events import EventType, SimulationEvent
from .vm import Vm


class DatacenterBroker(SimEntity):
    """Represents a tenant.

    VMs are requested first; cloudlets are held back until every requested
    VM has been answered, then sent to the datacenter in submission order.
    Cloudlets bound to a VM that could not be placed are never sent and stay
    waiting.
    """

    def __init__(
        self,
        simulation: Simulation,
        name: Optional[str] = None,
        datacenter: Optional[Datacenter] = None,
    ):
        super().__init__(simulation, name)
        self.datacenter = datacenter
        self._started = False

        # VM management
        self._vm_batches: List[tuple] = []
        self._vms_created: List[Vm] = []
        self._vms_failed: List[Vm] = []
        self._vm_requests_pending = 0
        self._vms_destroy_requested = set()

        # Cloudlet partitions
        self._cloudlets_waiting: List[Cloudlet] = []
        self._cloudlets_submitted: List[Cloudlet] = []
        self._cloudlets_finished: List[Cloudlet] = []
        self._cloudlets_failed: List[Cloudlet] = []
        self._submission_offsets: Dict[Cloudlet, float] = {}
        self._next_vm_index = 0

        self.subscribe(EventType.VM_CREATE_ACK, self._handle_vm_create_ack)
        self.subscribe(EventType.CLOUDLET_RETURN, self._handle_cloudlet_return)

        logger.info(f"Broker {self.name} created")

    # Submission API

    def submit_vm_list(self, vms: Sequence[Vm], submission_delay: float = 0.0) -> None:
        """Request creation of ``vms``; VM ``i`` is requested ``i * submission_delay`` later."""
        if submission_delay < 0:
            raise ValueError(f"submission_delay cannot be negative: {submission_delay}")
        vms = list(vms)
        for vm in vms:
            vm.broker = self
        if self._started:
            self._request_vm_creation(vms, submission_delay)
        else:
            self._vm_batches.append((vms, submission_delay))

    def submit_cloudlet_list(self, cloudlets: Sequence[Cloudlet], submission_delay: float = 0.0) -> None:
        """Queue ``cloudlets``; cloudlet ``i`` is sent ``i * submission_delay`` after release."""
        if submission_delay < 0:
            raise ValueError(f"submission_delay cannot be negative: {submission_delay}")
        for index, cloudlet in enumerate(cloudlets):
            cloudlet.broker = self
            self._cloudlets_waiting.append(cloudlet)
            self._submission_offsets[cloudlet] = index * submission_delay

        if self._started and self._vm_requests_pending == 0:
            self._submit_waiting_cloudlets()

    def bind_cloudlet_to_vm(self, cloudlet: Cloudlet, vm: Vm) -> bool:
        """Bind a not yet submitted cloudlet to a VM."""
        if cloudlet in self._cloudlets_submitted or cloudlet.is_done():
            logger.warning(f"Cloudlet {cloudlet.cloudlet_id} was already submitted and cannot be rebound")
            return False
        cloudlet.set_vm(vm)
        return True

    def cancel_cloudlet(self, cloudlet: Cloudlet) -> bool:
        """Cancel a waiting or submitted cloudlet."""
        if cloudlet in self._cloudlets_waiting:
            self._cloudlets_waiting.remove(cloudlet)
            self._submission_offsets.pop(cloudlet, None)
            cloudlet.set_status(CloudletStatus.CANCELED)
            cloudlet.finish_time = self.simulation.clock
            self._cloudlets_failed.append(cloudlet)
            return True
        if cloudlet in self._cloudlets_submitted and self.datacenter is not None:
            self.schedule(self.datacenter, 0, EventType.CLOUDLET_CANCEL, {"cloudlet": cloudlet})
            return True
        return False

    # Read API

    def get_cloudlets_finished_list(self) -> List[Cloudlet]:
        """Cloudlets that completed 100% of their length, in completion order."""
        return list(self._cloudlets_finished)

    def get_cloudlets_waiting_list(self) -> List[Cloudlet]:
        return list(self._cloudlets_waiting)

    def get_cloudlets_submitted_list(self) -> List[Cloudlet]:
        return list(self._cloudlets_submitted)

    def get_cloudlets_failed_list(self) -> List[Cloudlet]:
        """Cloudlets that were canceled or failed."""
        return list(self._cloudlets_failed)

    def get_vms_created_list(self) -> List[Vm]:
        return list(self._vms_created)

    def get_vms_failed_list(self) -> List[Vm]:
        return list(self._vms_failed)

    # Lifecycle

    def start(self) -> None:
        if self.datacenter is None:
            self.datacenter = self._find_datacenter()
        self._started = True

        batches, self._vm_batches = self._vm_batches, []
        for vms, submission_delay in batches:
            self._request_vm_creation(vms, submission_delay)

        if self._vm_requests_pending == 0:
            self._submit_waiting_cloudlets()

    def shutdown(self) -> None:
        logger.info(
            f"Broker {self.name}: {len(self._cloudlets_finished)} cloudlets finished, "
            f"{len(self._cloudlets_submitted)} still submitted, "
            f"{len(self._cloudlets_waiting)} waiting, {len(self._cloudlets_failed)} failed or canceled"
        )

    def _find_datacenter(self) -> Datacenter:
        for entity in self.simulation.entities:
            if isinstance(entity, Datacenter):
                return entity
        raise RuntimeError(f"Broker {self.name} found no datacenter in the simulation")

    def _request_vm_creation(self, vms: List[Vm], submission_delay: float) -> None:
        for index, vm in enumerate(vms):
            self.schedule(self.datacenter, index * submission_delay, EventType.VM_CREATE, {"vm": vm})
            self._vm_requests_pending += 1
        if vms:
            logger.info(
                f"Broker {self.name} requested {len(vms)} VMs from {self.datacenter.name} "
                f"at {self.simulation.clock:.2f}s"
            )

    def _handle_vm_create_ack(self, event: SimulationEvent) -> None:
        vm = event.data["vm"]
        self._vm_requests_pending -= 1

        if event.data["created"]:
            self._vms_created.append(vm)
            logger.info(f"VM {vm.vm_id} created on host {vm.host.host_id} at {self.simulation.clock:.2f}s")
        else:
            self._vms_failed.append(vm)
            logger.warning(f"VM {vm.vm_id} could not be placed in {self.datacenter.name}")

        if self._vm_requests_pending == 0:
            self._submit_waiting_cloudlets()

    def _next_running_vm(self) -> Optional[Vm]:
        running = [vm for vm in self._vms_created if vm.created]
        if not running:
            return None
        vm = running[self._next_vm_index % len(running)]
        self._next_vm_index += 1
        return vm

    def _submit_waiting_cloudlets(self) -> None:
        submittable = []
        still_waiting = []
        for cloudlet in self._cloudlets_waiting:
            if cloudlet.vm is None:
                cloudlet.set_vm(self._next_running_vm())
            if cloudlet.vm is not None and cloudlet.vm.created:
                submittable.append(cloudlet)
            else:
                still_waiting.append(cloudlet)

        for cloudlet in still_waiting:
            vm_id = cloudlet.vm.vm_id if cloudlet.vm is not None else None
            logger.warning(f"Cloudlet {cloudlet.cloudlet_id} held back: VM {vm_id} is not running")

        self._cloudlets_waiting = still_waiting
        for cloudlet in submittable:
            offset = self._submission_offsets.pop(cloudlet, 0.0)
            self.schedule(self.datacenter, offset, EventType.CLOUDLET_SUBMIT, {"cloudlet": cloudlet})
            self._cloudlets_submitted.append(cloudlet)

        if submittable:
            logger.info(
                f"Broker {self.name} submitted {len(submittable)} cloudlets at {self.simulation.clock:.2f}s"
            )

    def _handle_cloudlet_return(self, event: SimulationEvent) -> None:
        cloudlet = event.data["cloudlet"]
        if cloudlet in self._cloudlets_submitted:
            self._cloudlets_submitted.remove(cloudlet)

        if cloudlet.status == CloudletStatus.FINISHED:
            self._cloudlets_finished.append(cloudlet)
            logger.info(
                f"Broker {self.name}: cloudlet {cloudlet.cloudlet_id} received at {self.simulation.clock:.2f}s"
            )
        else:
            self._cloudlets_failed.append(cloudlet)
            logger.warning(f"Broker {self.name}: cloudlet {cloudlet.cloudlet_id} returned {cloudlet.status.value}")

        if not self._cloudlets_submitted and self._vm_requests_pending == 0:
            self._destroy_vms()

    def _destroy_vms(self) -> None:
        running = [vm for vm in self._vms_created if vm.created and vm not in self._vms_destroy_requested]
        for vm in running:
            self._vms_destroy_requested.add(vm)
            self.schedule(self.datacenter, 0, EventType.VM_DESTROY, {"vm": vm})
        if running:
            logger.info(f"Broker {self.name} destroying {len(running)} idle VMs at {self.simulation.clock:.2f}s")
