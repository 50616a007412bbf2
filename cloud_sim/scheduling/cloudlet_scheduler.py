"""VM-level cloudlet schedulers: how a VM's MIPS are shared among its cloudlets."""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

from loguru import logger

from ..core.cloudlet import Cloudlet, CloudletStatus

if TYPE_CHECKING:
    from ..core.vm import Vm


def _is_complete(cloudlet: Cloudlet) -> bool:
    # Float progress can land a hair short of the length.
    return cloudlet.remaining_length <= max(1e-6, cloudlet.length * 1e-12)


class CloudletSchedulerType(Enum):
    """Cloudlet scheduling policies."""
    SPACE_SHARED = "space_shared"
    TIME_SHARED = "time_shared"


class CloudletScheduler(ABC):
    """Abstract base class for cloudlet schedulers.

    On every :meth:`update_processing` call each executing cloudlet advances by
    ``mips * utilization * elapsed`` instructions. Cloudlets that finish, are
    canceled or fail are kept in a returned list until the datacenter collects
    them with :meth:`pop_returned`.
    """

    def __init__(self) -> None:
        self.vm: Optional["Vm"] = None
        self.previous_time = 0.0
        self.current_mips_share: List[float] = []
        self._exec_list: List[Cloudlet] = []
        self._waiting_list: List[Cloudlet] = []
        self._returned: List[Cloudlet] = []

    @property
    def exec_list(self) -> List[Cloudlet]:
        return list(self._exec_list)

    @property
    def waiting_list(self) -> List[Cloudlet]:
        return list(self._waiting_list)

    def has_work(self) -> bool:
        return bool(self._exec_list or self._waiting_list)

    def has_returned(self) -> bool:
        return bool(self._returned)

    @property
    def vm_pes(self) -> int:
        return self.vm.pes_number if self.vm is not None else 1

    def submit(self, cloudlet: Cloudlet, time: float) -> None:
        """Accept a cloudlet; it either starts now or waits for free Pe's."""
        cloudlet.submission_time = time
        if cloudlet.pes_number > self.vm_pes:
            logger.warning(
                f"Cloudlet {cloudlet.cloudlet_id} needs {cloudlet.pes_number} Pe's "
                f"but its VM has {self.vm_pes}; marking it failed"
            )
            cloudlet.set_status(CloudletStatus.FAILED)
            cloudlet.finish_time = time
            self._returned.append(cloudlet)
            return
        self._accept(cloudlet, time)

    def cancel(self, cloudlet: Cloudlet, time: float) -> bool:
        """Cancel a waiting or executing cloudlet."""
        for queue in (self._exec_list, self._waiting_list):
            if cloudlet in queue:
                queue.remove(cloudlet)
                cloudlet.set_status(CloudletStatus.CANCELED)
                cloudlet.finish_time = time
                self._returned.append(cloudlet)
                logger.info(f"Cloudlet {cloudlet.cloudlet_id} canceled at {time:.2f}s")
                return True
        return False

    def pop_returned(self) -> List[Cloudlet]:
        returned, self._returned = self._returned, []
        return returned

    def update_processing(self, time: float, mips_share: Sequence[float]) -> float:
        """Advance every executing cloudlet to ``time``.

        Returns the earliest predicted completion time of the executing
        cloudlets, or ``math.inf`` when none is expected.
        """
        self.current_mips_share = list(mips_share)
        elapsed = time - self.previous_time

        if elapsed > 0 and self._exec_list:
            updated = list(self._exec_list)
            rates = [self._effective_mips(cloudlet, time) for cloudlet in updated]
            for cloudlet, rate in zip(updated, rates):
                cloudlet.add_finished_so_far(rate * elapsed)
                if _is_complete(cloudlet):
                    cloudlet.complete_length()
                    self._finish(cloudlet, time)
            for cloudlet in updated:
                cloudlet.notify_update(time)

        self.previous_time = max(self.previous_time, time)
        self._start_waiting(time)
        return self._next_completion_time(time)

    def _effective_mips(self, cloudlet: Cloudlet, time: float) -> float:
        return self.cloudlet_mips(cloudlet) * cloudlet.utilization_model.get_utilization(time)

    def _next_completion_time(self, time: float) -> float:
        next_time = math.inf
        for cloudlet in self._exec_list:
            rate = self._effective_mips(cloudlet, time)
            if rate > 0:
                next_time = min(next_time, time + cloudlet.remaining_length / rate)
        return next_time

    def _start(self, cloudlet: Cloudlet, time: float) -> None:
        self._exec_list.append(cloudlet)
        cloudlet.set_status(CloudletStatus.EXECUTING)
        cloudlet.exec_start_time = time
        logger.debug(f"Cloudlet {cloudlet.cloudlet_id} started at {time:.2f}s")

    def _finish(self, cloudlet: Cloudlet, time: float) -> None:
        self._exec_list.remove(cloudlet)
        cloudlet.set_status(CloudletStatus.FINISHED)
        cloudlet.finish_time = time
        self._returned.append(cloudlet)
        logger.info(f"Cloudlet {cloudlet.cloudlet_id} finished at {time:.2f}s")

    def per_pe_capacity(self) -> float:
        """MIPS available to each Pe a cloudlet uses."""
        if not self.current_mips_share:
            return 0.0
        return sum(self.current_mips_share) / len(self.current_mips_share)

    @abstractmethod
    def cloudlet_mips(self, cloudlet: Cloudlet) -> float:
        """MIPS currently given to an executing cloudlet."""
        pass

    @abstractmethod
    def _accept(self, cloudlet: Cloudlet, time: float) -> None:
        pass

    def _start_waiting(self, time: float) -> None:
        pass


class CloudletSchedulerSpaceShared(CloudletScheduler):
    """Runs cloudlets one Pe set at a time, strictly in submission order."""

    def used_pes(self) -> int:
        return sum(cloudlet.pes_number for cloudlet in self._exec_list)

    def free_pes(self) -> int:
        return self.vm_pes - self.used_pes()

    def cloudlet_mips(self, cloudlet: Cloudlet) -> float:
        return self.per_pe_capacity() * cloudlet.pes_number

    def _accept(self, cloudlet: Cloudlet, time: float) -> None:
        if not self._waiting_list and cloudlet.pes_number <= self.free_pes():
            self._start(cloudlet, time)
        else:
            self._waiting_list.append(cloudlet)
            logger.debug(f"Cloudlet {cloudlet.cloudlet_id} queued on VM {self.vm.vm_id}")

    def _start_waiting(self, time: float) -> None:
        while self._waiting_list and self._waiting_list[0].pes_number <= self.free_pes():
            self._start(self._waiting_list.pop(0), time)


class CloudletSchedulerTimeShared(CloudletScheduler):
    """Runs every cloudlet at once, splitting the VM's MIPS among them."""

    def cloudlet_mips(self, cloudlet: Cloudlet) -> float:
        if not self.current_mips_share:
            return 0.0
        requested_pes = sum(c.pes_number for c in self._exec_list)
        capacity = sum(self.current_mips_share) / max(len(self.current_mips_share), requested_pes)
        return capacity * cloudlet.pes_number

    def _accept(self, cloudlet: Cloudlet, time: float) -> None:
        self._start(cloudlet, time)


CLOUDLET_SCHEDULERS = {
    CloudletSchedulerType.SPACE_SHARED: CloudletSchedulerSpaceShared,
    CloudletSchedulerType.TIME_SHARED: CloudletSchedulerTimeShared,
}


def create_cloudlet_scheduler(scheduler_type) -> CloudletScheduler:
    """Create cloudlet scheduler instance from a type or its name."""
    scheduler_type = CloudletSchedulerType(scheduler_type)
    return CLOUDLET_SCHEDULERS[scheduler_type]()
