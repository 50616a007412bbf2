"""Cloudlets: units of work executed inside virtual machines."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from loguru import logger

from .exceptions import require_positive
from .utilization import UtilizationModel, UtilizationModelFull

if TYPE_CHECKING:
    from .vm import Vm


class CloudletStatus(Enum):
    """Cloudlet execution status."""
    WAITING = "waiting"
    EXECUTING = "executing"
    FINISHED = "finished"
    CANCELED = "canceled"
    FAILED = "failed"


# Statuses can only move to a higher rank.
_STATUS_RANK = {
    CloudletStatus.WAITING: 0,
    CloudletStatus.EXECUTING: 1,
    CloudletStatus.FINISHED: 2,
    CloudletStatus.CANCELED: 2,
    CloudletStatus.FAILED: 2,
}

TERMINAL_STATUSES = (CloudletStatus.FINISHED, CloudletStatus.CANCELED, CloudletStatus.FAILED)


@dataclass(frozen=True)
class CloudletProgressEvent:
    """Passed to a cloudlet's progress listener after each processing update."""
    cloudlet: "Cloudlet"
    vm: "Vm"
    time: float


class Cloudlet:
    """A batch workload with a fixed length in million instructions (MI)."""

    def __init__(
        self,
        cloudlet_id: int,
        length: float,
        pes_number: int = 1,
        file_size: float = 1,
        output_size: float = 1,
        utilization_model: Optional[UtilizationModel] = None,
    ):
        require_positive("Cloudlet length", length)
        require_positive("Cloudlet pes_number", pes_number)
        require_positive("Cloudlet file_size", file_size)
        require_positive("Cloudlet output_size", output_size)

        self.cloudlet_id = cloudlet_id
        self.length = length
        self.pes_number = pes_number
        self.file_size = file_size
        self.output_size = output_size
        self.utilization_model = utilization_model or UtilizationModelFull()

        # Ownership and placement
        self.broker: Optional[Any] = None
        self.vm: Optional["Vm"] = None

        # Execution tracking
        self.status = CloudletStatus.WAITING
        self._finished_so_far = 0.0
        self.submission_time: Optional[float] = None
        self.exec_start_time: Optional[float] = None
        self.finish_time: Optional[float] = None

        self.on_update_processing: Optional[Callable[[CloudletProgressEvent], None]] = None

    def __repr__(self) -> str:
        return f"<Cloudlet {self.cloudlet_id} {self.status.value} {self.progress:.0%}>"

    @property
    def finished_so_far(self) -> float:
        """Instructions (MI) executed so far."""
        return self._finished_so_far

    @property
    def remaining_length(self) -> float:
        return self.length - self._finished_so_far

    @property
    def progress(self) -> float:
        """Executed fraction of the cloudlet, between 0 and 1."""
        return self._finished_so_far / self.length

    @property
    def actual_cpu_time(self) -> Optional[float]:
        if self.exec_start_time is None or self.finish_time is None:
            return None
        return self.finish_time - self.exec_start_time

    def is_finished(self) -> bool:
        return self.status == CloudletStatus.FINISHED

    def is_done(self) -> bool:
        """True once the cloudlet reached any terminal status."""
        return self.status in TERMINAL_STATUSES

    def set_vm(self, vm: Optional["Vm"]) -> "Cloudlet":
        self.vm = vm
        return self

    def add_finished_so_far(self, executed: float) -> float:
        """Add executed instructions, clamped to the cloudlet length; return what was added."""
        if executed < 0:
            raise ValueError(f"Executed length cannot be negative: {executed}")
        before = self._finished_so_far
        self._finished_so_far = min(self.length, before + executed)
        return self._finished_so_far - before

    def complete_length(self) -> None:
        """Snap the counter to the full length once the remainder is negligible."""
        self._finished_so_far = self.length

    def set_status(self, status: CloudletStatus) -> None:
        """Move to ``status``; transitions only go forward."""
        if status == self.status:
            return
        if _STATUS_RANK[status] <= _STATUS_RANK[self.status]:
            raise ValueError(
                f"Cloudlet {self.cloudlet_id} cannot go from {self.status.value} to {status.value}"
            )
        logger.debug(f"Cloudlet {self.cloudlet_id}: {self.status.value} -> {status.value}")
        self.status = status

    def notify_update(self, time: float) -> None:
        """Invoke the progress listener, if any, synchronously."""
        if self.on_update_processing is not None:
            self.on_update_processing(CloudletProgressEvent(cloudlet=self, vm=self.vm, time=time))
