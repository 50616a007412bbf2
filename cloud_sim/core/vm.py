"""Virtual machines requested by brokers and placed on hosts."""

from typing import TYPE_CHECKING, Any, List, Optional

from .exceptions import require_positive
from ..scheduling.cloudlet_scheduler import CloudletScheduler, CloudletSchedulerSpaceShared

if TYPE_CHECKING:
    from .host import Host


class Vm:
    """A virtual machine: a bundle of requested MIPS, Pe's, RAM, bandwidth and storage."""

    def __init__(
        self,
        vm_id: int,
        mips: float,
        pes_number: int = 1,
        ram: float = 512,
        bw: float = 1000,
        size: float = 10000,
        cloudlet_scheduler: Optional[CloudletScheduler] = None,
    ):
        require_positive("VM mips", mips)
        require_positive("VM pes_number", pes_number)
        require_positive("VM ram", ram)
        require_positive("VM bw", bw)
        require_positive("VM size", size)

        self.vm_id = vm_id
        self.mips = mips
        self.pes_number = pes_number
        self.ram = ram
        self.bw = bw
        self.size = size

        self.cloudlet_scheduler = cloudlet_scheduler or CloudletSchedulerSpaceShared()
        self.cloudlet_scheduler.vm = self

        self.broker: Optional[Any] = None
        self.host: Optional["Host"] = None
        self.created = False
        self.failed = False

    def __repr__(self) -> str:
        return f"<Vm {self.vm_id} {self.mips}x{self.pes_number} MIPS>"

    @property
    def total_mips(self) -> float:
        return self.mips * self.pes_number

    def allocated_mips(self) -> List[float]:
        """MIPS currently granted by the host's VM scheduler."""
        if self.host is None:
            return []
        return self.host.vm_scheduler.get_allocated_mips_for_vm(self)

    def update_processing(self, time: float, mips_share: List[float]) -> float:
        """Advance the VM's cloudlets to ``time``; return the next completion time."""
        return self.cloudlet_scheduler.update_processing(time, mips_share)
