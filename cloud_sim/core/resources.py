"""Physical resource pools, provisioners and processing elements."""

from enum import Enum
from typing import Any, Dict

from loguru import logger

from .exceptions import require_positive


class ResourcePool:
    """A fixed-capacity amount of one resource (MIPS, RAM, bandwidth or storage)."""

    def __init__(self, capacity: float, name: str = "resource"):
        require_positive(f"{name} capacity", capacity)
        self.name = name
        self.capacity = capacity
        self._allocated = 0

    def __repr__(self) -> str:
        return f"<ResourcePool {self.name} {self._allocated}/{self.capacity}>"

    @property
    def allocated(self) -> float:
        return self._allocated

    @property
    def available(self) -> float:
        return self.capacity - self._allocated

    def allocate(self, amount: float) -> bool:
        """Reserve ``amount``; fails without side effects when it does not fit."""
        if amount < 0 or amount > self.available:
            return False
        self._allocated += amount
        return True

    def deallocate(self, amount: float) -> None:
        """Release ``amount``, never going below zero."""
        self._allocated = max(0, self._allocated - amount)


class ResourceProvisioner:
    """First come, first served allocation of a pool to individual consumers."""

    def __init__(self, pool: ResourcePool):
        self.pool = pool
        self._allocations: Dict[Any, float] = {}

    @property
    def capacity(self) -> float:
        return self.pool.capacity

    def available_capacity(self) -> float:
        return self.pool.available

    def total_allocated(self) -> float:
        return self.pool.allocated

    def allocated_for(self, consumer: Any) -> float:
        return self._allocations.get(consumer, 0)

    def is_suitable(self, consumer: Any, amount: float) -> bool:
        """Check whether ``consumer`` could hold ``amount`` in total."""
        return amount <= self.pool.available + self.allocated_for(consumer)

    def allocate(self, consumer: Any, amount: float) -> bool:
        """Give ``consumer`` exactly ``amount``, replacing any previous allocation."""
        previous = self._allocations.pop(consumer, 0)
        self.pool.deallocate(previous)

        if not self.pool.allocate(amount):
            if previous:
                self.pool.allocate(previous)
                self._allocations[consumer] = previous
            logger.debug(
                f"{self.pool.name} provisioner rejected {amount} for {consumer} "
                f"({self.pool.available} available)"
            )
            return False

        self._allocations[consumer] = amount
        return True

    def deallocate(self, consumer: Any) -> float:
        """Release everything held by ``consumer`` and return the freed amount."""
        freed = self._allocations.pop(consumer, 0)
        self.pool.deallocate(freed)
        return freed

    def consumers(self):
        return list(self._allocations)


class PeProvisioner(ResourceProvisioner):
    """Provisioner for the MIPS of a single processing element."""

    def __init__(self, mips: float):
        super().__init__(ResourcePool(mips, name="mips"))


class PeStatus(Enum):
    """Processing element status."""
    FREE = "free"
    BUSY = "busy"


class Pe:
    """A processing element (CPU core) with a fixed MIPS capacity."""

    def __init__(self, pe_id: int, mips: float):
        require_positive("Pe mips", mips)
        self.pe_id = pe_id
        self.provisioner = PeProvisioner(mips)
        self.status = PeStatus.FREE

    def __repr__(self) -> str:
        return f"<Pe {self.pe_id} {self.mips} MIPS {self.status.value}>"

    @property
    def mips(self) -> float:
        return self.provisioner.capacity

    @property
    def available_mips(self) -> float:
        return self.provisioner.available_capacity()

    def is_free(self) -> bool:
        return self.status == PeStatus.FREE
