"""Simulation events and event types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from loguru import logger


class EventType(Enum):
    """Types of simulation events."""

    # VM lifecycle
    VM_CREATE = "vm_create"
    VM_CREATE_ACK = "vm_create_ack"
    VM_DESTROY = "vm_destroy"

    # Cloudlet lifecycle
    CLOUDLET_SUBMIT = "cloudlet_submit"
    CLOUDLET_CANCEL = "cloudlet_cancel"
    CLOUDLET_RETURN = "cloudlet_return"

    # Processing
    UPDATE_PROCESSING = "update_processing"


@dataclass(frozen=True)
class SimulationEvent:
    """An immutable event addressed to one entity.

    ``serial`` is the order in which events were scheduled; events with
    equal timestamps dispatch in that order.
    """

    timestamp: float
    serial: int
    event_type: EventType
    target: Any
    source: Any = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        logger.debug(
            f"Event created: {self.event_type.value} at {self.timestamp:.2f}s "
            f"for {getattr(self.target, 'name', self.target)}"
        )
