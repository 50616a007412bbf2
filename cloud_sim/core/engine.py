"""Discrete-event simulation engine: the clock, the run loop and entity base class."""

import itertools
import time
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import simpy
from loguru import logger

from .events import EventType, SimulationEvent


class SimEntity:
    """Base class for anything that receives simulation events.

    Subclasses register one handler per ``EventType`` with :meth:`subscribe`,
    the same way the simulator wires its handlers at construction time.
    """

    def __init__(self, simulation: "Simulation", name: Optional[str] = None):
        self.simulation = simulation
        self.id = simulation.register(self)
        self.name = name or f"{self.__class__.__name__}{self.id}"
        self.event_handlers: Dict[EventType, Callable[[SimulationEvent], None]] = {}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

    def subscribe(self, event_type: EventType, handler: Callable[[SimulationEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        self.event_handlers[event_type] = handler

    def schedule(
        self,
        target: "SimEntity",
        delay: float,
        event_type: EventType,
        data: Optional[Dict[str, Any]] = None,
    ) -> SimulationEvent:
        """Send an event from this entity to ``target`` after ``delay`` seconds."""
        return self.simulation.schedule(target, delay, event_type, data, source=self)

    def process_event(self, event: SimulationEvent) -> None:
        handler = self.event_handlers.get(event.event_type)
        if handler is None:
            logger.warning(f"{self.name} has no handler for {event.event_type.value}, event ignored")
            return
        handler(event)

    def start(self) -> None:
        """Called once when the simulation starts running."""

    def shutdown(self) -> None:
        """Called once after the run loop has stopped."""


class Simulation:
    """The simulated clock and its future events, driven by a SimPy environment.

    One instance drives every entity built against it. Each scheduled event
    is a ``simpy`` timeout whose callback dispatches it, so events run in
    non-decreasing time with FIFO ties and a fixed configuration always
    replays the same trace. The run loop steps the environment one event at a
    time, which lets termination take effect between two dispatches.
    """

    def __init__(self) -> None:
        self.env = simpy.Environment()
        self._clock = 0.0
        self._serials = itertools.count()
        self._pending: Dict[int, SimulationEvent] = {}
        self._entities: List[SimEntity] = []
        self._late_entities: List[SimEntity] = []
        self._clock_tick_listeners: List[Callable[[float], None]] = []

        self._running = False
        self._finished = False
        self._terminate_requested = False
        self._termination_time: Optional[float] = None
        self.dispatched_events = 0

        logger.debug("Simulation initialized")

    @property
    def clock(self) -> float:
        """Simulated time in seconds of the last dispatched event."""
        return self._clock

    @property
    def entities(self) -> List[SimEntity]:
        return list(self._entities)

    @property
    def pending_events(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def is_terminate_requested(self) -> bool:
        return self._terminate_requested

    def register(self, entity: SimEntity) -> int:
        """Register an entity and return its id.

        Entities registered during a run are started once the event being
        dispatched has been handled, after their constructor has finished.
        """
        if self._finished:
            raise RuntimeError("Cannot add entities to a finished simulation")
        self._entities.append(entity)
        if self._running:
            self._late_entities.append(entity)
        return len(self._entities) - 1

    def add_on_clock_tick_listener(self, listener: Callable[[float], None]) -> None:
        """Call ``listener(clock)`` every time the clock moves forward."""
        self._clock_tick_listeners.append(listener)

    def schedule(
        self,
        target: SimEntity,
        delay: float,
        event_type: EventType,
        data: Optional[Dict[str, Any]] = None,
        source: Optional[SimEntity] = None,
    ) -> SimulationEvent:
        """Schedule an event for ``target`` at ``clock + delay``."""
        if delay < 0:
            raise ValueError(f"Event delay cannot be negative: {delay}")
        if self._finished:
            raise RuntimeError("Cannot schedule events on a finished simulation")

        event = SimulationEvent(
            timestamp=self._clock + delay,
            serial=next(self._serials),
            event_type=event_type,
            target=target,
            source=source,
            data=data or {},
        )
        self._pending[event.serial] = event
        timeout = self.env.timeout(delay)
        timeout.callbacks.append(partial(self._on_timeout, event.serial))
        return event

    def cancel_events(self, predicate: Callable[[SimulationEvent], bool]) -> int:
        """Withdraw pending events matching ``predicate``.

        Their timeouts stay in the environment but dispatch nothing.
        """
        cancelled = [serial for serial, event in self._pending.items() if predicate(event)]
        for serial in cancelled:
            del self._pending[serial]
        return len(cancelled)

    def terminate(self) -> bool:
        """Request the run loop to stop after the event being dispatched.

        Returns ``True`` only for the call that actually made the request;
        further calls have no effect.
        """
        if self._terminate_requested or self._finished:
            return False
        self._terminate_requested = True
        logger.info(f"Simulation termination requested at {self._clock:.2f}s")
        return True

    def terminate_at(self, termination_time: float) -> bool:
        """Stop the run once the clock would pass ``termination_time``."""
        if self._finished:
            logger.warning(f"Cannot terminate at {termination_time:.2f}s, the simulation has already finished")
            return False
        if termination_time < self._clock:
            logger.warning(
                f"Cannot terminate at {termination_time:.2f}s, clock is already at {self._clock:.2f}s"
            )
            return False
        self._termination_time = termination_time
        logger.info(f"Simulation will terminate at {termination_time:.2f}s")
        return True

    def run(self) -> float:
        """Run until no event is pending or termination is requested.

        Returns the clock at which the run stopped.
        """
        if self._running or self._finished:
            raise RuntimeError("Simulation has already been started")

        logger.info(f"Starting simulation with {len(self._entities)} entities")
        start_time = time.time()
        self._running = True

        for entity in list(self._entities):
            entity.start()
        self._start_late_entities()

        while self._pending and not self._terminate_requested:
            if self._termination_time is not None and self.env.peek() > self._termination_time:
                self._advance_clock(self._termination_time)
                self._terminate_requested = True
                logger.info(f"Simulation reached its termination time {self._termination_time:.2f}s")
                break

            self.env.step()
            self._start_late_entities()

        self._running = False
        self._finished = True

        for entity in self._entities:
            entity.shutdown()

        elapsed_time = time.time() - start_time
        reason = "terminated" if self._terminate_requested else "finished"
        logger.info(
            f"Simulation {reason} at {self._clock:.2f}s after {self.dispatched_events} events "
            f"({elapsed_time:.3f}s wall time, {len(self._pending)} events left)"
        )
        return self._clock

    def _start_late_entities(self) -> None:
        late, self._late_entities = self._late_entities, []
        if self._terminate_requested:
            return
        for entity in late:
            entity.start()

    def _on_timeout(self, serial: int, _timeout: simpy.Event) -> None:
        event = self._pending.pop(serial, None)
        if event is None:
            # Cancelled
            return
        self._advance_clock(event.timestamp)
        self._dispatch(event)

    def _advance_clock(self, new_time: float) -> None:
        if new_time < self._clock:
            raise RuntimeError(f"Clock cannot go backwards from {self._clock} to {new_time}")
        if new_time > self._clock:
            self._clock = new_time
            for listener in self._clock_tick_listeners:
                listener(self._clock)

    def _dispatch(self, event: SimulationEvent) -> None:
        logger.debug(
            f"Dispatching {event.event_type.value} to {event.target.name} at {self._clock:.2f}s"
        )
        self.dispatched_events += 1
        event.target.process_event(event)
