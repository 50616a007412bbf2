"""Tests for the event engine and the simulation clock."""

import pytest

from cloud_sim.core.engine import SimEntity, Simulation
from cloud_sim.core.events import EventType


class Recorder(SimEntity):
    """Records (clock, label) for every UPDATE_PROCESSING event it receives."""

    def __init__(self, simulation, on_event=None):
        super().__init__(simulation)
        self.received = []
        self.on_event = on_event
        self.subscribe(EventType.UPDATE_PROCESSING, self._record)

    def _record(self, event):
        self.received.append((self.simulation.clock, event.data.get("label")))
        if self.on_event is not None:
            self.on_event(self, event)


def send(simulation, target, delay, label):
    return simulation.schedule(target, delay, EventType.UPDATE_PROCESSING, {"label": label})


def test_events_dispatch_in_timestamp_order(simulation):
    recorder = Recorder(simulation)
    send(simulation, recorder, 5.0, "c")
    send(simulation, recorder, 1.0, "a")
    send(simulation, recorder, 3.0, "b")

    final_clock = simulation.run()

    assert recorder.received == [(1.0, "a"), (3.0, "b"), (5.0, "c")]
    assert final_clock == 5.0


def test_equal_timestamps_dispatch_fifo(simulation):
    recorder = Recorder(simulation)
    for label in ["first", "second", "third"]:
        send(simulation, recorder, 2.0, label)

    simulation.run()

    assert [label for _, label in recorder.received] == ["first", "second", "third"]


def test_events_scheduled_during_dispatch_are_respected(simulation):
    def reschedule(recorder, event):
        if event.data["label"] == "a":
            send(simulation, recorder, 0.0, "same-time")
            send(simulation, recorder, 1.0, "before-c")

    recorder = Recorder(simulation, on_event=reschedule)
    send(simulation, recorder, 1.0, "a")
    send(simulation, recorder, 1.0, "b")
    send(simulation, recorder, 5.0, "c")

    simulation.run()

    assert recorder.received == [
        (1.0, "a"),
        (1.0, "b"),
        (1.0, "same-time"),
        (2.0, "before-c"),
        (5.0, "c"),
    ]


def test_terminate_stops_after_current_dispatch(simulation):
    def stop(recorder, event):
        if event.data["label"] == "a":
            simulation.terminate()

    recorder = Recorder(simulation, on_event=stop)
    send(simulation, recorder, 1.0, "a")
    send(simulation, recorder, 1.0, "b")
    send(simulation, recorder, 2.0, "c")

    final_clock = simulation.run()

    assert recorder.received == [(1.0, "a")]
    assert final_clock == 1.0
    assert simulation.pending_events == 2
    assert simulation.is_terminate_requested


def _run_with_terminate_calls(calls):
    simulation = Simulation()

    def stop(recorder, event):
        if event.data["label"] == "b":
            for _ in range(calls):
                simulation.terminate()

    recorder = Recorder(simulation, on_event=stop)
    for delay, label in [(1.0, "a"), (2.0, "b"), (3.0, "c")]:
        send(simulation, recorder, delay, label)
    clock = simulation.run()
    return clock, recorder.received, simulation.pending_events


def test_terminate_is_idempotent():
    assert _run_with_terminate_calls(1) == _run_with_terminate_calls(2)


def test_terminate_reports_only_first_request(simulation):
    assert simulation.terminate() is True
    assert simulation.terminate() is False


def test_terminate_at_freezes_clock_at_deadline(simulation):
    recorder = Recorder(simulation)
    send(simulation, recorder, 1.0, "a")
    send(simulation, recorder, 10.0, "b")
    simulation.terminate_at(4.0)

    final_clock = simulation.run()

    assert recorder.received == [(1.0, "a")]
    assert final_clock == 4.0


def test_clock_tick_listener_sees_every_advance(simulation):
    ticks = []
    simulation.add_on_clock_tick_listener(ticks.append)
    recorder = Recorder(simulation)
    send(simulation, recorder, 1.0, "a")
    send(simulation, recorder, 1.0, "b")
    send(simulation, recorder, 4.0, "c")

    simulation.run()

    assert ticks == [1.0, 4.0]


def test_negative_delay_is_rejected(simulation):
    recorder = Recorder(simulation)
    with pytest.raises(ValueError):
        send(simulation, recorder, -1.0, "late")


def test_run_twice_is_rejected(simulation):
    simulation.run()
    with pytest.raises(RuntimeError):
        simulation.run()


def test_scheduling_after_finish_is_rejected(simulation):
    recorder = Recorder(simulation)
    simulation.run()
    with pytest.raises(RuntimeError):
        send(simulation, recorder, 1.0, "too-late")


def test_unhandled_event_is_ignored(simulation):
    recorder = Recorder(simulation)
    simulation.schedule(recorder, 1.0, EventType.VM_CREATE)

    assert simulation.run() == 1.0
    assert recorder.received == []


def test_entities_get_sequential_ids(simulation):
    first = Recorder(simulation)
    second = Recorder(simulation)
    assert (first.id, second.id) == (0, 1)
    assert second.name == "Recorder1"


def test_cancelled_events_are_not_dispatched(simulation):
    ticks = []
    simulation.add_on_clock_tick_listener(ticks.append)
    recorder = Recorder(simulation)
    send(simulation, recorder, 1.0, "keep")
    send(simulation, recorder, 2.0, "drop")
    send(simulation, recorder, 9.0, "drop")

    assert simulation.cancel_events(lambda event: event.data.get("label") == "drop") == 2
    assert simulation.pending_events == 1

    final_clock = simulation.run()

    assert recorder.received == [(1.0, "keep")]
    assert ticks == [1.0]
    assert final_clock == 1.0


def test_equal_timestamps_stay_fifo_after_cancellation(simulation):
    recorder = Recorder(simulation)
    for label in ["a", "b", "c", "d"]:
        send(simulation, recorder, 3.0, label)
    simulation.cancel_events(lambda event: event.data.get("label") == "b")

    simulation.run()

    assert [label for _, label in recorder.received] == ["a", "c", "d"]


class Greeter(SimEntity):
    """Sets its attributes after registering and uses them when started."""

    def __init__(self, simulation, target):
        super().__init__(simulation)
        self.target = target

    def start(self):
        send(self.simulation, self.target, 1.0, f"hello from {self.name}")


def test_entity_created_during_run_starts_after_construction(simulation):
    created = []

    def spawn(recorder, event):
        if event.data["label"] == "go":
            created.append(Greeter(simulation, recorder))

    recorder = Recorder(simulation, on_event=spawn)
    send(simulation, recorder, 2.0, "go")

    simulation.run()

    assert recorder.received == [(2.0, "go"), (3.0, f"hello from {created[0].name}")]


def test_terminate_at_after_finish_reports_finished(simulation, log_messages):
    simulation.run()

    assert simulation.terminate_at(10.0) is False
    assert any("already finished" in message for message in log_messages)
    assert not any("clock is already at" in message for message in log_messages)


def test_terminate_at_in_the_past_reports_clock(simulation, log_messages):
    recorder = Recorder(simulation, on_event=lambda r, e: simulation.terminate_at(1.0))
    send(simulation, recorder, 5.0, "late")

    simulation.run()

    assert any("clock is already at 5.00s" in message for message in log_messages)
