"""Tests for stopping a run once a cloudlet reaches a fraction of its length."""

import pytest

from cloud_sim.core.cloudlet import Cloudlet, CloudletProgressEvent, CloudletStatus
from cloud_sim.core.engine import Simulation
from cloud_sim.scenario import build_scenario, progress_terminator
from cloud_sim.utils.config import (
    CloudletConfig,
    DatacenterConfig,
    ScenarioConfig,
    TerminationConfig,
    VmConfig,
)


def single_cloudlet_config(length, scheduling_interval, fraction=0.5):
    """One 1000 MIPS VM running one cloudlet, stopped at ``fraction`` of its length."""
    return ScenarioConfig(
        name="threshold",
        datacenter=DatacenterConfig(scheduling_interval=scheduling_interval),
        vms=[VmConfig(mips=1000)],
        cloudlets=[CloudletConfig(count=1, length=length, vm_index=0)],
        termination=TerminationConfig(cloudlet_progress=fraction),
    )


@pytest.mark.parametrize("length, stop_time, executed", [
    (10000, 5.0, 5000),
    # 5000 MI at t=5.0 is short of 5000.5, so the next half-second update triggers
    (10001, 5.5, 5500),
])
def test_half_way_threshold_is_not_rounded(length, stop_time, executed):
    scenario = build_scenario(single_cloudlet_config(length, scheduling_interval=0.5))

    scenario.run()

    cloudlet = scenario.cloudlets[0]
    assert scenario.simulation.clock == stop_time
    assert cloudlet.finished_so_far == pytest.approx(executed)
    assert cloudlet.status == CloudletStatus.EXECUTING


def test_full_fraction_stops_at_completion_before_return():
    scenario = build_scenario(single_cloudlet_config(10000, scheduling_interval=0.0, fraction=1.0))

    finished = scenario.run()

    cloudlet = scenario.cloudlets[0]
    assert scenario.simulation.clock == 10.0
    assert cloudlet.status == CloudletStatus.FINISHED
    # the return event was still queued when the run stopped
    assert finished == []


def test_terminator_requests_termination_once(log_messages):
    simulation = Simulation()
    cloudlet = Cloudlet(0, 10001)
    on_update = progress_terminator(simulation, 0.5)

    cloudlet.add_finished_so_far(5000)
    on_update(CloudletProgressEvent(cloudlet=cloudlet, vm=None, time=5.0))
    assert not simulation.is_terminate_requested

    cloudlet.add_finished_so_far(0.5)
    on_update(CloudletProgressEvent(cloudlet=cloudlet, vm=None, time=5.5))
    on_update(CloudletProgressEvent(cloudlet=cloudlet, vm=None, time=6.0))

    assert simulation.is_terminate_requested
    assert len([m for m in log_messages if "Intentionally requesting termination" in m]) == 1
    assert len([m for m in log_messages if "termination requested" in m]) == 1
