"""Shared fixtures for the simulator tests."""

from typing import List, Optional

import pytest
from loguru import logger

from cloud_sim.core.broker import DatacenterBroker
from cloud_sim.core.cloudlet import Cloudlet
from cloud_sim.core.datacenter import Datacenter
from cloud_sim.core.engine import Simulation
from cloud_sim.core.host import Host
from cloud_sim.core.resources import Pe
from cloud_sim.core.vm import Vm
from cloud_sim.scheduling.cloudlet_scheduler import (
    CloudletScheduler,
    CloudletSchedulerSpaceShared,
)
from cloud_sim.scheduling.vm_scheduler import VmScheduler, VmSchedulerTimeShared


def make_host(
    host_id: int = 0,
    pes: int = 1,
    mips: float = 1000,
    ram: float = 2048,
    bw: float = 10000,
    storage: float = 1000000,
    vm_scheduler: Optional[VmScheduler] = None,
) -> Host:
    return Host(
        host_id=host_id,
        pes=[Pe(i, mips) for i in range(pes)],
        ram=ram,
        bw=bw,
        storage=storage,
        vm_scheduler=vm_scheduler or VmSchedulerTimeShared(),
    )


def make_vm(
    vm_id: int = 0,
    mips: float = 1000,
    pes: int = 1,
    ram: float = 512,
    bw: float = 1000,
    size: float = 10000,
    cloudlet_scheduler: Optional[CloudletScheduler] = None,
) -> Vm:
    return Vm(
        vm_id=vm_id,
        mips=mips,
        pes_number=pes,
        ram=ram,
        bw=bw,
        size=size,
        cloudlet_scheduler=cloudlet_scheduler or CloudletSchedulerSpaceShared(),
    )


def make_cloudlets(count: int, length: float = 10000, vm: Optional[Vm] = None, start_id: int = 0) -> List[Cloudlet]:
    cloudlets = []
    for i in range(count):
        cloudlet = Cloudlet(start_id + i, length, pes_number=1, file_size=300, output_size=300)
        cloudlet.set_vm(vm)
        cloudlets.append(cloudlet)
    return cloudlets


@pytest.fixture
def simulation() -> Simulation:
    return Simulation()


@pytest.fixture
def single_host_world(simulation):
    """One datacenter with a single 1-Pe, 1000 MIPS host, plus a broker."""
    host = make_host()
    datacenter = Datacenter(simulation, [host])
    broker = DatacenterBroker(simulation)
    return simulation, datacenter, host, broker


@pytest.fixture
def log_messages():
    """Messages logged through loguru at INFO and above during the test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="INFO")
    yield messages
    logger.remove(handler_id)
