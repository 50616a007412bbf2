"""Build ready-to-run simulations from configuration."""

from dataclasses import dataclass
from typing import Callable, List

from loguru import logger

from .core.broker import DatacenterBroker
from .core.cloudlet import Cloudlet, CloudletProgressEvent
from .core.datacenter import Datacenter, DatacenterCharacteristics
from .core.engine import Simulation
from .core.exceptions import InvalidConfigurationError
from .core.host import Host
from .core.resources import Pe
from .core.utilization import create_utilization_model
from .core.vm import Vm
from .scheduling.allocation import PlacementPolicy, create_allocation_policy
from .scheduling.cloudlet_scheduler import CloudletSchedulerType, create_cloudlet_scheduler
from .scheduling.vm_scheduler import VmSchedulerType, create_vm_scheduler
from .utils.config import (
    CloudletConfig,
    DatacenterConfig,
    HostConfig,
    ScenarioConfig,
    TerminationConfig,
    VmConfig,
)


@dataclass
class Scenario:
    """A wired simulation: one datacenter, one broker, its VMs and cloudlets."""
    config: ScenarioConfig
    simulation: Simulation
    datacenter: Datacenter
    broker: DatacenterBroker
    vms: List[Vm]
    cloudlets: List[Cloudlet]

    def run(self) -> List[Cloudlet]:
        """Run the simulation and return the finished cloudlets."""
        logger.info(f"Running scenario '{self.config.name}'")
        self.simulation.run()
        return self.broker.get_cloudlets_finished_list()


def create_host(host_id: int, config: HostConfig) -> Host:
    """Create a host with ``config.pes`` identical Pe's."""
    pes = [Pe(pe_id, config.mips) for pe_id in range(config.pes)]
    if config.vm_scheduler == VmSchedulerType.TIME_SHARED:
        vm_scheduler = create_vm_scheduler(config.vm_scheduler, oversubscription=config.oversubscription)
    else:
        vm_scheduler = create_vm_scheduler(config.vm_scheduler)
    return Host(
        host_id=host_id,
        pes=pes,
        ram=config.ram,
        bw=config.bw,
        storage=config.storage,
        vm_scheduler=vm_scheduler,
    )


def create_datacenter(simulation: Simulation, config: DatacenterConfig) -> Datacenter:
    """Create the datacenter and all of its hosts."""
    hosts = []
    host_id = 0
    for host_config in config.hosts:
        for _ in range(host_config.count):
            hosts.append(create_host(host_id, host_config))
            host_id += 1

    characteristics = DatacenterCharacteristics(
        architecture=config.architecture,
        os=config.os,
        vmm=config.vmm,
        time_zone=config.time_zone,
        cost_per_second=config.cost_per_second,
        cost_per_mem=config.cost_per_mem,
        cost_per_storage=config.cost_per_storage,
        cost_per_bw=config.cost_per_bw,
    )
    return Datacenter(
        simulation,
        hosts,
        vm_allocation_policy=create_allocation_policy(config.allocation_policy),
        characteristics=characteristics,
        scheduling_interval=config.scheduling_interval,
    )


def create_vm(vm_id: int, config: VmConfig) -> Vm:
    return Vm(
        vm_id=vm_id,
        mips=config.mips,
        pes_number=config.pes,
        ram=config.ram,
        bw=config.bw,
        size=config.size,
        cloudlet_scheduler=create_cloudlet_scheduler(config.cloudlet_scheduler),
    )


def create_cloudlet(cloudlet_id: int, config: CloudletConfig) -> Cloudlet:
    utilization = config.utilization
    if utilization.model == "constant":
        model = create_utilization_model("constant", value=utilization.value)
    elif utilization.model == "stochastic":
        # Offset the seed so cloudlets of one group do not share a sample stream
        seed = None if utilization.seed is None else utilization.seed + cloudlet_id
        model = create_utilization_model("stochastic", seed=seed)
    else:
        model = create_utilization_model("full")

    return Cloudlet(
        cloudlet_id=cloudlet_id,
        length=config.length,
        pes_number=config.pes,
        file_size=config.file_size,
        output_size=config.output_size,
        utilization_model=model,
    )


def progress_terminator(
    simulation: Simulation, fraction: float
) -> Callable[[CloudletProgressEvent], None]:
    """Listener that stops the simulation once a cloudlet has run ``fraction`` of its length.

    The threshold is ``length * fraction`` compared as a float, with no
    rounding, so an odd length needs a fractional instruction count to
    reach exactly one half.
    """

    def on_update_processing(event: CloudletProgressEvent) -> None:
        cloudlet = event.cloudlet
        if cloudlet.finished_so_far >= cloudlet.length * fraction:
            if simulation.terminate():
                logger.info(
                    f"Cloudlet {cloudlet.cloudlet_id} reached {fraction:.0%} of execution. "
                    f"Intentionally requesting termination of the simulation at time {event.time:.2f}"
                )

    return on_update_processing


def _apply_termination(
    simulation: Simulation, config: TerminationConfig, cloudlets: List[Cloudlet]
) -> None:
    if config.at_time is not None:
        simulation.terminate_at(config.at_time)

    if config.cloudlet_progress is not None:
        if not cloudlets or not -len(cloudlets) <= config.cloudlet_index < len(cloudlets):
            raise InvalidConfigurationError(
                f"termination.cloudlet_index {config.cloudlet_index} is out of range "
                f"for {len(cloudlets)} cloudlets"
            )
        watched = cloudlets[config.cloudlet_index]
        watched.on_update_processing = progress_terminator(simulation, config.cloudlet_progress)


def build_scenario(config: ScenarioConfig) -> Scenario:
    """Create every entity described by ``config`` and submit VMs and cloudlets."""
    simulation = Simulation()
    datacenter = create_datacenter(simulation, config.datacenter)
    broker = DatacenterBroker(simulation, datacenter=datacenter)

    vms = []
    for vm_config in config.vms:
        for _ in range(vm_config.count):
            vms.append(create_vm(len(vms), vm_config))

    cloudlets = []
    for cloudlet_config in config.cloudlets:
        if cloudlet_config.vm_index is not None and cloudlet_config.vm_index >= len(vms):
            raise InvalidConfigurationError(
                f"Cloudlet vm_index {cloudlet_config.vm_index} is out of range for {len(vms)} VMs"
            )
        for _ in range(cloudlet_config.count):
            cloudlet = create_cloudlet(len(cloudlets), cloudlet_config)
            if cloudlet_config.vm_index is not None:
                cloudlet.set_vm(vms[cloudlet_config.vm_index])
            cloudlets.append(cloudlet)

    _apply_termination(simulation, config.termination, cloudlets)

    broker.submit_vm_list(vms, submission_delay=config.vm_submission_delay)
    broker.submit_cloudlet_list(cloudlets, submission_delay=config.cloudlet_submission_delay)

    logger.info(f"Scenario '{config.name}' built with {len(vms)} VMs and {len(cloudlets)} cloudlets")
    return Scenario(
        config=config,
        simulation=simulation,
        datacenter=datacenter,
        broker=broker,
        vms=vms,
        cloudlets=cloudlets,
    )


def terminate_at_condition_config() -> ScenarioConfig:
    """Four sequential cloudlets on one VM; the run stops when the last one is half done.

    One host with a single 1000 MIPS Pe runs one VM under a space-shared
    cloudlet scheduler, so the cloudlets finish at 10, 20 and 30 seconds and
    the last one reaches 50% at 35 seconds, when termination is requested.
    """
    return ScenarioConfig(
        name="terminate_at_condition",
        datacenter=DatacenterConfig(
            hosts=[HostConfig(
                count=1, pes=1, mips=1000, ram=2048, bw=10000, storage=1000000,
                vm_scheduler=VmSchedulerType.TIME_SHARED,
            )],
            allocation_policy=PlacementPolicy.FIRST_FIT,
            scheduling_interval=1.0,
            cost_per_second=3.0,
            cost_per_mem=0.05,
            cost_per_storage=0.001,
            cost_per_bw=0.0,
        ),
        vms=[VmConfig(
            count=1, mips=1000, pes=1, ram=512, bw=1000, size=10000,
            cloudlet_scheduler=CloudletSchedulerType.SPACE_SHARED,
        )],
        cloudlets=[CloudletConfig(count=4, length=10000, pes=1, file_size=300, output_size=300, vm_index=0)],
        termination=TerminationConfig(cloudlet_progress=0.5, cloudlet_index=-1),
    )
