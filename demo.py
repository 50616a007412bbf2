#!/usr/bin/env python3
"""
Demonstration script for the cloud simulator.

Builds the TerminateSimulationAtGivenCondition example entity by entity,
then compares space-shared and time-shared cloudlet scheduling on the
same workload.
"""

import sys
from pathlib import Path
from typing import List

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from cloud_sim.core.broker import DatacenterBroker
from cloud_sim.core.cloudlet import Cloudlet, CloudletProgressEvent
from cloud_sim.core.datacenter import Datacenter
from cloud_sim.core.engine import Simulation
from cloud_sim.core.host import Host
from cloud_sim.core.resources import Pe
from cloud_sim.core.vm import Vm
from cloud_sim.evaluation.results import summarize
from cloud_sim.scheduling.allocation import FirstFitAllocationPolicy
from cloud_sim.scheduling.cloudlet_scheduler import (
    CloudletScheduler,
    CloudletSchedulerSpaceShared,
    CloudletSchedulerTimeShared,
)
from cloud_sim.scheduling.vm_scheduler import VmSchedulerTimeShared
from loguru import logger


def create_datacenter(simulation: Simulation, scheduling_interval: float) -> Datacenter:
    """One host with a single 1000 MIPS Pe."""
    host = Host(
        host_id=0,
        pes=[Pe(0, 1000)],
        ram=2048,
        bw=10000,
        storage=1000000,
        vm_scheduler=VmSchedulerTimeShared(),
    )
    return Datacenter(
        simulation,
        [host],
        vm_allocation_policy=FirstFitAllocationPolicy(),
        scheduling_interval=scheduling_interval,
    )


def create_cloudlets(vm: Vm, count: int = 4) -> List[Cloudlet]:
    return [
        Cloudlet(i, length=10000, pes_number=1, file_size=300, output_size=300).set_vm(vm)
        for i in range(count)
    ]


def run_terminate_demo():
    """Stop the run as soon as the last cloudlet reaches half of its length."""
    logger.info("🚀 Starting TerminateSimulationAtGivenCondition demo")

    simulation = Simulation()
    create_datacenter(simulation, scheduling_interval=1.0)
    broker = DatacenterBroker(simulation)

    vm = Vm(0, mips=1000, pes_number=1, ram=512, bw=1000, size=10000,
            cloudlet_scheduler=CloudletSchedulerSpaceShared())
    cloudlets = create_cloudlets(vm)

    def on_update_processing(event: CloudletProgressEvent):
        cloudlet = event.cloudlet
        if cloudlet.finished_so_far >= cloudlet.length / 2 and simulation.terminate():
            logger.info(
                f"⚡ Cloudlet {cloudlet.cloudlet_id} is 50% done, "
                f"requesting termination at {event.time:.2f}s"
            )

    cloudlets[-1].on_update_processing = on_update_processing

    broker.submit_vm_list([vm])
    broker.submit_cloudlet_list(cloudlets)

    logger.info("🔄 Running simulation...")
    simulation.run()

    print_results(simulation, broker.get_cloudlets_finished_list(), cloudlets)


def run_comparison_demo():
    """Run the same four cloudlets under both cloudlet schedulers."""
    logger.info("🔬 Starting cloudlet scheduler comparison demo")

    schedulers = {
        "Space-Shared": CloudletSchedulerSpaceShared,
        "Time-Shared": CloudletSchedulerTimeShared,
    }

    results = {}
    for name, scheduler_class in schedulers.items():
        logger.info(f"🧪 Testing {name} scheduler")

        simulation = Simulation()
        create_datacenter(simulation, scheduling_interval=0.0)
        broker = DatacenterBroker(simulation)

        scheduler: CloudletScheduler = scheduler_class()
        vm = Vm(0, mips=1000, pes_number=1, cloudlet_scheduler=scheduler)
        cloudlets = create_cloudlets(vm)
        broker.submit_vm_list([vm])
        broker.submit_cloudlet_list(cloudlets)

        simulation.run()
        results[name] = summarize(cloudlets)

    print_comparison(results)


def print_results(simulation: Simulation, finished: List[Cloudlet], cloudlets: List[Cloudlet]):
    """Print simulation results in a formatted way."""
    print("\n" + "="*60)
    print("📊 SIMULATION RESULTS")
    print("="*60)

    print(f"{'Cloudlet':<10} {'Status':<12} {'Start':<8} {'Finish':<8} {'Executed (MI)':<14}")
    print("-" * 60)
    for cloudlet in cloudlets:
        start = f"{cloudlet.exec_start_time:.1f}" if cloudlet.exec_start_time is not None else "-"
        finish = f"{cloudlet.finish_time:.1f}" if cloudlet.finish_time is not None else "-"
        print(
            f"{cloudlet.cloudlet_id:<10} {cloudlet.status.value:<12} {start:<8} {finish:<8} "
            f"{cloudlet.finished_so_far:<14.0f}"
        )

    print(f"\n🎯 Finished cloudlets: {len(finished)} of {len(cloudlets)}")
    print(f"⏱️  Simulation stopped at {simulation.clock:.2f}s")
    print("="*60)


def print_comparison(results: dict):
    """Print comparison results between cloudlet schedulers."""
    print("\n" + "="*60)
    print("🔬 CLOUDLET SCHEDULER COMPARISON")
    print("="*60)

    print(f"{'Scheduler':<15} {'Makespan':<12} {'Avg Exec':<12} {'Max Exec':<12}")
    print("-" * 60)

    for name, summary in results.items():
        print(
            f"{name:<15} {summary['makespan']:<12.2f} "
            f"{summary['avg_exec_time']:<12.2f} {summary['max_exec_time']:<12.2f}"
        )

    print("="*60)


def main():
    """Main demonstration function."""
    print("🌟 Cloud Simulator Demo")
    print("This demo runs the early-termination example and a scheduler comparison.\n")

    try:
        run_terminate_demo()
        run_comparison_demo()
        print("\n✅ Demo completed successfully!")
    except KeyboardInterrupt:
        print("\n❌ Demo interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
