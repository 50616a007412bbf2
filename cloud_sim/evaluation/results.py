"""Presentation of simulation results: tables, DataFrames and summaries."""

from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd
from rich.table import Table

from ..core.cloudlet import Cloudlet, CloudletStatus

CLOUDLET_COLUMNS = [
    "cloudlet_id",
    "status",
    "datacenter",
    "host_id",
    "vm_id",
    "length",
    "finished_so_far",
    "pes",
    "start_time",
    "finish_time",
    "exec_time",
]


def _cloudlet_row(cloudlet: Cloudlet) -> Dict[str, Any]:
    vm = cloudlet.vm
    host = vm.host if vm is not None else None
    datacenter = host.datacenter if host is not None else None
    return {
        "cloudlet_id": cloudlet.cloudlet_id,
        "status": cloudlet.status.value,
        "datacenter": datacenter.name if datacenter is not None else None,
        "host_id": host.host_id if host is not None else None,
        "vm_id": vm.vm_id if vm is not None else None,
        "length": cloudlet.length,
        "finished_so_far": cloudlet.finished_so_far,
        "pes": cloudlet.pes_number,
        "start_time": cloudlet.exec_start_time,
        "finish_time": cloudlet.finish_time,
        "exec_time": cloudlet.actual_cpu_time,
    }


def cloudlets_to_dataframe(cloudlets: Sequence[Cloudlet]) -> pd.DataFrame:
    """One row per cloudlet with placement and timing columns."""
    return pd.DataFrame([_cloudlet_row(c) for c in cloudlets], columns=CLOUDLET_COLUMNS)


def _fmt(value: Any, precision: int = 2) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.{precision}f}"
    return str(value)


def build_cloudlets_table(cloudlets: Sequence[Cloudlet], title: str = "Simulation Results") -> Table:
    """Render cloudlets as a rich table."""
    table = Table(title=title)
    table.add_column("Cloudlet", style="cyan", justify="right")
    table.add_column("Status", style="green")
    table.add_column("DC")
    table.add_column("Host", justify="right")
    table.add_column("VM", justify="right")
    table.add_column("Length (MI)", justify="right", style="yellow")
    table.add_column("Finished (MI)", justify="right", style="yellow")
    table.add_column("PEs", justify="right")
    table.add_column("Start (s)", justify="right")
    table.add_column("Finish (s)", justify="right")
    table.add_column("Exec (s)", justify="right")

    for cloudlet in cloudlets:
        row = _cloudlet_row(cloudlet)
        table.add_row(
            str(row["cloudlet_id"]),
            row["status"],
            _fmt(row["datacenter"]),
            _fmt(row["host_id"]),
            _fmt(row["vm_id"]),
            _fmt(row["length"], 0),
            _fmt(row["finished_so_far"], 0),
            str(row["pes"]),
            _fmt(row["start_time"]),
            _fmt(row["finish_time"]),
            _fmt(row["exec_time"]),
        )
    return table


def summarize(cloudlets: Sequence[Cloudlet]) -> Dict[str, Any]:
    """Aggregate figures over a set of cloudlets."""
    finished = [c for c in cloudlets if c.status == CloudletStatus.FINISHED]
    exec_times: List[float] = [c.actual_cpu_time for c in finished if c.actual_cpu_time is not None]

    return {
        "total_cloudlets": len(cloudlets),
        "finished_cloudlets": len(finished),
        "executed_mi": float(sum(c.finished_so_far for c in cloudlets)),
        "makespan": float(max((c.finish_time for c in finished), default=0.0)),
        "avg_exec_time": float(np.mean(exec_times)) if exec_times else 0.0,
        "max_exec_time": float(np.max(exec_times)) if exec_times else 0.0,
    }
