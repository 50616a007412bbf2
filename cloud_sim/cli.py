"""Command-line interface for the cloud simulator."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .evaluation.results import build_cloudlets_table, cloudlets_to_dataframe, summarize
from .scenario import Scenario, build_scenario, terminate_at_condition_config
from .utils.config import ScenarioConfig, load_config, save_config
from .utils.logging import configure_logging

app = typer.Typer(name="cloud-sim", help="Discrete-event simulator of cloud datacenters")
console = Console()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        configure_logging("INFO", log_file=Path("logs/simulation_{time}.log"), console=console)
    else:
        configure_logging("WARNING", console=console)


def _run_scenario(scenario: Scenario) -> None:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Simulating...", total=None)
        scenario.run()
        progress.update(task, description="Simulation completed")


def display_results_summary(scenario: Scenario) -> None:
    """Display finished cloudlets and run summary."""
    finished = scenario.broker.get_cloudlets_finished_list()
    console.print(build_cloudlets_table(finished, title="Finished Cloudlets"))

    summary = summarize(scenario.cloudlets)
    table = Table(title="Simulation Results Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Unit", style="yellow")

    rows = [
        ("Simulated Time", f"{scenario.simulation.clock:.2f}", "seconds"),
        ("Cloudlets", f"{summary['total_cloudlets']}", "count"),
        ("Finished Cloudlets", f"{summary['finished_cloudlets']}", "count"),
        ("VMs Created", f"{len(scenario.broker.get_vms_created_list())}", "count"),
        ("VMs Not Placed", f"{len(scenario.broker.get_vms_failed_list())}", "count"),
        ("Executed Length", f"{summary['executed_mi']:.0f}", "MI"),
        ("Average Exec Time", f"{summary['avg_exec_time']:.2f}", "seconds"),
        ("Terminated Early", "yes" if scenario.simulation.is_terminate_requested else "no", ""),
    ]
    for metric, value, unit in rows:
        table.add_row(metric, value, unit)

    console.print(table)


def save_results(scenario: Scenario, output_dir: Path) -> None:
    """Save all cloudlets as CSV and the summary as JSON."""
    output_dir.mkdir(parents=True, exist_ok=True)
    cloudlets_to_dataframe(scenario.cloudlets).to_csv(output_dir / "cloudlets.csv", index=False)

    summary = summarize(scenario.cloudlets)
    summary["scenario"] = scenario.config.name
    summary["simulated_time"] = scenario.simulation.clock
    with open(output_dir / "summary.json", 'w') as f:
        json.dump(summary, f, indent=2, default=str)


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Scenario configuration file (YAML or JSON)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run a simulation scenario."""
    _setup_logging(verbose)

    if config is not None:
        scenario_config = load_config(config)
        console.print(f"📋 Loaded configuration from {config}")
    else:
        scenario_config = ScenarioConfig()
        console.print("📋 Using default configuration")

    scenario = build_scenario(scenario_config)
    console.print(f"⚡ Running scenario '{scenario_config.name}'...")
    _run_scenario(scenario)

    display_results_summary(scenario)

    if output:
        save_results(scenario, output)
        console.print(f"💾 Results saved to {output}")

    console.print("✅ Simulation completed successfully!", style="bold green")


@app.command()
def example(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Stop a run as soon as the last of four cloudlets is half done."""
    _setup_logging(verbose)

    console.print("🚀 Starting TerminateSimulationAtGivenCondition example", style="bold blue")
    scenario = build_scenario(terminate_at_condition_config())
    _run_scenario(scenario)

    display_results_summary(scenario)
    console.print("✅ TerminateSimulationAtGivenCondition example finished!", style="bold green")


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(..., help="Where to write the configuration (.yaml, .yml or .json)"),
) -> None:
    """Write the example scenario configuration to a file."""
    save_config(terminate_at_condition_config(), path)
    console.print(f"📝 Configuration written to {path}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
