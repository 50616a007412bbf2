"""Tests for the command-line interface."""

import json

import pandas as pd
from typer.testing import CliRunner

from cloud_sim.cli import app
from cloud_sim.utils.config import load_config

runner = CliRunner()


def test_example_command_runs():
    result = runner.invoke(app, ["example"])

    assert result.exit_code == 0, result.output
    assert "Finished Cloudlets" in result.output
    assert "example finished" in result.output


def test_init_config_writes_example(tmp_path):
    path = tmp_path / "example.yaml"

    result = runner.invoke(app, ["init-config", str(path)])

    assert result.exit_code == 0, result.output
    assert load_config(path).termination.cloudlet_progress == 0.5


def test_run_with_config_saves_results(tmp_path):
    config_path = tmp_path / "example.yaml"
    output_dir = tmp_path / "results"
    runner.invoke(app, ["init-config", str(config_path)])

    result = runner.invoke(app, ["run", "--config", str(config_path), "--output", str(output_dir)])

    assert result.exit_code == 0, result.output
    cloudlets = pd.read_csv(output_dir / "cloudlets.csv")
    assert len(cloudlets) == 4
    summary = json.loads((output_dir / "summary.json").read_text())
    assert summary["finished_cloudlets"] == 3
    assert summary["simulated_time"] == 35.0


def test_run_with_missing_config_fails(tmp_path):
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "nope.yaml")])
    assert result.exit_code != 0
