"""Tests for result tables and summaries."""

import pytest

from cloud_sim.evaluation.results import (
    CLOUDLET_COLUMNS,
    build_cloudlets_table,
    cloudlets_to_dataframe,
    summarize,
)
from cloud_sim.scenario import build_scenario, terminate_at_condition_config


@pytest.fixture(scope="module")
def finished_scenario():
    scenario = build_scenario(terminate_at_condition_config())
    scenario.run()
    return scenario


def test_dataframe_has_one_row_per_cloudlet(finished_scenario):
    df = cloudlets_to_dataframe(finished_scenario.cloudlets)

    assert list(df.columns) == CLOUDLET_COLUMNS
    assert len(df) == 4
    assert df["status"].tolist() == ["finished", "finished", "finished", "executing"]
    assert df["host_id"].tolist() == [0, 0, 0, 0]
    assert df.loc[3, "finished_so_far"] == pytest.approx(5000)


def test_summary_figures(finished_scenario):
    summary = summarize(finished_scenario.cloudlets)

    assert summary["total_cloudlets"] == 4
    assert summary["finished_cloudlets"] == 3
    assert summary["executed_mi"] == pytest.approx(35000)
    assert summary["makespan"] == pytest.approx(30.0)
    assert summary["avg_exec_time"] == pytest.approx(10.0)


def test_summary_of_nothing():
    summary = summarize([])
    assert summary["finished_cloudlets"] == 0
    assert summary["avg_exec_time"] == 0.0


def test_table_lists_given_cloudlets(finished_scenario):
    finished = finished_scenario.broker.get_cloudlets_finished_list()
    table = build_cloudlets_table(finished, title="Finished Cloudlets")

    assert table.row_count == 3
    assert table.title == "Finished Cloudlets"
