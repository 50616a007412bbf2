"""Smoke test for the demonstration script."""

import demo


def test_terminate_demo_reports_three_finished(capsys):
    demo.run_terminate_demo()

    out = capsys.readouterr().out
    assert "Finished cloudlets: 3 of 4" in out
    assert "Simulation stopped at 35.00s" in out


def test_comparison_demo_shows_both_schedulers(capsys):
    demo.run_comparison_demo()

    out = capsys.readouterr().out
    assert "Space-Shared" in out
    assert "Time-Shared" in out
