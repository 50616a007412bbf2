"""Evaluation and reporting of simulation results."""

from .results import build_cloudlets_table, cloudlets_to_dataframe, summarize

__all__ = ["build_cloudlets_table", "cloudlets_to_dataframe", "summarize"]
