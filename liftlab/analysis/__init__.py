"""Reporting helpers built on pandas, numpy and matplotlib."""

from liftlab.analysis.report import (
    MetricsRecorder,
    RunReport,
    TimeStats,
    passengers_to_dataframe,
    plot_metrics_timeline,
    plot_wait_distribution,
    summarize,
    write_passenger_csv,
)

__all__ = [
    "MetricsRecorder",
    "RunReport",
    "TimeStats",
    "passengers_to_dataframe",
    "plot_metrics_timeline",
    "plot_wait_distribution",
    "summarize",
    "write_passenger_csv",
]
