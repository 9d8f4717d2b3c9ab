"""Unit tests for post-run reporting."""

from __future__ import annotations

import math

import pandas as pd
import pytest

from liftlab.analysis.report import (
    PASSENGER_COLUMNS,
    TIMELINE_COLUMNS,
    MetricsRecorder,
    TimeStats,
    passengers_to_dataframe,
    plot_metrics_timeline,
    plot_wait_distribution,
    summarize,
    write_passenger_csv,
)
from liftlab.core.models import Passenger
from liftlab.simulation import Simulation, SimulationConfig


@pytest.fixture
def passengers():
    return [
        Passenger("a", 0, 5, 0.0, pickup_time=2.0, dropoff_time=12.0),
        Passenger("b", 7, 1, 1.0, pickup_time=5.0, dropoff_time=17.0),
        Passenger("c", 3, 4, 2.0, pickup_time=3.0),
        Passenger("d", 9, 0, 4.0),
    ]


@pytest.fixture
def finished_sim():
    sim = Simulation(SimulationConfig(floors=8, elevator_count=2, spawn_rate=20.0, seed=11))
    sim.run_for(180.0)
    return sim


class TestPassengersToDataFrame:
    def test_columns_and_rows(self, passengers):
        df = passengers_to_dataframe(passengers)
        assert list(df.columns) == PASSENGER_COLUMNS
        assert len(df) == 4

    def test_derived_fields(self, passengers):
        df = passengers_to_dataframe(passengers).set_index("id")
        assert df.loc["a", "direction"] == "up"
        assert df.loc["b", "direction"] == "down"
        assert df.loc["b", "floors_travelled"] == 6
        assert df.loc["a", "wait_time"] == pytest.approx(2.0)
        assert df.loc["b", "travel_time"] == pytest.approx(12.0)

    def test_unset_times_are_nan(self, passengers):
        df = passengers_to_dataframe(passengers).set_index("id")
        assert math.isnan(df.loc["c", "dropoff_time"])
        assert math.isnan(df.loc["c", "travel_time"])
        assert math.isnan(df.loc["d", "pickup_time"])

    def test_empty(self):
        df = passengers_to_dataframe([])
        assert df.empty
        assert list(df.columns) == PASSENGER_COLUMNS


class TestTimeStats:
    def test_from_values(self):
        stats = TimeStats.from_values([1.0, 2.0, 3.0, 4.0, float("nan")])
        assert stats.count == 4
        assert stats.mean == pytest.approx(2.5)
        assert stats.p50 == pytest.approx(2.5)
        assert stats.max == 4.0

    def test_empty(self):
        stats = TimeStats.from_values([])
        assert stats.count == 0
        assert stats.p99 == 0.0

    def test_percentiles_ordered(self):
        stats = TimeStats.from_values([float(v) for v in range(1, 101)])
        assert stats.p50 <= stats.p95 <= stats.p99 <= stats.max


class TestSummarize:
    def test_counts(self, passengers):
        report = summarize(passengers)
        assert report.total == 4
        assert report.completed == 2
        assert report.up_trips == 2
        assert report.down_trips == 2

    def test_wait_covers_picked_up_travel_covers_completed(self, passengers):
        report = summarize(passengers)
        assert report.wait.count == 3
        assert report.travel.count == 2
        assert report.wait.mean == pytest.approx((2.0 + 4.0 + 1.0) / 3)
        assert report.travel.mean == pytest.approx((10.0 + 12.0) / 2)

    def test_accepts_dataframe(self, passengers):
        df = passengers_to_dataframe(passengers)
        assert summarize(df) == summarize(passengers)

    def test_str_and_dict(self, passengers):
        report = summarize(passengers)
        assert "2/4 completed" in str(report)
        assert report.to_dict()["wait"]["count"] == 3

    def test_matches_simulation_metrics(self, finished_sim):
        report = summarize(finished_sim.completed_passengers)
        metrics = finished_sim.metrics
        assert report.completed == metrics.passengers_served
        assert report.wait.mean == pytest.approx(metrics.avg_wait_time)
        assert report.travel.max == pytest.approx(metrics.max_travel_time)


class TestCsv:
    def test_round_trip(self, passengers, tmp_path):
        path = write_passenger_csv(passengers, tmp_path / "out" / "passengers.csv")
        assert path.exists()
        df = pd.read_csv(path)
        assert list(df.columns) == PASSENGER_COLUMNS
        assert df["id"].tolist() == ["a", "b", "c", "d"]


class TestMetricsRecorder:
    def test_samples_at_interval(self):
        sim = Simulation(SimulationConfig(seed=5))
        recorder = MetricsRecorder(interval=1.0)
        sim.on_state_change(recorder)
        sim.run_for(10.0, delta_time=0.1)

        df = recorder.to_dataframe()
        assert list(df.columns) == TIMELINE_COLUMNS
        assert 9 <= len(recorder) <= 11
        assert df["time_s"].is_monotonic_increasing

    def test_clears_when_time_rewinds(self):
        sim = Simulation(SimulationConfig(seed=5))
        recorder = MetricsRecorder(interval=0.5)
        sim.on_state_change(recorder)
        sim.run_for(5.0)
        sim.reset()
        sim.run_for(1.0)

        assert recorder.to_dataframe()["time_s"].max() <= 1.0 + 1e-9

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            MetricsRecorder(interval=0)


class TestPlots:
    def test_wait_distribution(self, finished_sim, test_output_dir):
        pytest.importorskip("matplotlib")
        path = plot_wait_distribution(finished_sim.completed_passengers, test_output_dir / "waits.png")
        assert path.exists()
        assert path.stat().st_size > 0

    def test_wait_distribution_without_data(self, test_output_dir):
        pytest.importorskip("matplotlib")
        path = plot_wait_distribution([], test_output_dir / "empty.png")
        assert path.exists()

    def test_metrics_timeline(self, test_output_dir):
        pytest.importorskip("matplotlib")
        sim = Simulation(SimulationConfig(seed=9, spawn_rate=15.0))
        recorder = MetricsRecorder(interval=2.0)
        sim.on_state_change(recorder)
        sim.run_for(120.0)

        path = plot_metrics_timeline(recorder, test_output_dir / "timeline.png")
        assert path.exists()
