"""Post-run reporting: passenger tables, percentile summaries and plots.

Tables are pandas DataFrames; percentiles come from numpy. Plotting imports
matplotlib lazily and forces the non-interactive ``Agg`` backend, so headless
runs and CI never need a display.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from liftlab.core.models import Passenger

if TYPE_CHECKING:
    from liftlab.simulation import SimulationState

logger = logging.getLogger(__name__)

PASSENGER_COLUMNS = [
    "id",
    "start_floor",
    "destination_floor",
    "direction",
    "floors_travelled",
    "request_time",
    "pickup_time",
    "dropoff_time",
    "wait_time",
    "travel_time",
]

TIMELINE_COLUMNS = [
    "time_s",
    "waiting",
    "onboard",
    "served",
    "avg_wait_time",
    "avg_travel_time",
]


def passengers_to_dataframe(passengers: Iterable[Passenger]) -> pd.DataFrame:
    """One row per passenger. Unset times become NaN."""
    rows = [
        {
            "id": p.id,
            "start_floor": p.start_floor,
            "destination_floor": p.destination_floor,
            "direction": "up" if p.going_up else "down",
            "floors_travelled": abs(p.destination_floor - p.start_floor),
            "request_time": p.request_time,
            "pickup_time": np.nan if p.pickup_time is None else p.pickup_time,
            "dropoff_time": np.nan if p.dropoff_time is None else p.dropoff_time,
            "wait_time": np.nan if p.wait_time is None else p.wait_time,
            "travel_time": np.nan if p.travel_time is None else p.travel_time,
        }
        for p in passengers
    ]
    return pd.DataFrame(rows, columns=PASSENGER_COLUMNS)


@dataclass(frozen=True)
class TimeStats:
    """Distribution of one duration column, in seconds."""

    count: int
    mean: float
    p50: float
    p95: float
    p99: float
    max: float

    @classmethod
    def from_values(cls, values: Iterable[float]) -> TimeStats:
        arr = np.asarray([v for v in values if not np.isnan(v)], dtype=float)
        if arr.size == 0:
            return cls(count=0, mean=0.0, p50=0.0, p95=0.0, p99=0.0, max=0.0)
        p50, p95, p99 = np.percentile(arr, [50, 95, 99])
        return cls(
            count=int(arr.size),
            mean=float(arr.mean()),
            p50=float(p50),
            p95=float(p95),
            p99=float(p99),
            max=float(arr.max()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "mean": round(self.mean, 6),
            "p50": round(self.p50, 6),
            "p95": round(self.p95, 6),
            "p99": round(self.p99, 6),
            "max": round(self.max, 6),
        }


@dataclass(frozen=True)
class RunReport:
    """Percentile summary of a set of passengers."""

    total: int
    completed: int
    up_trips: int
    down_trips: int
    wait: TimeStats
    travel: TimeStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "up_trips": self.up_trips,
            "down_trips": self.down_trips,
            "wait": self.wait.to_dict(),
            "travel": self.travel.to_dict(),
        }

    def __str__(self) -> str:
        lines = [
            f"Passengers: {self.completed}/{self.total} completed "
            f"({self.up_trips} up, {self.down_trips} down)",
            f"  Wait:   mean={self.wait.mean:.2f}s p50={self.wait.p50:.2f}s "
            f"p95={self.wait.p95:.2f}s max={self.wait.max:.2f}s",
            f"  Travel: mean={self.travel.mean:.2f}s p50={self.travel.p50:.2f}s "
            f"p95={self.travel.p95:.2f}s max={self.travel.max:.2f}s",
        ]
        return "\n".join(lines)


def summarize(passengers: Iterable[Passenger] | pd.DataFrame) -> RunReport:
    """Summarize wait and travel times.

    Wait statistics cover every passenger that was picked up; travel
    statistics cover every passenger that was dropped off.
    """
    df = passengers if isinstance(passengers, pd.DataFrame) else passengers_to_dataframe(passengers)
    return RunReport(
        total=len(df),
        completed=int(df["dropoff_time"].notna().sum()),
        up_trips=int((df["direction"] == "up").sum()),
        down_trips=int((df["direction"] == "down").sum()),
        wait=TimeStats.from_values(df["wait_time"].to_numpy(dtype=float)),
        travel=TimeStats.from_values(df["travel_time"].to_numpy(dtype=float)),
    )


def write_passenger_csv(passengers: Iterable[Passenger], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    passengers_to_dataframe(passengers).to_csv(path, index=False)
    logger.info("Wrote passenger table to %s", path)
    return path


class MetricsRecorder:
    """State-change listener that samples the run over time.

    Register it with ``Simulation.on_state_change``. A sample is kept at most
    every ``interval`` simulation seconds.
    """

    def __init__(self, interval: float = 1.0):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._interval = interval
        self._next_sample = 0.0
        self._rows: list[tuple[float, int, int, int, float, float]] = []

    def __call__(self, state: SimulationState) -> None:
        # a fresh run starts the clock again
        if self._rows and state.current_time < self._rows[-1][0]:
            self.clear()
        if state.current_time + 1e-9 < self._next_sample:
            return
        onboard = sum(len(e.passengers) for e in state.elevators)
        m = state.metrics
        self._rows.append(
            (
                state.current_time,
                len(state.waiting_passengers),
                onboard,
                m.passengers_served,
                m.avg_wait_time,
                m.avg_travel_time,
            )
        )
        self._next_sample = state.current_time + self._interval

    def __len__(self) -> int:
        return len(self._rows)

    def clear(self) -> None:
        self._rows.clear()
        self._next_sample = 0.0

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=TIMELINE_COLUMNS)


# ---------------------------------------------------------------------------
# Plots
# ---------------------------------------------------------------------------


def _pyplot():
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def plot_wait_distribution(
    passengers: Iterable[Passenger] | pd.DataFrame,
    path: str | Path,
    bins: int = 30,
) -> Path:
    """Histogram of wait and travel times, saved as an image."""
    plt = _pyplot()
    df = passengers if isinstance(passengers, pd.DataFrame) else passengers_to_dataframe(passengers)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, (ax_wait, ax_travel) = plt.subplots(1, 2, figsize=(12, 4.5))
    for ax, column, color, title in (
        (ax_wait, "wait_time", "tab:orange", "Wait time"),
        (ax_travel, "travel_time", "tab:blue", "Travel time"),
    ):
        values = df[column].dropna().to_numpy(dtype=float)
        if values.size:
            ax.hist(values, bins=bins, color=color, alpha=0.8)
            ax.axvline(float(np.mean(values)), color="k", linestyle="--", label=f"mean {np.mean(values):.1f}s")
            ax.axvline(float(np.percentile(values, 95)), color="r", linestyle=":", label="p95")
            ax.legend(loc="upper right")
        else:
            ax.text(0.5, 0.5, "no data", ha="center", va="center", transform=ax.transAxes)
        ax.set_title(title)
        ax.set_xlabel("Seconds")
        ax.set_ylabel("Passengers")
        ax.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    logger.info("Saved wait distribution plot to %s", path)
    return path


def plot_metrics_timeline(timeline: MetricsRecorder | pd.DataFrame, path: str | Path) -> Path:
    """Queue sizes and running averages over simulation time."""
    plt = _pyplot()
    df = timeline.to_dataframe() if isinstance(timeline, MetricsRecorder) else timeline
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, (ax_counts, ax_times) = plt.subplots(2, 1, figsize=(12, 7), sharex=True)

    ax_counts.plot(df["time_s"], df["waiting"], label="Waiting", color="tab:red")
    ax_counts.plot(df["time_s"], df["onboard"], label="Onboard", color="tab:green")
    ax_counts.plot(df["time_s"], df["served"], label="Served", color="tab:blue")
    ax_counts.set_ylabel("Passengers")
    ax_counts.set_title("Passenger flow")
    ax_counts.legend(loc="upper left")
    ax_counts.grid(True, alpha=0.3)

    ax_times.plot(df["time_s"], df["avg_wait_time"], label="Avg wait", color="tab:orange")
    ax_times.plot(df["time_s"], df["avg_travel_time"], label="Avg travel", color="tab:purple")
    ax_times.set_xlabel("Simulation time (s)")
    ax_times.set_ylabel("Seconds")
    ax_times.set_title("Running averages")
    ax_times.legend(loc="upper left")
    ax_times.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    logger.info("Saved metrics timeline plot to %s", path)
    return path
