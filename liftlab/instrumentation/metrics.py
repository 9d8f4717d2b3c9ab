"""Aggregate wait and travel metrics.

``compute_metrics`` is a pure function of the passenger pools: it is
recomputed from scratch after every tick, so there is no incremental state
to drift.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from liftlab.core.models import Passenger


@dataclass(frozen=True)
class SimulationMetrics:
    """Derived service metrics.

    Attributes:
        avg_wait_time: Mean seconds from request to pickup over completed
            passengers.
        avg_travel_time: Mean seconds from pickup to dropoff over completed
            passengers.
        max_wait_time: Longest completed wait.
        max_travel_time: Longest completed ride.
        passengers_served: Passengers that reached their destination.
        total_passengers: Served plus waiting plus onboard.
        current_time: Simulation time the metrics were taken at.
    """

    avg_wait_time: float = 0.0
    avg_travel_time: float = 0.0
    max_wait_time: float = 0.0
    max_travel_time: float = 0.0
    passengers_served: int = 0
    total_passengers: int = 0
    current_time: float = 0.0

    @property
    def passengers_in_system(self) -> int:
        return self.total_passengers - self.passengers_served

    def __str__(self) -> str:
        return (
            f"served={self.passengers_served}/{self.total_passengers} "
            f"wait(avg={self.avg_wait_time:.2f}s, max={self.max_wait_time:.2f}s) "
            f"travel(avg={self.avg_travel_time:.2f}s, max={self.max_travel_time:.2f}s)"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "avg_wait_time": self.avg_wait_time,
            "avg_travel_time": self.avg_travel_time,
            "max_wait_time": self.max_wait_time,
            "max_travel_time": self.max_travel_time,
            "passengers_served": self.passengers_served,
            "total_passengers": self.total_passengers,
            "current_time": self.current_time,
        }


def compute_metrics(
    completed: Sequence[Passenger],
    waiting_count: int = 0,
    onboard_count: int = 0,
    current_time: float = 0.0,
) -> SimulationMetrics:
    """Build metrics from the completed pool and the in-flight counts."""
    wait_times = _wait_times(completed)
    travel_times = _travel_times(completed)

    return SimulationMetrics(
        avg_wait_time=sum(wait_times) / len(wait_times) if wait_times else 0.0,
        avg_travel_time=sum(travel_times) / len(travel_times) if travel_times else 0.0,
        max_wait_time=max(wait_times, default=0.0),
        max_travel_time=max(travel_times, default=0.0),
        passengers_served=len(completed),
        total_passengers=len(completed) + waiting_count + onboard_count,
        current_time=current_time,
    )


def _wait_times(passengers: Iterable[Passenger]) -> list[float]:
    return [p.wait_time for p in passengers if p.wait_time is not None]


def _travel_times(passengers: Iterable[Passenger]) -> list[float]:
    return [p.travel_time for p in passengers if p.travel_time is not None]
