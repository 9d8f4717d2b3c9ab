"""Passenger generation.

``PassengerSpawner`` turns elapsed simulation time into new passenger
requests. The number of arrivals per tick is Poisson distributed with mean
``spawn_rate * delta_minutes``; each arrival then gets a start floor from the
active ``SpawnPattern`` and a destination different from its start.

Example::

    spawner = PassengerSpawner(SpawnerConfig(floor_count=10, spawn_rate=6.0), rng)
    new_passengers = spawner.next_tick(0.1, current_time=12.3)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from liftlab.core.models import Passenger
from liftlab.core.rng import SeededRNG, poisson_spawn, select_weighted, weighted_floor_selection
from liftlab.utils.ids import get_id

logger = logging.getLogger(__name__)


class SpawnPattern(Enum):
    """How start floors are chosen for new passengers."""

    UNIFORM = "uniform"
    MORNING_RUSH = "morning_rush"
    EVENING_RUSH = "evening_rush"
    LUNCH_TIME = "lunch_time"
    RANDOM_BURSTS = "random_bursts"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SpawnerConfig:
    """Spawner parameters.

    Attributes:
        floor_count: Floors in the building.
        spawn_rate: Mean arrivals per minute. Zero disables spawning.
        min_spawn_interval: Seconds that must pass after a successful spawn
            before the next one.
        max_waiting_per_floor: Arrivals at a floor with this many waiting
            passengers are dropped.
        ground_floor_weight: Start-floor weight of floor 0 in RANDOM_BURSTS.
        top_floor_weight: Start-floor weight of the top floor in RANDOM_BURSTS.
        ground_floor_up_probability: Chance a ground-floor passenger heads up.
        top_floor_down_probability: Chance a top-floor passenger heads down.
    """

    floor_count: int
    spawn_rate: float
    min_spawn_interval: float = 0.5
    max_waiting_per_floor: int = 10
    ground_floor_weight: float = 2.0
    top_floor_weight: float = 1.5
    ground_floor_up_probability: float = 0.8
    top_floor_down_probability: float = 0.9

    def __post_init__(self) -> None:
        if self.floor_count < 2:
            raise ValueError(f"floor_count must be >= 2, got {self.floor_count}")
        if self.spawn_rate < 0:
            raise ValueError(f"spawn_rate must be >= 0, got {self.spawn_rate}")
        if self.min_spawn_interval < 0:
            raise ValueError(f"min_spawn_interval must be >= 0, got {self.min_spawn_interval}")
        for name in ("ground_floor_up_probability", "top_floor_down_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")


@dataclass(frozen=True)
class SpawnerStats:
    """Snapshot of spawner activity.

    Attributes:
        total_spawned: Passengers created so far.
        spawned_per_floor: Passengers created per start floor.
        average_spawn_rate: Achieved passengers per minute.
        time_since_last_spawn: Seconds since the last successful spawn.
        current_pattern: Active start-floor pattern.
    """

    total_spawned: int
    spawned_per_floor: tuple[int, ...]
    average_spawn_rate: float
    time_since_last_spawn: float
    current_pattern: SpawnPattern


@dataclass(frozen=True)
class TrafficBreakdown:
    """Direction mix of a set of passengers."""

    up_traffic: int = 0
    down_traffic: int = 0
    internal_traffic: int = 0
    ground_floor_origins: int = 0
    top_floor_destinations: int = 0


class PassengerSpawner:
    """Generates passengers for each tick.

    Args:
        config: Spawner parameters.
        rng: Random source; the spawner is deterministic given its seed.
        pattern: Initial start-floor pattern.
    """

    def __init__(
        self,
        config: SpawnerConfig,
        rng: SeededRNG,
        pattern: SpawnPattern = SpawnPattern.UNIFORM,
    ):
        self._config = config
        self._rng = rng
        self._pattern = SpawnPattern.UNIFORM
        self._custom_weights: list[float] = []

        self._total_spawned = 0
        self._spawned_per_floor = [0] * config.floor_count
        self._time_since_last_spawn = 0.0
        self._total_run_time = 0.0
        self._last_spawn_time = 0.0

        if pattern is not SpawnPattern.UNIFORM:
            self.set_spawn_pattern(pattern)

    @property
    def config(self) -> SpawnerConfig:
        return self._config

    @property
    def spawn_rate(self) -> float:
        return self._config.spawn_rate

    @property
    def pattern(self) -> SpawnPattern:
        return self._pattern

    @property
    def last_spawn_time(self) -> float:
        return self._last_spawn_time

    def next_tick(
        self,
        delta_time: float,
        current_time: float,
        waiting_counts: Sequence[int] | None = None,
    ) -> list[Passenger]:
        """Create the passengers arriving during the last ``delta_time`` seconds.

        Args:
            delta_time: Seconds elapsed since the previous tick.
            current_time: Simulation time; becomes each passenger's
                ``request_time``.
            waiting_counts: Passengers currently waiting per floor. Floors at
                ``max_waiting_per_floor`` get no new arrivals.

        Returns:
            Newly created passengers, possibly empty.
        """
        self._total_run_time += delta_time
        self._time_since_last_spawn += delta_time

        if self._config.spawn_rate <= 0:
            return []
        if self._time_since_last_spawn < self._config.min_spawn_interval:
            return []

        count = poisson_spawn(self._rng, self._config.spawn_rate, delta_time / 60.0)
        passengers: list[Passenger] = []
        for _ in range(count):
            passenger = self._spawn_single(current_time, waiting_counts)
            if passenger is not None:
                passengers.append(passenger)
                self._total_spawned += 1
                self._spawned_per_floor[passenger.start_floor] += 1

        if passengers:
            self._last_spawn_time = current_time
            self._time_since_last_spawn = 0.0
            logger.debug(
                "Spawned %d passenger(s) at t=%.2f (drawn=%d, rate=%.2f/min)",
                len(passengers),
                current_time,
                count,
                self._config.spawn_rate,
            )

        return passengers

    def set_spawn_rate(self, rate: float) -> None:
        """Change the mean arrivals per minute.

        Raises:
            ValueError: If ``rate`` is negative.
        """
        if rate < 0:
            raise ValueError(f"Spawn rate must be non-negative, got {rate}")
        self._config = replace(self._config, spawn_rate=rate)
        logger.info("Spawn rate set to %.2f/min", rate)

    def set_spawn_pattern(
        self, pattern: SpawnPattern, custom_weights: Sequence[float] | None = None
    ) -> None:
        """Switch the start-floor pattern.

        Raises:
            ValueError: If ``custom_weights`` does not have one weight per floor.
        """
        if pattern is SpawnPattern.CUSTOM and custom_weights is not None:
            if len(custom_weights) != self._config.floor_count:
                raise ValueError(
                    f"Custom weights must match floor count "
                    f"({len(custom_weights)} != {self._config.floor_count})"
                )
            if any(w < 0 for w in custom_weights):
                raise ValueError("Custom weights must be non-negative")
            self._custom_weights = list(custom_weights)
        self._pattern = pattern
        logger.info("Spawn pattern set to %s", pattern.value)

    @property
    def stats(self) -> SpawnerStats:
        average = (
            self._total_spawned / self._total_run_time * 60.0 if self._total_run_time > 0 else 0.0
        )
        return SpawnerStats(
            total_spawned=self._total_spawned,
            spawned_per_floor=tuple(self._spawned_per_floor),
            average_spawn_rate=average,
            time_since_last_spawn=self._time_since_last_spawn,
            current_pattern=self._pattern,
        )

    def reset_stats(self) -> None:
        self._total_spawned = 0
        self._spawned_per_floor = [0] * self._config.floor_count
        self._time_since_last_spawn = 0.0
        self._total_run_time = 0.0
        self._last_spawn_time = 0.0

    # ------------------------------------------------------------------
    # Floor selection
    # ------------------------------------------------------------------

    def _spawn_single(
        self, current_time: float, waiting_counts: Sequence[int] | None
    ) -> Passenger | None:
        start = self._select_start_floor()

        if waiting_counts is not None and start < len(waiting_counts):
            if waiting_counts[start] >= self._config.max_waiting_per_floor:
                return None

        destination = self._select_destination_floor(start)
        if destination == start:
            return None

        return Passenger(
            id=get_id("passenger"),
            start_floor=start,
            destination_floor=destination,
            request_time=current_time,
        )

    def _select_start_floor(self) -> int:
        rng = self._rng
        floors = self._config.floor_count
        pattern = self._pattern

        if pattern is SpawnPattern.MORNING_RUSH:
            return 0 if rng.next_boolean(0.7) else rng.next_int(1, floors)
        if pattern is SpawnPattern.EVENING_RUSH:
            return 0 if rng.next_boolean(0.2) else rng.next_int(1, floors)
        if pattern is SpawnPattern.LUNCH_TIME:
            low = int(floors * 0.3)
            high = min(int(floors * 0.7), floors - 1)
            return rng.next_int(low, high + 1)
        if pattern is SpawnPattern.RANDOM_BURSTS:
            return weighted_floor_selection(
                rng, floors, self._config.ground_floor_weight, self._config.top_floor_weight
            )
        if pattern is SpawnPattern.CUSTOM and self._custom_weights and sum(self._custom_weights) > 0:
            return select_weighted(rng, self._custom_weights)
        return rng.next_int_max(floors)

    def _select_destination_floor(self, start: int) -> int:
        rng = self._rng
        top = self._config.floor_count - 1

        if start == 0:
            # Both branches head up: there is nothing below the ground floor.
            # The draw keeps the random stream aligned with the probability knob.
            rng.next_boolean(self._config.ground_floor_up_probability)
            return rng.next_int(1, self._config.floor_count)

        if start == top:
            rng.next_boolean(self._config.top_floor_down_probability)
            return rng.next_int_max(top)

        others = [f for f in range(self._config.floor_count) if f != start]
        return rng.choice(others)


# ---------------------------------------------------------------------------
# Factories and analysis
# ---------------------------------------------------------------------------


def create_morning_rush_spawner(floor_count: int, spawn_rate: float, rng: SeededRNG) -> PassengerSpawner:
    config = SpawnerConfig(floor_count=floor_count, spawn_rate=spawn_rate, ground_floor_up_probability=0.9)
    return PassengerSpawner(config, rng, SpawnPattern.MORNING_RUSH)


def create_evening_rush_spawner(floor_count: int, spawn_rate: float, rng: SeededRNG) -> PassengerSpawner:
    config = SpawnerConfig(floor_count=floor_count, spawn_rate=spawn_rate, top_floor_down_probability=0.95)
    return PassengerSpawner(config, rng, SpawnPattern.EVENING_RUSH)


def create_uniform_spawner(floor_count: int, spawn_rate: float, rng: SeededRNG) -> PassengerSpawner:
    return PassengerSpawner(SpawnerConfig(floor_count=floor_count, spawn_rate=spawn_rate), rng)


def analyze_spawn_pattern(passengers: Iterable[Passenger], floor_count: int | None = None) -> TrafficBreakdown:
    """Count up/down traffic in a batch of passengers.

    ``top_floor_destinations`` is only counted when ``floor_count`` is given.
    """
    up = down = internal = ground = top = 0
    for p in passengers:
        if p.start_floor == 0:
            ground += 1
        if floor_count is not None and p.destination_floor == floor_count - 1:
            top += 1
        if p.destination_floor > p.start_floor:
            up += 1
        elif p.destination_floor < p.start_floor:
            down += 1
        else:
            internal += 1
    return TrafficBreakdown(
        up_traffic=up,
        down_traffic=down,
        internal_traffic=internal,
        ground_floor_origins=ground,
        top_floor_destinations=top,
    )
