"""Simulation orchestrator.

``Simulation`` wires the tick scheduler, passenger spawner, dispatch algorithm
and elevator cars together. Each tick it:

1. spawns new passengers into the waiting pool,
2. asks the algorithm for commands given elevator snapshots and the pool,
3. for each elevator in index order: steps its timers, applies its commands,
   boards waiting passengers, then lets passengers off,
4. recomputes metrics and notifies state-change listeners.

Ticks come either from a real-time ``TickScheduler`` (``start``/``pause``/
``resume``) or synchronously from ``advance``/``run_for`` for headless runs.

Example::

    sim = Simulation(SimulationConfig(floors=10, elevator_count=3, spawn_rate=6, seed=42))
    metrics = sim.run_for(120.0)
    print(metrics)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields, replace
from typing import Any

from liftlab.algorithms import AlgorithmRegistry, DispatchAlgorithm, default_registry
from liftlab.core.elevator import ElevatorCar, ElevatorConfig
from liftlab.core.models import ElevatorCommand, ElevatorSnapshot, Passenger, SimulationStatus
from liftlab.core.rng import create_seeded_rng, timestamped_rng
from liftlab.core.ticker import TickScheduler
from liftlab.instrumentation.metrics import SimulationMetrics, compute_metrics
from liftlab.load.spawner import PassengerSpawner, SpawnerConfig, SpawnerStats, SpawnPattern

logger = logging.getLogger(__name__)

StateListener = Callable[["SimulationState"], None]

MIN_SPEED = 0.25
MAX_SPEED = 4.0

# Fields that can change mid-run without rebuilding the building
_LIVE_FIELDS = frozenset({"spawn_rate", "spawn_pattern", "base_tick_rate", "duration"})


class ConfigurationError(ValueError):
    """Raised when a simulation configuration is out of range."""


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of a simulation run.

    Attributes:
        floors: Floors in the building (3 to 60).
        elevator_count: Elevator cars (1 to 8).
        spawn_rate: Mean passenger arrivals per minute (> 0).
        seed: RNG seed. None seeds from the wall clock.
        elevator_capacity: Passengers per car.
        floor_travel_time: Seconds between adjacent floors.
        door_operation_time: Seconds to open or close doors.
        door_hold_time: Seconds doors stay open before closing on their own.
        min_spawn_interval: Minimum seconds between successful spawns.
        max_waiting_per_floor: Waiting passengers at which a floor stops
            receiving arrivals.
        spawn_pattern: Start-floor distribution for new passengers.
        algorithm: Registered dispatch algorithm name.
        base_tick_rate: Ticks per second at speed 1.0.
        duration: Seconds after which the run completes. 0 runs unbounded.
    """

    floors: int = 10
    elevator_count: int = 3
    spawn_rate: float = 6.0
    seed: int | None = None
    elevator_capacity: int = 8
    floor_travel_time: float = 2.0
    door_operation_time: float = 1.0
    door_hold_time: float = 3.0
    min_spawn_interval: float = 0.1
    max_waiting_per_floor: int = 15
    spawn_pattern: SpawnPattern = SpawnPattern.UNIFORM
    algorithm: str = "greedy"
    base_tick_rate: float = 10.0
    duration: float = 0.0

    def __post_init__(self) -> None:
        if not 3 <= self.floors <= 60:
            raise ConfigurationError(f"floors must be between 3 and 60, got {self.floors}")
        if not 1 <= self.elevator_count <= 8:
            raise ConfigurationError(
                f"elevator_count must be between 1 and 8, got {self.elevator_count}"
            )
        if self.spawn_rate <= 0:
            raise ConfigurationError(f"spawn_rate must be > 0, got {self.spawn_rate}")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ConfigurationError(f"seed must be an integer, got {self.seed!r}")
        if self.elevator_capacity < 1:
            raise ConfigurationError(
                f"elevator_capacity must be >= 1, got {self.elevator_capacity}"
            )
        for name in ("floor_travel_time", "door_operation_time", "door_hold_time", "min_spawn_interval"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.max_waiting_per_floor < 1:
            raise ConfigurationError(
                f"max_waiting_per_floor must be >= 1, got {self.max_waiting_per_floor}"
            )
        if self.base_tick_rate <= 0:
            raise ConfigurationError(f"base_tick_rate must be > 0, got {self.base_tick_rate}")
        if self.duration < 0:
            raise ConfigurationError(f"duration must be >= 0, got {self.duration}")


@dataclass(frozen=True)
class SimulationState:
    """Snapshot handed to UI consumers after every tick and control call.

    Attributes:
        status: Lifecycle status.
        elevators: Public state of every car, in index order.
        waiting_passengers: Passengers not yet picked up.
        metrics: Current aggregate metrics.
        current_time: Simulation seconds elapsed.
    """

    status: SimulationStatus
    elevators: tuple[ElevatorSnapshot, ...]
    waiting_passengers: tuple[Passenger, ...]
    metrics: SimulationMetrics
    current_time: float


class Simulation:
    """Owns one building's elevators, passengers and clock.

    All mutation happens under a single re-entrant lock, so control calls
    from other threads serialize against the tick handler. A running tick is
    never preempted: ``pause`` takes effect from the next tick.

    Args:
        config: Run parameters. Defaults to ``SimulationConfig()``.
        registry: Where algorithm names are resolved.
        fixed_step: Drive real-time runs with the nominal tick interval
            instead of measured wall time.
        clock: Monotonic time source for the real-time scheduler.

    Raises:
        ConfigurationError: If ``config.algorithm`` is not registered.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        registry: AlgorithmRegistry | None = None,
        fixed_step: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config if config is not None else SimulationConfig()
        self._registry = registry if registry is not None else default_registry
        self._fixed_step = fixed_step
        self._clock = clock

        self._lock = threading.RLock()
        self._listeners: list[StateListener] = []

        self._algorithm = self._create_algorithm(self._config.algorithm)
        self._status = SimulationStatus.IDLE
        self._speed = 1.0
        self._ticker: TickScheduler | None = None

        self._elevators: list[ElevatorCar] = []
        self._spawner: PassengerSpawner | None = None
        self._waiting: list[Passenger] = []
        self._completed: list[Passenger] = []
        self._current_time = 0.0
        self._metrics = SimulationMetrics()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def status(self) -> SimulationStatus:
        return self._status

    @property
    def algorithm(self) -> DispatchAlgorithm:
        return self._algorithm

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def metrics(self) -> SimulationMetrics:
        return self._metrics

    @property
    def completed_passengers(self) -> tuple[Passenger, ...]:
        with self._lock:
            return tuple(self._completed)

    @property
    def spawner_stats(self) -> SpawnerStats | None:
        with self._lock:
            return self._spawner.stats if self._spawner is not None else None

    def get_state(self) -> SimulationState:
        with self._lock:
            return self._snapshot()

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with a ``SimulationState``.

        Returns:
            A function that unregisters the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start real-time ticking, building the simulation first if needed.

        Starting a paused run resumes it. A run driven so far by ``advance``
        continues in real time from its current state.
        """
        with self._lock:
            if self._ticker is not None:
                if self._status is SimulationStatus.RUNNING:
                    return
                self._resume_locked()
            else:
                if self._status in (SimulationStatus.IDLE, SimulationStatus.COMPLETED):
                    self._initialize()
                self._status = SimulationStatus.RUNNING
                self._ticker = self._create_ticker()
                self._ticker.start()
                logger.info("Simulation started: %s", self._describe_config())
            state = self._snapshot()
        self._notify(state)

    def pause(self) -> None:
        with self._lock:
            if self._status is not SimulationStatus.RUNNING:
                return
            self._status = SimulationStatus.PAUSED
            if self._ticker is not None:
                self._ticker.pause()
            logger.info("Simulation paused at t=%.2f", self._current_time)
            state = self._snapshot()
        self._notify(state)

    def resume(self) -> None:
        with self._lock:
            if self._status is not SimulationStatus.PAUSED:
                return
            self._resume_locked()
            state = self._snapshot()
        self._notify(state)

    def reset(self) -> None:
        """Stop ticking and discard every elevator, passenger and metric."""
        with self._lock:
            ticker = self._reset_locked()
            state = self._snapshot()
        if ticker is not None:
            ticker.stop()
        logger.info("Simulation reset")
        self._notify(state)

    def update_config(self, **changes: Any) -> SimulationConfig:
        """Apply a partial configuration change.

        Spawn rate, spawn pattern, tick rate and duration apply to a live
        run. Any other change to a run that is not idle forces a reset.

        Returns:
            The new configuration.

        Raises:
            ConfigurationError: If a field is unknown or a value is out of
                range. The current configuration is left untouched.
        """
        known = {f.name for f in fields(SimulationConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration field(s): {', '.join(sorted(unknown))}")

        with self._lock:
            new_config = replace(self._config, **changes)
            changed = {name for name in changes if getattr(self._config, name) != getattr(new_config, name)}
            if not changed:
                return self._config

            algorithm = self._algorithm
            if "algorithm" in changed:
                algorithm = self._create_algorithm(new_config.algorithm)

            needs_reset = self._status is not SimulationStatus.IDLE and bool(changed - _LIVE_FIELDS)
            ticker = None
            if needs_reset:
                # the outgoing algorithm sees the end of its own run
                ticker = self._reset_locked()
            self._config = new_config
            self._algorithm = algorithm
            if not needs_reset:
                self._apply_live_changes(changed)
            state = self._snapshot()

        if ticker is not None:
            ticker.stop()
        logger.info("Configuration updated: %s", ", ".join(sorted(changed)))
        if needs_reset:
            logger.info("Simulation reset")
        self._notify(state)
        return new_config

    def set_speed(self, multiplier: float) -> None:
        """Scale the real-time tick rate against ``base_tick_rate``.

        Raises:
            ValueError: If ``multiplier`` is outside [0.25, 4.0].
        """
        if not MIN_SPEED <= multiplier <= MAX_SPEED:
            raise ValueError(
                f"Speed multiplier must be between {MIN_SPEED} and {MAX_SPEED}, got {multiplier}"
            )
        with self._lock:
            self._speed = multiplier
            if self._ticker is not None:
                self._ticker.set_tick_rate(self._config.base_tick_rate * multiplier)
            logger.info("Speed set to %.2fx", multiplier)
            state = self._snapshot()
        self._notify(state)

    def set_algorithm(self, algorithm: str | DispatchAlgorithm) -> None:
        """Swap the dispatch algorithm between runs.

        Args:
            algorithm: A registered name or an algorithm instance.

        Raises:
            RuntimeError: If a run is in progress.
            KeyError: If the name is not registered.
        """
        with self._lock:
            if self._status in (SimulationStatus.RUNNING, SimulationStatus.PAUSED):
                raise RuntimeError("Cannot change the algorithm while a simulation is in progress")
            if isinstance(algorithm, str):
                self._algorithm = self._registry.create(algorithm)
                self._config = replace(self._config, algorithm=algorithm)
            else:
                self._algorithm = algorithm
            logger.info("Dispatch algorithm set to %s", self._algorithm.name)

    # ------------------------------------------------------------------
    # Headless driving
    # ------------------------------------------------------------------

    def advance(self, delta_time: float) -> SimulationState:
        """Process one tick of ``delta_time`` seconds on the calling thread.

        An idle simulation is built and marked running first. A paused one
        steps once and stays paused.

        Raises:
            ValueError: If ``delta_time`` is negative.
            RuntimeError: If the run has completed.
        """
        if delta_time < 0:
            raise ValueError(f"delta_time must be >= 0, got {delta_time}")

        with self._lock:
            if self._status is SimulationStatus.COMPLETED:
                raise RuntimeError("Simulation has completed; call reset() before advancing")
            if self._status is SimulationStatus.IDLE:
                self._initialize()
                self._status = SimulationStatus.RUNNING
                logger.info("Simulation started (manual stepping): %s", self._describe_config())
            state, ticker = self._tick(delta_time)
        if ticker is not None:
            ticker.stop()
        self._notify(state)
        return state

    def run_for(self, duration: float, delta_time: float = 0.1) -> SimulationMetrics:
        """Advance in ``delta_time`` steps until ``duration`` seconds have passed.

        Stops early if the configured ``duration`` completes the run.

        Returns:
            Metrics at the end of the run.
        """
        if duration < 0:
            raise ValueError(f"duration must be >= 0, got {duration}")
        if delta_time <= 0:
            raise ValueError(f"delta_time must be > 0, got {delta_time}")

        elapsed = 0.0
        while duration - elapsed > 1e-9:
            step = min(delta_time, duration - elapsed)
            self.advance(step)
            elapsed += step
            if self._status is SimulationStatus.COMPLETED:
                break
        return self._metrics

    # ------------------------------------------------------------------
    # Tick processing
    # ------------------------------------------------------------------

    def _on_scheduler_tick(self, ticker: TickScheduler, delta_time: float) -> None:
        with self._lock:
            if self._ticker is not ticker or self._status is not SimulationStatus.RUNNING:
                return
            state, finished = self._tick(delta_time)
        if finished is not None:
            finished.stop()
        self._notify(state)

    def _tick(self, delta_time: float) -> tuple[SimulationState, TickScheduler | None]:
        """One full tick. Caller holds the lock.

        Returns:
            The resulting state and, when the run just completed, the
            detached scheduler the caller must stop after releasing the lock.
        """
        assert self._spawner is not None
        self._current_time += delta_time
        now = self._current_time

        waiting_counts = [0] * self._config.floors
        for passenger in self._waiting:
            waiting_counts[passenger.start_floor] += 1
        self._waiting.extend(self._spawner.next_tick(delta_time, now, waiting_counts))

        snapshots = [elevator.get_state() for elevator in self._elevators]
        try:
            commands = self._algorithm.on_tick(snapshots, tuple(self._waiting), now)
        except Exception:
            logger.exception("Dispatch algorithm %s failed at t=%.2f", self._algorithm.name, now)
            commands = []

        commands_by_elevator: dict[str, list[ElevatorCommand]] = defaultdict(list)
        for command in commands:
            commands_by_elevator[command.elevator_id].append(command)

        for elevator in self._elevators:
            try:
                self._advance_elevator(elevator, commands_by_elevator.get(elevator.id, ()), delta_time, now)
            except Exception:
                logger.exception("Error advancing %s at t=%.2f", elevator.id, now)

        onboard = sum(elevator.passenger_count for elevator in self._elevators)
        self._metrics = compute_metrics(self._completed, len(self._waiting), onboard, now)

        finished = None
        if self._config.duration > 0 and now >= self._config.duration - 1e-9:
            finished = self._complete()
        return self._snapshot(), finished

    def _advance_elevator(
        self,
        elevator: ElevatorCar,
        commands: Sequence[ElevatorCommand],
        delta_time: float,
        now: float,
    ) -> None:
        elevator.step(delta_time, now)
        for command in commands:
            elevator.execute_command(command, now)

        boarded = elevator.board_passengers(self._waiting, now)
        if boarded:
            boarded_ids = {p.id for p in boarded}
            self._waiting = [p for p in self._waiting if p.id not in boarded_ids]

        self._completed.extend(elevator.disembark_passengers(now))

    def _complete(self) -> TickScheduler | None:
        self._status = SimulationStatus.COMPLETED
        ticker = self._detach_ticker()
        self._end_algorithm()
        logger.info("Simulation completed at t=%.2f: %s", self._current_time, self._metrics)
        return ticker

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        config = self._config
        rng = create_seeded_rng(config.seed) if config.seed is not None else timestamped_rng()

        self._elevators = [
            ElevatorCar(
                ElevatorConfig(
                    id=f"elevator_{i}",
                    floor_count=config.floors,
                    capacity=config.elevator_capacity,
                    floor_travel_time=config.floor_travel_time,
                    door_operation_time=config.door_operation_time,
                    door_hold_time=config.door_hold_time,
                ),
                initial_floor=0,
            )
            for i in range(config.elevator_count)
        ]
        self._spawner = PassengerSpawner(
            SpawnerConfig(
                floor_count=config.floors,
                spawn_rate=config.spawn_rate,
                min_spawn_interval=config.min_spawn_interval,
                max_waiting_per_floor=config.max_waiting_per_floor,
            ),
            rng,
            config.spawn_pattern,
        )
        self._waiting = []
        self._completed = []
        self._current_time = 0.0
        self._metrics = SimulationMetrics()

        hook = getattr(self._algorithm, "on_simulation_start", None)
        if callable(hook):
            hook(config)

    def _reset_locked(self) -> TickScheduler | None:
        """Discard the run. Returns the detached scheduler for the caller to stop."""
        was_active = self._status in (SimulationStatus.RUNNING, SimulationStatus.PAUSED)
        ticker = self._detach_ticker()
        if was_active:
            self._end_algorithm()
        self._status = SimulationStatus.IDLE
        self._elevators = []
        self._spawner = None
        self._waiting = []
        self._completed = []
        self._current_time = 0.0
        self._metrics = SimulationMetrics()
        return ticker

    def _end_algorithm(self) -> None:
        hook = getattr(self._algorithm, "on_simulation_end", None)
        if callable(hook):
            try:
                hook(self._metrics)
            except Exception:
                logger.exception("on_simulation_end hook of %s failed", self._algorithm.name)

    def _create_algorithm(self, name: str) -> DispatchAlgorithm:
        try:
            return self._registry.create(name)
        except KeyError as e:
            raise ConfigurationError(str(e.args[0])) from e

    def _create_ticker(self) -> TickScheduler:
        ticker = TickScheduler(
            self._config.base_tick_rate * self._speed,
            fixed_step=self._fixed_step,
            clock=self._clock,
        )
        ticker.on_tick(lambda delta, total: self._on_scheduler_tick(ticker, delta))
        return ticker

    def _detach_ticker(self) -> TickScheduler | None:
        ticker, self._ticker = self._ticker, None
        return ticker

    def _resume_locked(self) -> None:
        self._status = SimulationStatus.RUNNING
        if self._ticker is not None:
            self._ticker.resume()
        logger.info("Simulation resumed at t=%.2f", self._current_time)

    def _apply_live_changes(self, changed: set[str]) -> None:
        if self._spawner is not None:
            if "spawn_rate" in changed:
                self._spawner.set_spawn_rate(self._config.spawn_rate)
            if "spawn_pattern" in changed:
                self._spawner.set_spawn_pattern(self._config.spawn_pattern)
        if "base_tick_rate" in changed and self._ticker is not None:
            self._ticker.set_tick_rate(self._config.base_tick_rate * self._speed)

    def _snapshot(self) -> SimulationState:
        return SimulationState(
            status=self._status,
            elevators=tuple(elevator.get_state() for elevator in self._elevators),
            waiting_passengers=tuple(self._waiting),
            metrics=self._metrics,
            current_time=self._current_time,
        )

    def _notify(self, state: SimulationState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Error in state-change listener %r", listener)

    def _describe_config(self) -> str:
        c = self._config
        return (
            f"floors={c.floors}, elevators={c.elevator_count}, spawn_rate={c.spawn_rate}/min, "
            f"seed={c.seed}, algorithm={self._algorithm.name}"
        )
