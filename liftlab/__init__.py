"""LiftLab: discrete multi-elevator building simulation.

Passengers arrive at floors, a pluggable dispatch algorithm commands the
elevator cars each tick, and wait and travel metrics are derived from the
passengers that complete their trips.

Quick start::

    from liftlab import Simulation, SimulationConfig

    sim = Simulation(SimulationConfig(floors=12, elevator_count=3, spawn_rate=8, seed=7))
    print(sim.run_for(300.0))

The library is silent by default. Turn on logging with
``liftlab.enable_console_logging("DEBUG")`` or ``liftlab.configure_from_env()``.
"""

import logging

logging.getLogger("liftlab").addHandler(logging.NullHandler())

__version__ = "0.1.0"

from liftlab.algorithms import (
    AlgorithmRegistry,
    DispatchAlgorithm,
    GreedyAlgorithm,
    default_registry,
)
from liftlab.core import (
    Direction,
    DoorState,
    ElevatorAction,
    ElevatorCar,
    ElevatorCommand,
    ElevatorConfig,
    ElevatorSnapshot,
    FrameRateMonitor,
    LCGRandom,
    Passenger,
    SeededRNG,
    SimulationStatus,
    TickHandle,
    TickScheduler,
    create_seeded_rng,
    format_time,
    normal_random,
    poisson_spawn,
    reference_rng,
    rng_from_string,
    timestamped_rng,
    weighted_floor_selection,
)
from liftlab.instrumentation import SimulationMetrics, compute_metrics
from liftlab.load import (
    PassengerSpawner,
    SpawnerConfig,
    SpawnerStats,
    SpawnPattern,
    TrafficBreakdown,
    analyze_spawn_pattern,
    create_evening_rush_spawner,
    create_morning_rush_spawner,
    create_uniform_spawner,
)
from liftlab.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_file_logging,
    enable_json_logging,
    enable_timed_file_logging,
    set_level,
    set_module_level,
)
from liftlab.simulation import (
    ConfigurationError,
    Simulation,
    SimulationConfig,
    SimulationState,
)

__all__ = [
    "__version__",
    # Simulation
    "ConfigurationError",
    "Simulation",
    "SimulationConfig",
    "SimulationState",
    "SimulationMetrics",
    "compute_metrics",
    # Kernel
    "Direction",
    "DoorState",
    "ElevatorAction",
    "ElevatorCar",
    "ElevatorCommand",
    "ElevatorConfig",
    "ElevatorSnapshot",
    "Passenger",
    "SimulationStatus",
    # Ticks
    "FrameRateMonitor",
    "TickHandle",
    "TickScheduler",
    "format_time",
    # Random numbers
    "LCGRandom",
    "SeededRNG",
    "create_seeded_rng",
    "normal_random",
    "poisson_spawn",
    "reference_rng",
    "rng_from_string",
    "timestamped_rng",
    "weighted_floor_selection",
    # Load
    "PassengerSpawner",
    "SpawnerConfig",
    "SpawnerStats",
    "SpawnPattern",
    "TrafficBreakdown",
    "analyze_spawn_pattern",
    "create_evening_rush_spawner",
    "create_morning_rush_spawner",
    "create_uniform_spawner",
    # Algorithms
    "AlgorithmRegistry",
    "DispatchAlgorithm",
    "GreedyAlgorithm",
    "default_registry",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]
