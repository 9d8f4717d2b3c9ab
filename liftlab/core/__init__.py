"""Simulation kernel: random numbers, models, ticks and the elevator car."""

from liftlab.core.elevator import ElevatorCar, ElevatorConfig
from liftlab.core.models import (
    Direction,
    DoorState,
    ElevatorAction,
    ElevatorCommand,
    ElevatorSnapshot,
    Passenger,
    SimulationStatus,
)
from liftlab.core.rng import (
    LCGRandom,
    SeededRNG,
    create_seeded_rng,
    normal_random,
    poisson_spawn,
    reference_rng,
    rng_from_string,
    timestamped_rng,
    weighted_floor_selection,
)
from liftlab.core.ticker import FrameRateMonitor, TickHandle, TickScheduler, format_time

__all__ = [
    # Elevator
    "ElevatorCar",
    "ElevatorConfig",
    # Models
    "Direction",
    "DoorState",
    "ElevatorAction",
    "ElevatorCommand",
    "ElevatorSnapshot",
    "Passenger",
    "SimulationStatus",
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
    # Ticks
    "FrameRateMonitor",
    "TickHandle",
    "TickScheduler",
    "format_time",
]
