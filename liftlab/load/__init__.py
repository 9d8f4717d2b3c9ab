"""Passenger load generation."""

from liftlab.load.spawner import (
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

__all__ = [
    "PassengerSpawner",
    "SpawnerConfig",
    "SpawnerStats",
    "SpawnPattern",
    "TrafficBreakdown",
    "analyze_spawn_pattern",
    "create_evening_rush_spawner",
    "create_morning_rush_spawner",
    "create_uniform_spawner",
]
