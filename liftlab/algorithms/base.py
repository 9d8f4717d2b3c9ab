"""Dispatch algorithm contract and name registry.

A dispatch algorithm is a plain object (no base class required) that maps the
current elevator snapshots and waiting passengers to a list of commands once
per tick. Algorithms never mutate elevators directly; the simulation applies
the returned commands.

Algorithms may additionally define ``on_simulation_start(config)`` and
``on_simulation_end(metrics)``; the simulation calls them when present.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from liftlab.core.models import ElevatorCommand, ElevatorSnapshot, Passenger

logger = logging.getLogger(__name__)

AlgorithmFactory = Callable[[], "DispatchAlgorithm"]


@runtime_checkable
class DispatchAlgorithm(Protocol):
    """Protocol for pluggable elevator dispatch strategies."""

    name: str
    description: str

    def on_tick(
        self,
        elevators: Sequence[ElevatorSnapshot],
        waiting_passengers: Sequence[Passenger],
        current_time: float,
    ) -> list[ElevatorCommand]:
        """Decide this tick's commands.

        Args:
            elevators: Snapshots of every elevator, in index order.
            waiting_passengers: Passengers not yet picked up.
            current_time: Simulation time in seconds.

        Returns:
            Commands, at most one per elevator is typical. Elevators without
            a command simply keep running their timers.
        """
        ...


class AlgorithmRegistry:
    """Maps algorithm names to factories.

    Names are case-insensitive. ``create`` returns a fresh instance on every
    call so runs never share algorithm state.
    """

    def __init__(self):
        self._factories: dict[str, AlgorithmFactory] = {}

    def register(self, name: str, factory: AlgorithmFactory, *, replace: bool = False) -> None:
        """Register ``factory`` under ``name``.

        Raises:
            ValueError: If the name is empty or already taken and ``replace``
                is False.
        """
        key = name.strip().lower()
        if not key:
            raise ValueError("Algorithm name must be non-empty")
        if key in self._factories and not replace:
            raise ValueError(f"Algorithm '{key}' is already registered")
        self._factories[key] = factory
        logger.debug("Registered dispatch algorithm '%s'", key)

    def create(self, name: str) -> DispatchAlgorithm:
        """Instantiate the algorithm registered as ``name``.

        Raises:
            KeyError: If no algorithm has that name.
        """
        key = name.strip().lower()
        try:
            factory = self._factories[key]
        except KeyError:
            raise KeyError(
                f"Unknown algorithm '{name}'. Available: {', '.join(self.names()) or 'none'}"
            ) from None
        return factory()

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._factories

    def __len__(self) -> int:
        return len(self._factories)
