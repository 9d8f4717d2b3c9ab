"""Domain models shared by the simulation kernel.

Passengers are mutable records that move between the waiting pool, an
elevator car and the completed pool. Elevator snapshots and commands are
frozen: snapshots are handed to dispatch algorithms and UI consumers, commands
are produced fresh every tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Direction(Enum):
    """Direction of elevator travel."""

    UP = "up"
    DOWN = "down"
    IDLE = "idle"


class DoorState(Enum):
    """State of an elevator's doors."""

    OPEN = "open"
    CLOSED = "closed"
    OPENING = "opening"
    CLOSING = "closing"


class ElevatorAction(Enum):
    """Actions a dispatch algorithm can command."""

    MOVE_UP = "moveUp"
    MOVE_DOWN = "moveDown"
    OPEN_DOORS = "openDoors"
    CLOSE_DOORS = "closeDoors"
    WAIT = "wait"


class SimulationStatus(Enum):
    """Lifecycle status of a simulation run."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class Passenger:
    """A person requesting elevator service.

    Times are simulation seconds. ``pickup_time`` is set by the elevator that
    boards the passenger and ``dropoff_time`` by the one that lets them out.

    Attributes:
        id: Process-unique identifier.
        start_floor: Floor where the request was made.
        destination_floor: Floor the passenger wants to reach.
        request_time: When the request was made.
        pickup_time: When the passenger boarded, if they have.
        dropoff_time: When the passenger got off, if they have.
    """

    id: str
    start_floor: int
    destination_floor: int
    request_time: float
    pickup_time: float | None = None
    dropoff_time: float | None = None

    @property
    def is_waiting(self) -> bool:
        return self.pickup_time is None

    @property
    def is_traveling(self) -> bool:
        return self.pickup_time is not None and self.dropoff_time is None

    @property
    def is_completed(self) -> bool:
        return self.dropoff_time is not None

    @property
    def going_up(self) -> bool:
        return self.destination_floor > self.start_floor

    @property
    def wait_time(self) -> float | None:
        """Seconds between request and pickup, or None before pickup."""
        if self.pickup_time is None:
            return None
        return self.pickup_time - self.request_time

    @property
    def travel_time(self) -> float | None:
        """Seconds between pickup and dropoff, or None until both are set."""
        if self.pickup_time is None or self.dropoff_time is None:
            return None
        return self.dropoff_time - self.pickup_time


@dataclass(frozen=True)
class ElevatorSnapshot:
    """Immutable public view of one elevator.

    Attributes:
        id: Elevator identifier.
        current_floor: Floor the car is at (or last left, while moving).
        direction: Current travel direction.
        door_state: Current door state.
        passengers: Onboard passengers at snapshot time.
        capacity: Maximum onboard passengers.
        target_floors: Floors with pending pickup or dropoff demand.
    """

    id: str
    current_floor: int
    direction: Direction
    door_state: DoorState
    passengers: tuple[Passenger, ...]
    capacity: int
    target_floors: frozenset[int] = field(default_factory=frozenset)

    @property
    def is_full(self) -> bool:
        return len(self.passengers) >= self.capacity

    @property
    def is_empty(self) -> bool:
        return len(self.passengers) == 0


@dataclass(frozen=True)
class ElevatorCommand:
    """An action addressed to a single elevator for the current tick.

    Attributes:
        elevator_id: Elevator the command is for.
        action: What to do.
        target_floor: Floor the algorithm is heading for. Informational only;
            move commands always travel one floor.
    """

    elevator_id: str
    action: ElevatorAction
    target_floor: int | None = None
