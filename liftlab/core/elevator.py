"""Elevator car state machine.

An ``ElevatorCar`` owns one elevator's full behavioral model: floor position,
direction, door cycle, onboard passengers and request bookkeeping. It is
driven from outside in two ways:

- ``execute_command()`` applies a dispatch algorithm's command. Commands the
  car cannot honor in its current state are rejected with ``False`` and leave
  the state untouched.
- ``step()`` advances the internal countdown timers by a time delta and fires
  the timed transitions (door opening/closing, hold expiry, arrival).

All timing is countdown fields checked once per ``step`` call; nothing fires
asynchronously.

Example::

    car = ElevatorCar(ElevatorConfig(id="elevator_0", floor_count=10))
    car.execute_command(ElevatorCommand("elevator_0", ElevatorAction.MOVE_UP), 0.0)
    car.step(2.0, 2.0)
    car.get_state().current_floor  # 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from liftlab.core.models import (
    Direction,
    DoorState,
    ElevatorAction,
    ElevatorCommand,
    ElevatorSnapshot,
    Passenger,
)

logger = logging.getLogger(__name__)

# Countdowns within this many seconds of zero count as expired (float drift)
_TIMER_EPSILON = 1e-9


@dataclass(frozen=True)
class ElevatorConfig:
    """Static parameters of one elevator car.

    Attributes:
        id: Unique identifier.
        floor_count: Number of floors served (floors are 0-based).
        capacity: Maximum onboard passengers.
        floor_travel_time: Seconds to travel between adjacent floors.
        door_operation_time: Seconds to open or close the doors.
        door_hold_time: Seconds the doors stay open before closing on their own.
    """

    id: str
    floor_count: int
    capacity: int = 8
    floor_travel_time: float = 2.0
    door_operation_time: float = 1.0
    door_hold_time: float = 3.0

    def __post_init__(self) -> None:
        if self.floor_count < 1:
            raise ValueError(f"floor_count must be >= 1, got {self.floor_count}")
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")
        for name in ("floor_travel_time", "door_operation_time", "door_hold_time"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass
class _CarState:
    """Internal, mutable state of a car."""

    current_floor: int
    target_floor: int | None = None
    direction: Direction = Direction.IDLE
    door_state: DoorState = DoorState.CLOSED
    door_timer: float = 0.0
    move_timer: float = 0.0
    passengers: list[Passenger] = field(default_factory=list)
    requested_floors: set[int] = field(default_factory=set)
    dropoff_floors: set[int] = field(default_factory=set)
    pickup_floors: set[int] = field(default_factory=set)
    is_moving: bool = False
    action_start_time: float = 0.0


class ElevatorCar:
    """State machine for a single elevator.

    Args:
        config: Static car parameters.
        initial_floor: Starting floor, clamped into the building.
    """

    def __init__(self, config: ElevatorConfig, initial_floor: int = 0):
        self._config = config
        self._state = self._initial_state(initial_floor)
        self._handlers: dict[ElevatorAction, Callable[[float], bool]] = {
            ElevatorAction.MOVE_UP: self._move_up,
            ElevatorAction.MOVE_DOWN: self._move_down,
            ElevatorAction.OPEN_DOORS: self._open_doors,
            ElevatorAction.CLOSE_DOORS: self._close_doors,
            ElevatorAction.WAIT: lambda current_time: True,
        }

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def config(self) -> ElevatorConfig:
        return self._config

    @property
    def is_moving(self) -> bool:
        """True only while travelling between two floors."""
        return self._state.is_moving

    @property
    def passenger_count(self) -> int:
        return len(self._state.passengers)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_state(self) -> ElevatorSnapshot:
        """Immutable snapshot of the car's public state."""
        state = self._state
        return ElevatorSnapshot(
            id=self._config.id,
            current_floor=state.current_floor,
            direction=state.direction,
            door_state=state.door_state,
            passengers=tuple(state.passengers),
            capacity=self._config.capacity,
            target_floors=frozenset(state.dropoff_floors | state.pickup_floors),
        )

    def execute_command(self, command: ElevatorCommand, current_time: float) -> bool:
        """Apply a dispatch command.

        Returns:
            True if the command was accepted. False if it was addressed to a
            different car, is not applicable in the current state, or names
            an unknown action. A rejected command never changes state.
        """
        if command.elevator_id != self._config.id:
            return False

        handler = self._handlers.get(command.action)
        if handler is None:
            logger.warning(
                "[%s] Unknown elevator action: %r", self._config.id, command.action
            )
            return False

        accepted = handler(current_time)
        logger.debug(
            "[%s] %s at floor %d -> %s",
            self._config.id,
            command.action.value,
            self._state.current_floor,
            "accepted" if accepted else "rejected",
        )
        return accepted

    def step(self, delta_time: float, current_time: float) -> None:
        """Advance timers by ``delta_time`` seconds and fire due transitions."""
        self._open_if_requested_here(current_time)

        if self._state.door_timer > 0:
            self._state.door_timer -= delta_time
        if self._state.move_timer > 0:
            self._state.move_timer -= delta_time

        self._update_doors(current_time)
        self._update_movement(current_time)
        self._update_direction()

    def add_pickup_request(self, floor: int) -> None:
        """Register a floor where passengers wait. Out-of-range floors are ignored."""
        if self._in_range(floor):
            self._state.pickup_floors.add(floor)
            self._state.requested_floors.add(floor)

    def add_dropoff_request(self, floor: int) -> None:
        """Register a floor where passengers want out. Out-of-range floors are ignored."""
        if self._in_range(floor):
            self._state.dropoff_floors.add(floor)
            self._state.requested_floors.add(floor)

    def board_passengers(
        self, passengers: Iterable[Passenger], current_time: float
    ) -> list[Passenger]:
        """Take on waiting passengers standing at the current floor.

        Boarding only happens with the doors fully open and spare capacity.
        Each boarded passenger gets ``pickup_time`` and registers their
        destination as a dropoff request.

        Returns:
            The passengers that boarded, in candidate order.
        """
        state = self._state
        boarded: list[Passenger] = []

        if state.door_state is not DoorState.OPEN or self.is_full():
            return boarded

        for passenger in passengers:
            if len(state.passengers) >= self._config.capacity:
                break
            if passenger.start_floor != state.current_floor or not passenger.is_waiting:
                continue

            passenger.pickup_time = current_time
            state.passengers.append(passenger)
            boarded.append(passenger)
            self.add_dropoff_request(passenger.destination_floor)

        if boarded:
            state.pickup_floors.discard(state.current_floor)
            if state.current_floor not in state.dropoff_floors:
                state.requested_floors.discard(state.current_floor)
            logger.debug(
                "[%s] Boarded %d passenger(s) at floor %d (%d/%d)",
                self._config.id,
                len(boarded),
                state.current_floor,
                len(state.passengers),
                self._config.capacity,
            )

        return boarded

    def disembark_passengers(self, current_time: float) -> list[Passenger]:
        """Let out every onboard passenger whose destination is this floor.

        Returns:
            The passengers that got off; each has ``dropoff_time`` set.
        """
        state = self._state
        if state.door_state is not DoorState.OPEN:
            return []

        disembarked = [p for p in state.passengers if p.destination_floor == state.current_floor]
        if not disembarked:
            return disembarked

        for passenger in disembarked:
            passenger.dropoff_time = current_time
        state.passengers = [
            p for p in state.passengers if p.destination_floor != state.current_floor
        ]

        state.dropoff_floors.discard(state.current_floor)
        if state.current_floor not in state.pickup_floors:
            state.requested_floors.discard(state.current_floor)

        logger.debug(
            "[%s] Disembarked %d passenger(s) at floor %d",
            self._config.id,
            len(disembarked),
            state.current_floor,
        )
        return disembarked

    def should_stop_at_current_floor(self) -> bool:
        return self._state.current_floor in self._state.requested_floors

    def get_next_target_floor(self) -> int | None:
        """Next floor to visit given the current direction.

        Moving up: the nearest requested floor above. Moving down: the nearest
        below. Idle: the closest requested floor, ties going to the lower one.
        """
        current = self._state.current_floor
        requests = sorted(self._state.requested_floors)
        if not requests:
            return None

        direction = self._state.direction
        if direction is Direction.UP:
            above = [f for f in requests if f > current]
            return above[0] if above else None
        if direction is Direction.DOWN:
            below = [f for f in requests if f < current]
            return below[-1] if below else None
        return min(requests, key=lambda f: abs(f - current))

    def has_requests(self) -> bool:
        return bool(self._state.requested_floors)

    def is_full(self) -> bool:
        return len(self._state.passengers) >= self._config.capacity

    def is_idle(self) -> bool:
        """No movement, no requests and no direction."""
        return (
            not self._state.is_moving
            and not self._state.requested_floors
            and self._state.direction is Direction.IDLE
        )

    def distance_to_floor(self, floor: int) -> int:
        return abs(self._state.current_floor - floor)

    def reset(self, initial_floor: int = 0) -> None:
        """Return the car to its freshly-constructed state."""
        self._state = self._initial_state(initial_floor)

    def __repr__(self) -> str:
        s = self._state
        return (
            f"ElevatorCar({self._config.id!r}, floor={s.current_floor}, "
            f"direction={s.direction.value}, doors={s.door_state.value}, "
            f"passengers={len(s.passengers)}/{self._config.capacity})"
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _move_up(self, current_time: float) -> bool:
        if self._state.is_moving or self._state.door_state is not DoorState.CLOSED:
            return False
        if self._state.current_floor >= self._config.floor_count - 1:
            return False
        self._start_movement(self._state.current_floor + 1, current_time)
        return True

    def _move_down(self, current_time: float) -> bool:
        if self._state.is_moving or self._state.door_state is not DoorState.CLOSED:
            return False
        if self._state.current_floor <= 0:
            return False
        self._start_movement(self._state.current_floor - 1, current_time)
        return True

    def _open_doors(self, current_time: float) -> bool:
        if self._state.is_moving or self._state.door_state in (DoorState.OPEN, DoorState.OPENING):
            return False
        self._state.door_state = DoorState.OPENING
        self._state.door_timer = self._config.door_operation_time
        self._state.action_start_time = current_time
        return True

    def _close_doors(self, current_time: float) -> bool:
        if self._state.is_moving or self._state.door_state in (
            DoorState.CLOSED,
            DoorState.CLOSING,
        ):
            return False
        self._state.door_state = DoorState.CLOSING
        self._state.door_timer = self._config.door_operation_time
        self._state.action_start_time = current_time
        return True

    def _start_movement(self, target_floor: int, current_time: float) -> None:
        state = self._state
        state.target_floor = target_floor
        state.is_moving = True
        state.move_timer = self._config.floor_travel_time
        state.action_start_time = current_time
        if target_floor > state.current_floor:
            state.direction = Direction.UP
        elif target_floor < state.current_floor:
            state.direction = Direction.DOWN

    # ------------------------------------------------------------------
    # Timed transitions
    # ------------------------------------------------------------------

    def _open_if_requested_here(self, current_time: float) -> None:
        """A stationary car standing on a requested floor opens without a command."""
        state = self._state
        if (
            not state.is_moving
            and state.door_state is DoorState.CLOSED
            and self.should_stop_at_current_floor()
        ):
            self._open_doors(current_time)

    def _update_doors(self, current_time: float) -> None:
        state = self._state
        if state.door_timer > _TIMER_EPSILON:
            return

        if state.door_state is DoorState.OPENING:
            state.door_state = DoorState.OPEN
            state.door_timer = self._config.door_hold_time
        elif state.door_state is DoorState.CLOSING:
            state.door_state = DoorState.CLOSED
            self._answer_stop()
        elif state.door_state is DoorState.OPEN:
            # hold time elapsed
            self._close_doors(current_time)

    def _answer_stop(self) -> None:
        """A finished door cycle answers the requests at this floor.

        The dropoff request survives only while an onboard passenger still
        has this floor as destination.
        """
        state = self._state
        floor = state.current_floor
        state.pickup_floors.discard(floor)
        if not any(p.destination_floor == floor for p in state.passengers):
            state.dropoff_floors.discard(floor)
        if floor not in state.pickup_floors and floor not in state.dropoff_floors:
            state.requested_floors.discard(floor)

    def _update_movement(self, current_time: float) -> None:
        state = self._state
        if not state.is_moving or state.move_timer > _TIMER_EPSILON:
            return

        state.current_floor = state.target_floor  # type: ignore[assignment]
        state.target_floor = None
        state.is_moving = False
        logger.debug("[%s] Arrived at floor %d", self._config.id, state.current_floor)

        if self.should_stop_at_current_floor():
            self._open_doors(current_time)

    def _update_direction(self) -> None:
        state = self._state
        if state.is_moving:
            return

        if not state.requested_floors:
            state.direction = Direction.IDLE
            return

        current = state.current_floor
        has_up = any(f > current for f in state.requested_floors)
        has_down = any(f < current for f in state.requested_floors)

        # keep going while there is still work ahead
        if state.direction is Direction.UP and has_up:
            return
        if state.direction is Direction.DOWN and has_down:
            return

        if has_up:
            state.direction = Direction.UP
        elif has_down:
            state.direction = Direction.DOWN
        else:
            state.direction = Direction.IDLE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _in_range(self, floor: int) -> bool:
        return 0 <= floor < self._config.floor_count

    def _initial_state(self, initial_floor: int) -> _CarState:
        floor = max(0, min(initial_floor, self._config.floor_count - 1))
        return _CarState(current_floor=floor)
