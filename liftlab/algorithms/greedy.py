"""Greedy nearest-call dispatch.

Each elevator, in index order, gets at most one command per tick:

1. Doors open: close them.
2. Passengers aboard: head for the nearest onboard destination.
3. Idle: head for the nearest waiting passenger's floor.
4. Otherwise: no command.

"Head for" means OPEN_DOORS when already there, else MOVE_UP or MOVE_DOWN.
Equidistant candidates resolve to the lower floor, then to the earliest
request.

Calls are claimed: a call floor taken by one idle elevator is not offered to
the idle elevators after it in the same tick. This departs from deciding each
elevator independently, so two idle cars equidistant from a single caller do
not both answer it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from liftlab.core.models import (
    Direction,
    DoorState,
    ElevatorAction,
    ElevatorCommand,
    ElevatorSnapshot,
    Passenger,
)

logger = logging.getLogger(__name__)


class GreedyAlgorithm:
    """Always serves the nearest call first."""

    name = "greedy"
    description = "Always serves the nearest call first"

    def on_tick(
        self,
        elevators: Sequence[ElevatorSnapshot],
        waiting_passengers: Sequence[Passenger],
        current_time: float,
    ) -> list[ElevatorCommand]:
        commands: list[ElevatorCommand] = []
        claimed_floors: set[int] = set()

        for elevator in elevators:
            command = self._command_for(elevator, waiting_passengers, claimed_floors)
            if command is not None:
                commands.append(command)

        if commands:
            logger.debug(
                "t=%.2f greedy issued %s",
                current_time,
                ", ".join(f"{c.elevator_id}:{c.action.value}" for c in commands),
            )
        return commands

    def _command_for(
        self,
        elevator: ElevatorSnapshot,
        waiting_passengers: Sequence[Passenger],
        claimed_floors: set[int],
    ) -> ElevatorCommand | None:
        if elevator.door_state is DoorState.OPEN:
            return ElevatorCommand(elevator.id, ElevatorAction.CLOSE_DOORS)

        if elevator.passengers:
            destination = self._nearest_destination(elevator)
            return self._move_toward(elevator, destination)

        if elevator.direction is Direction.IDLE:
            call = self._nearest_call(elevator, waiting_passengers, claimed_floors)
            if call is not None:
                claimed_floors.add(call)
                return self._move_toward(elevator, call)

        return None

    @staticmethod
    def _nearest_destination(elevator: ElevatorSnapshot) -> int:
        floors = {p.destination_floor for p in elevator.passengers}
        return min(floors, key=lambda f: (abs(f - elevator.current_floor), f))

    @staticmethod
    def _nearest_call(
        elevator: ElevatorSnapshot,
        waiting_passengers: Sequence[Passenger],
        claimed_floors: set[int],
    ) -> int | None:
        candidates = [
            p
            for p in waiting_passengers
            if p.is_waiting and p.start_floor not in claimed_floors
        ]
        if not candidates:
            return None
        nearest = min(
            candidates,
            key=lambda p: (abs(p.start_floor - elevator.current_floor), p.start_floor, p.request_time),
        )
        return nearest.start_floor

    @staticmethod
    def _move_toward(elevator: ElevatorSnapshot, target_floor: int) -> ElevatorCommand:
        if target_floor == elevator.current_floor:
            action = ElevatorAction.OPEN_DOORS
        elif target_floor > elevator.current_floor:
            action = ElevatorAction.MOVE_UP
        else:
            action = ElevatorAction.MOVE_DOWN
        return ElevatorCommand(elevator.id, action, target_floor)
