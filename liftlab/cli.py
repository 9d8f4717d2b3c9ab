"""Command line entry point.

    liftlab simulate --duration 60 --floors 10 --elevators 3 --spawn-rate 6 --seed 42
    liftlab simulate --duration 30 --realtime --speed 4
    liftlab selftest
"""

from __future__ import annotations

import argparse
import sys
import threading
from collections.abc import Sequence

from liftlab.analysis.report import (
    MetricsRecorder,
    plot_metrics_timeline,
    plot_wait_distribution,
    summarize,
    write_passenger_csv,
)
from liftlab.core.elevator import ElevatorCar, ElevatorConfig
from liftlab.core.models import Direction, DoorState, ElevatorAction, ElevatorCommand, SimulationStatus
from liftlab.core.rng import create_seeded_rng
from liftlab.core.ticker import TickScheduler, format_time
from liftlab.load.spawner import PassengerSpawner, SpawnerConfig, SpawnPattern
from liftlab.logging_config import configure_from_env, enable_console_logging
from liftlab.simulation import (
    MAX_SPEED,
    MIN_SPEED,
    ConfigurationError,
    Simulation,
    SimulationConfig,
    SimulationState,
)


# =============================================================================
# simulate
# =============================================================================


def _print_status(state: SimulationState, spawned: int) -> None:
    print(f"\nTime: {format_time(state.current_time)}")
    print(
        f"Passengers: {spawned} spawned, {len(state.waiting_passengers)} waiting, "
        f"{state.metrics.passengers_served} completed"
    )
    print("Elevators:")
    for e in state.elevators:
        heading = {Direction.IDLE: "IDLE", Direction.UP: "UP", Direction.DOWN: "DOWN"}[e.direction]
        doors = "open" if e.door_state is DoorState.OPEN else e.door_state.value
        print(
            f"  {e.id}: floor {e.current_floor} {heading:<4} doors {doors:<7} "
            f"({len(e.passengers)}/{e.capacity} passengers)"
        )


def _print_final_report(sim: Simulation) -> None:
    state = sim.get_state()
    stats = sim.spawner_stats
    metrics = state.metrics

    print("\n" + "=" * 60)
    print("LIFTLAB SIMULATION RESULTS")
    print("=" * 60)
    c = sim.config
    print("\nConfiguration:")
    print(f"  Floors:              {c.floors}")
    print(f"  Elevators:           {c.elevator_count}")
    print(f"  Spawn rate:          {c.spawn_rate:.1f}/min ({c.spawn_pattern.value})")
    print(f"  Algorithm:           {sim.algorithm.name}")
    print(f"  Seed:                {c.seed}")

    print("\nPassenger Flow:")
    if stats is not None:
        print(f"  Spawned:             {stats.total_spawned}")
        print(f"  Achieved rate:       {stats.average_spawn_rate:.2f}/min")
    print(f"  Completed:           {metrics.passengers_served}")
    print(f"  Still waiting:       {len(state.waiting_passengers)}")
    print(f"  Onboard:             {sum(len(e.passengers) for e in state.elevators)}")

    if metrics.passengers_served > 0:
        print("\nService Times:")
        print(f"  Avg wait:            {metrics.avg_wait_time:.2f}s (max {metrics.max_wait_time:.2f}s)")
        print(f"  Avg travel:          {metrics.avg_travel_time:.2f}s (max {metrics.max_travel_time:.2f}s)")
        print()
        print(summarize(sim.completed_passengers))
    print("=" * 60)


def _run_realtime(sim: Simulation, speed: float) -> None:
    done = threading.Event()

    def on_state(state: SimulationState) -> None:
        if state.status is SimulationStatus.COMPLETED:
            done.set()

    unsubscribe = sim.on_state_change(on_state)
    sim.set_speed(speed)
    sim.start()
    try:
        # simulated time follows the wall clock; speed only changes tick resolution
        done.wait(timeout=sim.config.duration * 2 + 5)
    finally:
        unsubscribe()
        if sim.status is not SimulationStatus.COMPLETED:
            sim.pause()


def cmd_simulate(args: argparse.Namespace) -> int:
    if not MIN_SPEED <= args.speed <= MAX_SPEED:
        print(
            f"error: --speed must be between {MIN_SPEED} and {MAX_SPEED}, got {args.speed}",
            file=sys.stderr,
        )
        return 2
    try:
        config = SimulationConfig(
            floors=args.floors,
            elevator_count=args.elevators,
            spawn_rate=args.spawn_rate,
            seed=args.seed,
            spawn_pattern=SpawnPattern(args.pattern),
            algorithm=args.algorithm,
            duration=args.duration,
        )
        sim = Simulation(config, fixed_step=not args.realtime)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    recorder = MetricsRecorder(interval=1.0)
    sim.on_state_change(recorder)

    next_report = args.report_every

    def report(state: SimulationState) -> None:
        nonlocal next_report
        if args.report_every > 0 and state.current_time >= next_report:
            stats = sim.spawner_stats
            _print_status(state, stats.total_spawned if stats else 0)
            next_report += args.report_every

    sim.on_state_change(report)

    print("Running LiftLab simulation...")
    if args.realtime:
        _run_realtime(sim, args.speed)
    else:
        sim.run_for(args.duration, delta_time=args.step)

    _print_final_report(sim)

    if args.csv:
        path = write_passenger_csv(sim.completed_passengers, args.csv)
        print(f"Saved: {path}")
    if args.plot:
        path = plot_wait_distribution(sim.completed_passengers, args.plot)
        print(f"Saved: {path}")
    if args.timeline:
        path = plot_metrics_timeline(recorder, args.timeline)
        print(f"Saved: {path}")
    return 0


# =============================================================================
# selftest
# =============================================================================


def cmd_selftest(args: argparse.Namespace) -> int:
    """Smoke-check each kernel component and print what it did."""
    failures = 0

    print("1. Random number generator")
    first = [create_seeded_rng(42).next_float() for _ in range(2)]
    rng = create_seeded_rng(42)
    numbers = [rng.next_float() for _ in range(5)]
    print(f"   Generated: {', '.join(f'{n:.3f}' for n in numbers)}")
    if first[0] != first[1] or first[0] != numbers[0]:
        print("   FAILED: same seed gave different output")
        failures += 1

    print("2. Tick scheduler")
    ticker = TickScheduler(ticks_per_second=20)
    ticked = threading.Event()
    count = 0

    def on_tick(delta: float, total: float) -> None:
        nonlocal count
        count += 1
        if count >= 3:
            ticked.set()

    handle = ticker.on_tick(on_tick)
    ticker.start()
    ticked.wait(timeout=2.0)
    ticker.stop()
    handle.remove()
    print(f"   Received {count} ticks")
    if count < 3:
        print("   FAILED: ticker did not deliver ticks")
        failures += 1

    print("3. Elevator state machine")
    car = ElevatorCar(
        ElevatorConfig(
            id="selftest",
            floor_count=10,
            capacity=8,
            floor_travel_time=1.0,
            door_operation_time=0.5,
            door_hold_time=2.0,
        )
    )
    car.execute_command(ElevatorCommand("selftest", ElevatorAction.MOVE_UP), 0.0)
    car.step(1.5, 1.5)
    state = car.get_state()
    print(f"   After MOVE_UP: floor {state.current_floor}, direction {state.direction.value}")
    if state.current_floor != 1:
        print("   FAILED: car did not reach floor 1")
        failures += 1

    print("4. Passenger spawner")
    spawner = PassengerSpawner(SpawnerConfig(floor_count=10, spawn_rate=10.0), create_seeded_rng(123))
    passengers = spawner.next_tick(6.0, 0.0)
    print(f"   Spawned {len(passengers)} passengers in 6 seconds")
    if passengers:
        p = passengers[0]
        print(f"   Example: {p.id} from floor {p.start_floor} to {p.destination_floor}")
    if any(p.start_floor == p.destination_floor for p in passengers):
        print("   FAILED: passenger with identical start and destination")
        failures += 1

    print("\nAll component checks passed." if failures == 0 else f"\n{failures} check(s) failed.")
    return 0 if failures == 0 else 1


# =============================================================================
# Entry Point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="liftlab", description="Multi-elevator building simulation")
    parser.add_argument("--log-level", default=None, help="Console log level (default: from LL_LOGGING)")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run a simulation and print a report")
    sim.add_argument("--duration", type=float, default=60.0, help="Simulated seconds")
    sim.add_argument("--floors", type=int, default=10, help="Number of floors")
    sim.add_argument("--elevators", type=int, default=3, help="Number of elevators")
    sim.add_argument("--spawn-rate", type=float, default=6.0, help="Passengers per minute")
    sim.add_argument("--seed", type=int, default=42, help="Random seed")
    sim.add_argument(
        "--pattern",
        default=SpawnPattern.UNIFORM.value,
        choices=[p.value for p in SpawnPattern if p is not SpawnPattern.CUSTOM],
        help="Start-floor pattern",
    )
    sim.add_argument("--algorithm", default="greedy", help="Dispatch algorithm name")
    sim.add_argument("--step", type=float, default=0.1, help="Seconds per tick in headless mode")
    sim.add_argument("--report-every", type=float, default=10.0, help="Status interval (0 disables)")
    sim.add_argument("--realtime", action="store_true", help="Drive ticks from the wall clock")
    sim.add_argument("--speed", type=float, default=1.0, help="Tick rate multiplier for --realtime (0.25-4)")
    sim.add_argument("--csv", default=None, help="Write completed passengers to this CSV file")
    sim.add_argument("--plot", default=None, help="Save a wait/travel histogram to this image")
    sim.add_argument("--timeline", default=None, help="Save a metrics timeline to this image")
    sim.set_defaults(func=cmd_simulate)

    selftest = sub.add_parser("selftest", help="Smoke-check the simulation components")
    selftest.set_defaults(func=cmd_selftest)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        enable_console_logging(level=args.log_level.upper())
    else:
        configure_from_env()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
