"""
Shared pytest fixtures for liftlab tests.
"""

import logging
from pathlib import Path

import pytest

from liftlab.core.elevator import ElevatorCar, ElevatorConfig
from liftlab.core.models import Passenger
from liftlab.core.rng import create_seeded_rng


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Root test_output directory, created once per session. Files written here
    are kept after the run so plots and CSVs can be inspected.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Per-test output directory: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture(autouse=True)
def reset_liftlab_logging():
    """Give every test the library default: a lone NullHandler, level NOTSET."""

    def _reset():
        logger = logging.getLogger("liftlab")
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture
def rng():
    return create_seeded_rng(42)


@pytest.fixture
def make_car():
    """Factory for an ElevatorCar with overridable config fields."""

    def _make(initial_floor: int = 0, **overrides) -> ElevatorCar:
        params = dict(id="elevator_0", floor_count=10)
        params.update(overrides)
        return ElevatorCar(ElevatorConfig(**params), initial_floor=initial_floor)

    return _make


@pytest.fixture
def make_passenger():
    counter = iter(range(10_000))

    def _make(start: int, destination: int, request_time: float = 0.0) -> Passenger:
        return Passenger(
            id=f"p{next(counter)}",
            start_floor=start,
            destination_floor=destination,
            request_time=request_time,
        )

    return _make
