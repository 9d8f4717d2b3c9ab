"""Unit tests for the dispatch algorithm registry."""

from __future__ import annotations

import pytest

from liftlab.algorithms import GreedyAlgorithm, default_registry
from liftlab.algorithms.base import AlgorithmRegistry


class StayPut:
    name = "stay_put"
    description = "Never issues a command"

    def on_tick(self, elevators, waiting_passengers, current_time):
        return []


class TestAlgorithmRegistry:
    def test_register_and_create(self):
        registry = AlgorithmRegistry()
        registry.register("stay_put", StayPut)
        algorithm = registry.create("stay_put")
        assert isinstance(algorithm, StayPut)

    def test_create_returns_fresh_instances(self):
        registry = AlgorithmRegistry()
        registry.register("stay_put", StayPut)
        assert registry.create("stay_put") is not registry.create("stay_put")

    def test_names_are_case_insensitive(self):
        registry = AlgorithmRegistry()
        registry.register("  Stay_Put ", StayPut)
        assert "STAY_PUT" in registry
        assert registry.names() == ["stay_put"]
        assert isinstance(registry.create("Stay_put"), StayPut)

    def test_duplicate_rejected(self):
        registry = AlgorithmRegistry()
        registry.register("stay_put", StayPut)
        with pytest.raises(ValueError, match="already registered"):
            registry.register("stay_put", GreedyAlgorithm)

    def test_replace(self):
        registry = AlgorithmRegistry()
        registry.register("x", StayPut)
        registry.register("x", GreedyAlgorithm, replace=True)
        assert isinstance(registry.create("x"), GreedyAlgorithm)
        assert len(registry) == 1

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            AlgorithmRegistry().register("   ", StayPut)

    def test_unknown_name(self):
        registry = AlgorithmRegistry()
        registry.register("stay_put", StayPut)
        with pytest.raises(KeyError, match="Unknown algorithm"):
            registry.create("elevator_magic")

    def test_contains_non_string(self):
        assert 42 not in AlgorithmRegistry()

    def test_names_sorted(self):
        registry = AlgorithmRegistry()
        registry.register("zeta", StayPut)
        registry.register("alpha", StayPut)
        assert registry.names() == ["alpha", "zeta"]


class TestDefaultRegistry:
    def test_greedy_available(self):
        assert "greedy" in default_registry
        assert isinstance(default_registry.create("greedy"), GreedyAlgorithm)
