"""Dispatch algorithms.

``default_registry`` knows every built-in algorithm by name::

    algorithm = default_registry.create("greedy")
"""

from liftlab.algorithms.base import AlgorithmFactory, AlgorithmRegistry, DispatchAlgorithm
from liftlab.algorithms.greedy import GreedyAlgorithm

default_registry = AlgorithmRegistry()
default_registry.register("greedy", GreedyAlgorithm)

__all__ = [
    "AlgorithmFactory",
    "AlgorithmRegistry",
    "DispatchAlgorithm",
    "GreedyAlgorithm",
    "default_registry",
]
