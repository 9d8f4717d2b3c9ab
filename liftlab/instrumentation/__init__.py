"""Simulation metrics."""

from liftlab.instrumentation.metrics import SimulationMetrics, compute_metrics

__all__ = [
    "SimulationMetrics",
    "compute_metrics",
]
