"""
Period Comparison Service

Signed percentage change between a current and a previous value, applied per
metric name.

Change Rule:
    - previous != 0: (current - previous) / previous * 100
    - previous == 0 and current > 0: 100
    - otherwise: 0

The zero-previous rule never divides by zero and reports "new traffic" as a
flat +100%. Results are not rounded.
"""

from typing import Any, Dict, Iterable, Union

from pydantic import BaseModel


Numeric = Union[int, float]


def calculate_change(current: Numeric, previous: Numeric) -> float:
    """
    Signed percentage change from previous to current.

    Example:
        >>> calculate_change(150, 100)
        50.0
        >>> calculate_change(5, 0)
        100.0
        >>> calculate_change(0, 0)
        0.0
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return ((current - previous) / previous) * 100


def _metric_value(source: Union[BaseModel, Dict[str, Any]], metric: str) -> Numeric:
    if isinstance(source, BaseModel):
        return getattr(source, metric, 0) or 0
    return source.get(metric, 0) or 0


def compare_metrics(
    current: Union[BaseModel, Dict[str, Any]],
    previous: Union[BaseModel, Dict[str, Any]],
    metrics: Iterable[str],
) -> Dict[str, float]:
    """
    Apply calculate_change to each named metric.

    Args:
        current: Current-period values (a model or a plain mapping).
        previous: Previous-period values of the same shape.
        metrics: Metric names to compare. Missing values read as 0.

    Returns:
        Mapping of metric name to percentage change, in the order given.
    """
    return {
        metric: calculate_change(_metric_value(current, metric), _metric_value(previous, metric))
        for metric in metrics
    }
