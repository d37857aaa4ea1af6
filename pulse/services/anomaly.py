"""
Z-Score Anomaly Detection Service

Flags the days of a metric series that sit unusually far from the series mean.

Algorithm:
    1. Baseline: population mean and standard deviation (ddof=0) of every value
    2. Deviation per day: (value - mean) / std, or 0 when std is 0
    3. A day is anomalous when |deviation| > threshold (strictly greater)

The baseline includes the days being tested, so a single spike also inflates
the std it is measured against. With n points the largest reachable |z| is
sqrt(n - 1); short series therefore rarely trip a threshold of 2.

Edge Cases:
    - Empty series: no anomalies
    - Constant series: std is 0, every deviation is 0, no anomalies
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from pulse.models.schemas import AnomalyPoint, AnomalyResult

logger = logging.getLogger(__name__)

# Default |z| a day must exceed to be reported.
DEFAULT_ANOMALY_THRESHOLD: float = 2.0


def calculate_baseline_stats(values: Sequence[float]) -> Tuple[float, float]:
    """
    Population mean and standard deviation of a series.

    Returns:
        (mean, std). (0.0, 0.0) for an empty series.
    """
    if len(values) == 0:
        return (0.0, 0.0)

    values_array = np.array(values, dtype=np.float64)

    # np.mean of a constant series need not equal the value exactly (0.1 * 30),
    # which would leave a tiny non-zero std and z = +/-1 everywhere.
    if np.all(values_array == values_array[0]):
        return (float(values_array[0]), 0.0)

    mean_val = float(np.mean(values_array))
    std_val = float(np.std(values_array))  # Population std (ddof=0)
    return (mean_val, std_val)


def z_score(value: float, mean: float, std: float) -> float:
    """(value - mean) / std, or 0 when std is 0."""
    if std == 0:
        return 0.0
    return (value - mean) / std


def detect_anomalies(
    series: Sequence[Tuple[str, float]],
    threshold: float = DEFAULT_ANOMALY_THRESHOLD,
) -> AnomalyResult:
    """
    Detect anomalous days in a (date, value) series.

    Args:
        series: Daily points in date order.
        threshold: Minimum |z| to exceed, exclusive.

    Returns:
        AnomalyResult with anomalies in input order and hasAnomaly set iff
        any were found.

    Example:
        >>> series = [(f"2024-01-{d:02d}", 10.0) for d in range(1, 10)] + [("2024-01-10", 50.0)]
        >>> result = detect_anomalies(series)
        >>> result.hasAnomaly, result.anomalies[0].date
        (True, '2024-01-10')
    """
    if not series:
        return AnomalyResult(hasAnomaly=False, anomalies=[])

    mean_val, std_val = calculate_baseline_stats([value for _, value in series])

    anomalies: List[AnomalyPoint] = []
    for day, value in series:
        deviation = z_score(value, mean_val, std_val)
        if abs(deviation) > threshold:
            anomalies.append(AnomalyPoint(date=day, value=value, deviation=deviation))

    logger.debug(
        f"Anomaly scan over {len(series)} points (mean={mean_val:.2f}, std={std_val:.2f}, "
        f"threshold={threshold}): {len(anomalies)} flagged"
    )
    return AnomalyResult(hasAnomaly=len(anomalies) > 0, anomalies=anomalies)
