"""
Tests for z-score anomaly detection.

The baseline includes the tested points, so with n points the largest
reachable |z| is sqrt(n - 1). Fixtures use enough points for a single spike
to clear the default threshold.
"""

import math

import numpy as np
import pytest

from pulse.services.anomaly import calculate_baseline_stats, detect_anomalies, z_score


def series(values):
    return [(f"2024-01-{index + 1:02d}", float(value)) for index, value in enumerate(values)]


class TestBaselineStats:

    def test_population_std(self) -> None:
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        mean, std = calculate_baseline_stats(values)

        assert mean == pytest.approx(5.0)
        assert std == pytest.approx(2.0)
        assert std == pytest.approx(float(np.std(values, ddof=0)))

    def test_empty(self) -> None:
        assert calculate_baseline_stats([]) == (0.0, 0.0)

    def test_constant_series_std_is_exactly_zero(self) -> None:
        assert calculate_baseline_stats([0.1] * 30) == (0.1, 0.0)

    def test_zero_std_gives_zero_deviation(self) -> None:
        assert z_score(10.0, 10.0, 0.0) == 0.0


class TestDetectAnomalies:

    def test_single_spike_detected(self) -> None:
        result = detect_anomalies(series([10] * 9 + [50]))

        assert result.hasAnomaly is True
        assert len(result.anomalies) == 1
        spike = result.anomalies[0]
        assert spike.date == "2024-01-10"
        assert spike.value == 50.0
        assert spike.deviation == pytest.approx(3.0)

    def test_six_point_spike(self) -> None:
        """Five days at 10 and one at 50: z = sqrt(5) ~ 2.236."""
        result = detect_anomalies(series([10, 10, 10, 10, 10, 50]), threshold=2.0)

        assert result.hasAnomaly is True
        assert [point.date for point in result.anomalies] == ["2024-01-06"]
        assert result.anomalies[0].deviation == pytest.approx(math.sqrt(5))

    def test_drop_has_negative_deviation(self) -> None:
        result = detect_anomalies(series([100] * 9 + [10]))

        assert result.anomalies[0].deviation < 0

    def test_constant_series_has_no_anomalies(self) -> None:
        result = detect_anomalies(series([42] * 30))

        assert result.hasAnomaly is False
        assert result.anomalies == []

    @pytest.mark.parametrize("value", [0.1, 33.3, 0.7, 42.5])
    @pytest.mark.parametrize("threshold", [0.5, 0.1])
    def test_constant_inexact_floats_have_no_anomalies(self, value: float, threshold: float) -> None:
        """0.1 * 30 does not average back to exactly 0.1; std must still be 0."""
        result = detect_anomalies(series([value] * 30), threshold=threshold)

        assert result.hasAnomaly is False
        assert result.anomalies == []

    def test_empty_series(self) -> None:
        result = detect_anomalies([])

        assert result.hasAnomaly is False
        assert result.anomalies == []

    def test_threshold_is_strict(self) -> None:
        """10 points, one spike: |z| is exactly 3, so threshold 3 flags nothing."""
        values = [10] * 9 + [50]

        assert detect_anomalies(series(values), threshold=3.0).hasAnomaly is False
        assert detect_anomalies(series(values), threshold=2.99).hasAnomaly is True

    def test_short_series_cannot_reach_threshold(self) -> None:
        """Five points: the spike sits at exactly sqrt(4) = 2 standard deviations."""
        result = detect_anomalies(series([10, 10, 10, 10, 50]))

        assert result.hasAnomaly is False
        assert detect_anomalies(series([10, 10, 10, 10, 50]), threshold=1.9).anomalies[0].deviation == pytest.approx(
            math.sqrt(4)
        )

    def test_order_preserved(self) -> None:
        values = [10] * 20 + [80] + [10] * 5 + [90] + [10] * 3
        result = detect_anomalies(series(values))

        assert [point.date for point in result.anomalies] == ["2024-01-21", "2024-01-27"]

    def test_has_anomaly_iff_non_empty(self) -> None:
        for values in ([1, 2, 3], [5] * 10, [10] * 9 + [50]):
            result = detect_anomalies(series(values))
            assert result.hasAnomaly == (len(result.anomalies) > 0)
