"""Labelled numeric datasets with inter-quartile outlier and threshold checks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

log = logging.getLogger(__name__)


class NoValuesError(ValueError):
    """Raised when a median is requested for an empty set of values."""

    def __init__(self) -> None:
        super().__init__("can't calculate median for zero length array")


class TooFewValuesError(ValueError):
    """Raised when there are too few values to calculate quartiles."""

    def __init__(self) -> None:
        super().__init__("can't calculate quartiles for fewer than 3 elements")


def get_median(values: Sequence[float]) -> float:
    """Return the median of values that are already sorted ascending."""
    count = len(values)
    if count == 0:
        raise NoValuesError()

    if count % 2 == 0:
        return (values[(count - 1) // 2] + values[count // 2]) / 2

    return values[count // 2]


@dataclass(frozen=True)
class OutlierResult:
    """Whether a value is an upper or lower outlier in its dataset."""

    upper_outlier: bool = False
    lower_outlier: bool = False


class Dataset(dict):
    """A mapping of labels to float values."""

    def value(self, label: str) -> float:
        """Return the value for a label, or 0.0 if the label is absent."""
        return self.get(label, 0.0)

    def raw_values(self) -> list[float]:
        """Return the values without their labels, sorted ascending."""
        return sorted(self.values())

    def quartiles(self) -> tuple[float, float]:
        """Return the (lower, upper) quartiles using the exclusive method."""
        count = len(self)
        if count < 3:
            raise TooFewValuesError()

        if count % 2 == 0:
            cutoff_lower = cutoff_upper = count // 2
        else:
            # Exclude the median element from both halves.
            cutoff_lower = (count - 1) // 2
            cutoff_upper = cutoff_lower + 1

        values = self.raw_values()
        lower = get_median(values[:cutoff_lower])
        upper = get_median(values[cutoff_upper:])
        return lower, upper

    @staticmethod
    def _iqr_outlier(
        value: float, lower: float, upper: float, multiplier: float
    ) -> OutlierResult:
        distance = (upper - lower) * multiplier
        return OutlierResult(
            upper_outlier=value > upper + distance,
            lower_outlier=value < lower - distance,
        )

    def get_outliers(self, outlier_multiplier: float) -> dict[str, OutlierResult]:
        """Classify every label as an upper, lower or non-outlier.

        Lower multipliers flag more values as outliers. If the dataset is too
        small to compute quartiles, no value is flagged.
        """
        try:
            lower, upper = self.quartiles()
        except TooFewValuesError as err:
            log.debug(
                "could not calculate quartiles: %s, returning an empty set "
                "of outliers", err,
            )
            return {label: OutlierResult() for label in self}

        log.debug(
            "quartiles calculated for: %d items: upper quartile: %s, "
            "lower quartile: %s", len(self), upper, lower,
        )

        return {
            label: self._iqr_outlier(value, lower, upper, outlier_multiplier)
            for label, value in self.items()
        }

    def get_threshold(self, threshold_value: float, below: bool) -> dict[str, bool]:
        """Flag values <= the threshold if below is set, otherwise values > it."""
        log.debug(
            "examining %d items with threshold: %s, looking for <= "
            "threshold: %s", len(self), threshold_value, below,
        )
        if below:
            return {label: value <= threshold_value for label, value in self.items()}
        return {label: value > threshold_value for label, value in self.items()}