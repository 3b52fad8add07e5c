"""Change detectors consumed by the causality search.

The search itself never decides whether a measurement changed. It asks a
detector, through one of the protocols below, and only works with the
returned signs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
from scipy import stats

if TYPE_CHECKING:
    from causalpath.data import ExperimentData


@runtime_checkable
class TwoDataChangeDetector(Protocol):
    """Decides whether two data changed in the same (+1) or opposite (-1) direction."""

    def get_change_sign(self, source: ExperimentData, target: ExperimentData) -> int: ...


@runtime_checkable
class CorrelationCapable(Protocol):
    """A two-data detector that can also report the underlying correlation."""

    def calc_correlation(
        self, source: ExperimentData, target: ExperimentData
    ) -> tuple[float, float]: ...


@runtime_checkable
class OneDataChangeDetector(Protocol):
    """Decides the change direction of a single datum."""

    def get_change_sign(self, datum: ExperimentData) -> int: ...


@runtime_checkable
class SignificanceCapable(Protocol):
    """A single-datum detector that exposes the p-value behind its call."""

    def get_p_value(self, datum: ExperimentData) -> float: ...


def _sign(value: float) -> int:
    if math.isnan(value) or value == 0:
        return 0
    return 1 if value > 0 else -1


class ChangeSignDetector:
    """Co-change as the product of the two data's own change signs."""

    def get_change_sign(self, source: ExperimentData, target: ExperimentData) -> int:
        return source.change_sign() * target.change_sign()


@dataclass
class CorrelationDetector:
    """Pearson correlation between the per-sample values of two data.

    Only samples where both values are present are used. The co-change sign is
    the sign of the correlation when its p-value passes ``p_threshold``.
    """

    p_threshold: float = 0.05
    min_samples: int = 3

    def calc_correlation(self, source: ExperimentData, target: ExperimentData) -> tuple[float, float]:
        if source.values is None or target.values is None:
            return math.nan, math.nan

        s_arr = np.asarray(source.values, dtype=float)
        t_arr = np.asarray(target.values, dtype=float)
        if s_arr.shape != t_arr.shape:
            raise ValueError(
                f"Cannot correlate {source.id} and {target.id}: "
                f"{s_arr.shape[0]} vs {t_arr.shape[0]} samples"
            )

        mask = ~(np.isnan(s_arr) | np.isnan(t_arr))
        if mask.sum() < self.min_samples:
            return math.nan, math.nan

        s_valid = s_arr[mask]
        t_valid = t_arr[mask]
        # pearsonr is undefined on constant input
        if np.all(s_valid == s_valid[0]) or np.all(t_valid == t_valid[0]):
            return math.nan, math.nan

        r, p = stats.pearsonr(s_valid, t_valid)
        return float(r), float(p)

    def get_change_sign(self, source: ExperimentData, target: ExperimentData) -> int:
        r, p = self.calc_correlation(source, target)
        if math.isnan(p) or p > self.p_threshold:
            return 0
        return _sign(r)


@dataclass
class SignificanceDetector:
    """Per-datum change calls from precomputed p-values keyed by datum ID."""

    p_values: Mapping[str, float] = field(default_factory=dict)
    threshold: float = 0.05

    def get_p_value(self, datum: ExperimentData) -> float:
        return self.p_values.get(datum.id, math.nan)

    def get_change_sign(self, datum: ExperimentData) -> int:
        p = self.get_p_value(datum)
        if math.isnan(p) or p > self.threshold:
            return 0
        return _sign(datum.change_value)
