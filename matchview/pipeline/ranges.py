"""Dual-thumb range controls that edit FilterCriteria bounds.

A proposed edit whose lower thumb would pass the upper thumb is rejected
outright, before any clamping: the control keeps its previous value. Accepted
thumbs are then clamped into the domain and snapped to the step.

Controls may hold values in a different unit than the criteria (the
candidate screen slides over 0-24 months while criteria are in years);
``scale`` is the number of control units per criteria unit. A thumb sitting
on a domain edge maps to "no constraint" rather than an explicit bound.
"""

import logging
import math
from typing import Any

from matchview.core.config import ExperienceControlConfig
from matchview.core.schemas import SCORE_MAX, SCORE_MIN, FilterCriteria

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12.0


class RangeControl:
    """Two-thumb slider value with a no-crossing edit rule.

    Usage::

        control = experience_months_control()
        if control.propose(6, 18):
            criteria = control.apply(criteria, "experience_min", "experience_max")
    """

    def __init__(
        self,
        domain_min: float,
        domain_max: float,
        *,
        step: float = 1.0,
        scale: float = 1.0,
        allow_equal: bool = True,
    ) -> None:
        if domain_min >= domain_max:
            msg = f"empty range domain [{domain_min}, {domain_max}]"
            raise ValueError(msg)
        if step <= 0 or scale <= 0:
            msg = "step and scale must be positive"
            raise ValueError(msg)
        self.domain_min = float(domain_min)
        self.domain_max = float(domain_max)
        self.step = float(step)
        self.scale = float(scale)
        self.allow_equal = allow_equal
        self._low = self.domain_min
        self._high = self.domain_max

    @property
    def value(self) -> tuple[float, float]:
        return self._low, self._high

    @property
    def is_default(self) -> bool:
        return self._low <= self.domain_min and self._high >= self.domain_max

    def propose(self, low: Any, high: Any) -> bool:
        """Try to move both thumbs. Returns False (and changes nothing) on crossing.

        The crossing check runs on the proposed values as given, before any
        clamping or snapping, and again on the snapped result.
        """
        try:
            raw_low, raw_high = float(low), float(high)
            if self._crosses(raw_low, raw_high):
                logger.debug("Rejected crossing range edit (%s, %s)", raw_low, raw_high)
                return False
            new_low = self._snap(self._clamp(raw_low))
            new_high = self._snap(self._clamp(raw_high))
        except (TypeError, ValueError):
            logger.debug("Rejected non-numeric range edit (%r, %r)", low, high)
            return False
        if self._crosses(new_low, new_high):
            logger.debug("Rejected range edit that snaps to (%s, %s)", new_low, new_high)
            return False
        self._low, self._high = new_low, new_high
        return True

    def _crosses(self, low: float, high: float) -> bool:
        return low > high or (not self.allow_equal and low == high)

    def reset(self) -> None:
        self._low, self._high = self.domain_min, self.domain_max

    def bounds(self) -> tuple[float | None, float | None]:
        """Current value in criteria units; domain edges become None."""
        low = None if self._low <= self.domain_min else self._low / self.scale
        high = None if self._high >= self.domain_max else self._high / self.scale
        return low, high

    def apply(self, criteria: FilterCriteria, min_field: str, max_field: str) -> FilterCriteria:
        """Write the current bounds into ``criteria``.

        Unconstrained bounds drop back to the field default instead of being
        stored as explicit values.
        """
        low, high = self.bounds()
        changes: dict[str, float] = {}
        dropped: list[str] = []
        for field, bound in ((min_field, low), (max_field, high)):
            if bound is None:
                dropped.append(field)
            else:
                changes[field] = bound
        return criteria.without(*dropped).with_changes(**changes)

    def seed(self, criteria: FilterCriteria, min_field: str, max_field: str) -> None:
        """Set the thumbs from bounds already present in ``criteria``."""
        low = getattr(criteria, min_field)
        high = getattr(criteria, max_field)
        new_low = self.domain_min if low is None else self._clamp(low * self.scale)
        new_high = self.domain_max if high is None else self._clamp(high * self.scale)
        if new_low > new_high:
            logger.debug("Ignoring crossing bounds in criteria (%s, %s)", low, high)
            self.reset()
            return
        self._low, self._high = new_low, new_high

    def _clamp(self, v: float) -> float:
        if math.isnan(v):
            msg = "NaN range value"
            raise ValueError(msg)
        return max(self.domain_min, min(self.domain_max, v))

    def _snap(self, v: float) -> float:
        steps = round((v - self.domain_min) / self.step)
        return self._clamp(round(self.domain_min + steps * self.step, 10))


def score_control() -> RangeControl:
    """Match score slider, 0-100 %, whole-percent steps."""
    return RangeControl(SCORE_MIN, SCORE_MAX, step=1.0)


def experience_months_control(
    domain_max: float = 24.0,
    step: float = 1.0,
    allow_equal: bool = True,
) -> RangeControl:
    """Experience slider in months; criteria receive years."""
    return RangeControl(0.0, domain_max, step=step, scale=MONTHS_PER_YEAR, allow_equal=allow_equal)


def experience_years_control(
    domain_max: float = 10.0,
    step: float = 0.5,
    allow_equal: bool = True,
) -> RangeControl:
    """Experience slider in years."""
    return RangeControl(0.0, domain_max, step=step, allow_equal=allow_equal)


def experience_control(config: ExperienceControlConfig) -> RangeControl:
    """Build the experience slider a view is configured with."""
    if config.unit == "months":
        return experience_months_control(config.domain_max, config.step, config.allow_equal)
    return experience_years_control(config.domain_max, config.step, config.allow_equal)
