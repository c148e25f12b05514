"""
Demo jitter fallback.

Used only when an accelerator was explicitly required but could not be
loaded and demo mode is enabled. It does not look at frame content at all:
each call nudges the previous snapshot by a bounded random delta so a
display still shows plausible, moving values. Never mixed with real
measurements.
"""

from dataclasses import replace
from typing import Optional

import numpy as np

from .metrics import Metrics, MetricValues
from .orientation import compute_frontal_score
from .smoothing import clamp_values
from .quality_constants import (
    JITTER_SHARPNESS,
    JITTER_ANGLE_DEG,
    JITTER_TILT_DEG,
    JITTER_BRIGHTNESS,
    JITTER_SHAKE,
    JITTER_DISTANCE_M,
)


class JitterFallback:
    name = "jitter"

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def _delta(self, magnitude: float) -> float:
        return float(self._rng.uniform(-1.0, 1.0)) * magnitude

    def perturb(self, metrics: Metrics) -> Metrics:
        v = metrics.values
        moved = clamp_values(MetricValues(
            sharpness=v.sharpness + self._delta(JITTER_SHARPNESS),
            angle=v.angle + self._delta(JITTER_ANGLE_DEG),
            tilt_vertical=v.tilt_vertical + self._delta(JITTER_TILT_DEG),
            frontal=v.frontal,
            brightness=v.brightness + self._delta(JITTER_BRIGHTNESS),
            shake=v.shake + self._delta(JITTER_SHAKE),
            distance=v.distance + self._delta(JITTER_DISTANCE_M),
        ))
        frontal = compute_frontal_score(moved.angle, moved.tilt_vertical)
        return Metrics.from_values(replace(moved, frontal=frontal))
