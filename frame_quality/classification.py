"""
Threshold classification of smoothed metrics.

Each metric gets a fixed pass/fail rule; capture readiness is the AND of
all seven. There is no hysteresis: flags follow the smoothed values frame
to frame.
"""

from dataclasses import dataclass, fields
from typing import List

from .quality_constants import (
    MIN_SHARPNESS,
    MAX_ABS_ANGLE_DEG,
    MAX_ABS_TILT_DEG,
    MIN_FRONTAL,
    MIN_BRIGHTNESS,
    MAX_BRIGHTNESS,
    MAX_SHAKE,
    MIN_DISTANCE_M,
    MAX_DISTANCE_M,
)


@dataclass(frozen=True)
class QualityFlags:
    sharpness_ok: bool
    angle_ok: bool
    tilt_vertical_ok: bool
    frontal_ok: bool
    brightness_ok: bool
    shake_ok: bool
    distance_ok: bool

    @property
    def is_capture_ready(self) -> bool:
        return all(getattr(self, f.name) for f in fields(self))


def classify(values) -> QualityFlags:
    """
    Map smoothed metric values to pass/fail flags.

    Args:
        values: MetricValues (or any object with the seven metric attributes)

    Returns:
        QualityFlags
    """
    return QualityFlags(
        sharpness_ok=values.sharpness >= MIN_SHARPNESS,
        angle_ok=abs(values.angle) <= MAX_ABS_ANGLE_DEG,
        tilt_vertical_ok=abs(values.tilt_vertical) <= MAX_ABS_TILT_DEG,
        frontal_ok=values.frontal >= MIN_FRONTAL,
        brightness_ok=MIN_BRIGHTNESS <= values.brightness <= MAX_BRIGHTNESS,
        shake_ok=values.shake <= MAX_SHAKE,
        distance_ok=MIN_DISTANCE_M <= values.distance <= MAX_DISTANCE_M,
    )


def describe_failures(flags: QualityFlags) -> List[str]:
    """Names of the metrics that currently fail, e.g. ["sharpness", "shake"]."""
    return [
        f.name[: -len("_ok")]
        for f in fields(flags)
        if not getattr(flags, f.name)
    ]
