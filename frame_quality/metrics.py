"""
Published metric snapshot and per-frame raw measurements.

A Metrics snapshot is immutable: the engine replaces it as a whole on each
processed frame, so consumers never see a partially updated value.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from .classification import QualityFlags, classify
from .quality_constants import (
    INITIAL_SHARPNESS,
    INITIAL_ANGLE_DEG,
    INITIAL_TILT_DEG,
    INITIAL_FRONTAL,
    INITIAL_BRIGHTNESS,
    INITIAL_SHAKE,
    INITIAL_DISTANCE_M,
)


@dataclass(frozen=True)
class MetricValues:
    """
    The seven smoothed scalars.

    - sharpness: percent [0, 100]
    - angle: degrees [-45, 45]
    - tilt_vertical: degrees [-30, 30]
    - frontal: percent [0, 100]
    - brightness: percent [0, 100]
    - shake: [0, 5]
    - distance: metres [0.2, 3.5], approximate (derived from sharpness only)
    """

    sharpness: float
    angle: float
    tilt_vertical: float
    frontal: float
    brightness: float
    shake: float
    distance: float


@dataclass(frozen=True)
class Metrics:
    values: MetricValues
    flags: QualityFlags

    @classmethod
    def from_values(cls, values: MetricValues) -> "Metrics":
        return cls(values=values, flags=classify(values))

    @classmethod
    def initial(cls) -> "Metrics":
        return cls.from_values(MetricValues(
            sharpness=INITIAL_SHARPNESS,
            angle=INITIAL_ANGLE_DEG,
            tilt_vertical=INITIAL_TILT_DEG,
            frontal=INITIAL_FRONTAL,
            brightness=INITIAL_BRIGHTNESS,
            shake=INITIAL_SHAKE,
            distance=INITIAL_DISTANCE_M,
        ))

    @property
    def is_capture_ready(self) -> bool:
        return self.flags.is_capture_ready

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": {k: round(v, 4) for k, v in asdict(self.values).items()},
            "flags": asdict(self.flags),
            "is_capture_ready": self.is_capture_ready,
        }


@dataclass(frozen=True)
class FrameMeasurements:
    """Raw, unsmoothed measurements of a single frame."""

    mean: float
    stddev: float
    angle_deg: float
    tilt_deg: float
    shake_raw: float
    statistics_source: str = "pure"
