"""
Target mapping and temporal smoothing.

This module handles:
- Mapping raw measurements onto bounded metric ranges (targets)
- First-order exponential moving average per metric
- Final clamping so published scalars never leave their ranges

Smoothing is never reset on discontinuities (resolution change, stream
restart); it runs continuously across the whole stream.
"""

from dataclasses import dataclass

from .metrics import FrameMeasurements, MetricValues
from .orientation import compute_frontal_score
from .quality_constants import (
    BRIGHTNESS_RAW_MIN,
    BRIGHTNESS_RAW_MAX,
    SHARPNESS_RAW_MIN,
    SHARPNESS_RAW_MAX,
    SHAKE_RAW_MIN,
    SHAKE_RAW_MAX,
    PERCENT_MIN,
    PERCENT_MAX,
    ANGLE_MIN_DEG,
    ANGLE_MAX_DEG,
    TILT_MIN_DEG,
    TILT_MAX_DEG,
    SHAKE_MIN,
    SHAKE_MAX,
    DISTANCE_MIN_M,
    DISTANCE_MAX_M,
    ALPHA_BRIGHTNESS,
    ALPHA_SHARPNESS,
    ALPHA_SHAKE,
    ALPHA_ANGLE,
    ALPHA_TILT,
    ALPHA_FRONTAL,
    ALPHA_DISTANCE,
)


def clamp(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def map_to_percent(value: float, lo: float, hi: float) -> float:
    """Linearly map ``value`` from [lo, hi] to [0, 100], clamping first."""
    if hi <= lo:
        return 0.0
    return (clamp(value, lo, hi) - lo) / (hi - lo) * PERCENT_MAX


def map_to_range(percent: float, lo: float, hi: float) -> float:
    """Linearly map a [0, 100] percentage onto [lo, hi], clamped."""
    return lo + clamp(percent, PERCENT_MIN, PERCENT_MAX) / PERCENT_MAX * (hi - lo)


def smooth(current: float, target: float, alpha: float) -> float:
    """Single-pole low-pass step: move ``alpha`` of the way toward ``target``."""
    return current + (target - current) * alpha


@dataclass(frozen=True)
class MetricTargets:
    """Per-frame targets the smoothed metrics are pulled toward."""

    sharpness: float
    angle: float
    tilt_vertical: float
    frontal: float
    brightness: float
    shake: float
    distance: float


def compute_metric_targets(measurements: FrameMeasurements) -> MetricTargets:
    """
    Map raw measurements onto bounded target values.

    | metric     | raw input            | mapping                         |
    |------------|----------------------|---------------------------------|
    | brightness | mean in [0, 255]     | -> [0, 100] %                   |
    | sharpness  | stddev in [0, 64]    | -> [0, 100] %                   |
    | angle      | angle_deg            | clamp [-45, 45]                 |
    | tilt       | tilt_deg             | clamp [-30, 30]                 |
    | frontal    | angle, tilt targets  | compute_frontal_score           |
    | shake      | shake_raw in [0, 30] | -> [0, 100] % -> x5/100 [0, 5]  |
    | distance   | 100 - sharpness      | -> [0.2, 3.5] (heuristic only)  |
    """
    brightness = map_to_percent(measurements.mean, BRIGHTNESS_RAW_MIN, BRIGHTNESS_RAW_MAX)
    sharpness = map_to_percent(measurements.stddev, SHARPNESS_RAW_MIN, SHARPNESS_RAW_MAX)

    angle = clamp(measurements.angle_deg, ANGLE_MIN_DEG, ANGLE_MAX_DEG)
    tilt = clamp(measurements.tilt_deg, TILT_MIN_DEG, TILT_MAX_DEG)
    frontal = compute_frontal_score(angle, tilt)

    shake_percent = map_to_percent(measurements.shake_raw, SHAKE_RAW_MIN, SHAKE_RAW_MAX)
    shake = clamp(shake_percent * SHAKE_MAX / PERCENT_MAX, SHAKE_MIN, SHAKE_MAX)

    # Blurrier frame -> subject assumed further away. Not a real distance.
    distance = map_to_range(PERCENT_MAX - sharpness, DISTANCE_MIN_M, DISTANCE_MAX_M)

    return MetricTargets(
        sharpness=sharpness,
        angle=angle,
        tilt_vertical=tilt,
        frontal=frontal,
        brightness=brightness,
        shake=shake,
        distance=distance,
    )


def smooth_metrics(current: MetricValues, targets: MetricTargets) -> MetricValues:
    """Advance every metric one EMA step toward its target and clamp it."""
    return MetricValues(
        sharpness=clamp(smooth(current.sharpness, targets.sharpness, ALPHA_SHARPNESS),
                        PERCENT_MIN, PERCENT_MAX),
        angle=clamp(smooth(current.angle, targets.angle, ALPHA_ANGLE),
                    ANGLE_MIN_DEG, ANGLE_MAX_DEG),
        tilt_vertical=clamp(smooth(current.tilt_vertical, targets.tilt_vertical, ALPHA_TILT),
                            TILT_MIN_DEG, TILT_MAX_DEG),
        frontal=clamp(smooth(current.frontal, targets.frontal, ALPHA_FRONTAL),
                      PERCENT_MIN, PERCENT_MAX),
        brightness=clamp(smooth(current.brightness, targets.brightness, ALPHA_BRIGHTNESS),
                         PERCENT_MIN, PERCENT_MAX),
        shake=clamp(smooth(current.shake, targets.shake, ALPHA_SHAKE),
                    SHAKE_MIN, SHAKE_MAX),
        distance=clamp(smooth(current.distance, targets.distance, ALPHA_DISTANCE),
                       DISTANCE_MIN_M, DISTANCE_MAX_M),
    )


def clamp_values(values: MetricValues) -> MetricValues:
    """Clamp every scalar of ``values`` to its published range."""
    return MetricValues(
        sharpness=clamp(values.sharpness, PERCENT_MIN, PERCENT_MAX),
        angle=clamp(values.angle, ANGLE_MIN_DEG, ANGLE_MAX_DEG),
        tilt_vertical=clamp(values.tilt_vertical, TILT_MIN_DEG, TILT_MAX_DEG),
        frontal=clamp(values.frontal, PERCENT_MIN, PERCENT_MAX),
        brightness=clamp(values.brightness, PERCENT_MIN, PERCENT_MAX),
        shake=clamp(values.shake, SHAKE_MIN, SHAKE_MAX),
        distance=clamp(values.distance, DISTANCE_MIN_M, DISTANCE_MAX_M),
    )
