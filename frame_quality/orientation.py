"""
Orientation proxies derived from the gradient field.

This module handles:
- Dominant in-plane angle (structure tensor over a subsample)
- Vertical tilt (top/bottom edge-energy imbalance)
- Frontal score combining both

These are heuristic proxies correlated with framing skew and tilt, not
geometric measurements.
"""

import numpy as np

from .gradients import GradientField
from .quality_constants import (
    SAMPLE_STEP,
    TILT_SCALE_DEG,
    ANGLE_MAX_DEG,
    TILT_MAX_DEG,
    PERCENT_MAX,
)


def estimate_dominant_angle(field: GradientField, sample_step: int = SAMPLE_STEP) -> float:
    """
    Estimate the principal orientation of edge structure.

    Accumulates structure tensor sums Sxx, Syy, Sxy over every
    ``sample_step``-th gradient element and returns
    0.5 * atan2(2*Sxy, Sxx - Syy) in degrees.

    Args:
        field: Gradient field of the frame
        sample_step: Subsampling stride over the flattened field

    Returns:
        Angle in degrees, in [-90, 90]; 0 for a field without edges
    """
    gx = field.gx.ravel()[::sample_step]
    gy = field.gy.ravel()[::sample_step]

    sxx = float(np.dot(gx, gx))
    syy = float(np.dot(gy, gy))
    sxy = float(np.dot(gx, gy))

    if sxx + syy == 0:
        return 0.0

    angle_rad = 0.5 * np.arctan2(2.0 * sxy, sxx - syy)
    return float(np.degrees(angle_rad))


def estimate_vertical_tilt(field: GradientField, sample_step: int = SAMPLE_STEP) -> float:
    """
    Estimate vertical tilt from top/bottom edge-energy imbalance.

    Sampled positions with row index < height/2 count toward the top half,
    the rest toward the bottom half. Energy is |gx| + |gy|.

    Args:
        field: Gradient field of the frame
        sample_step: Subsampling stride over the flattened field

    Returns:
        (bottom - top) / (bottom + top) * 30, or 0 when there is no energy
    """
    indices = np.arange(0, field.gx.size, sample_step)
    energy = np.abs(field.gx.ravel()[indices]) + np.abs(field.gy.ravel()[indices])

    rows = indices // field.width
    is_top = rows < field.height / 2.0

    top = float(energy[is_top].sum())
    bottom = float(energy[~is_top].sum())

    total = bottom + top
    if total == 0:
        return 0.0

    imbalance = (bottom - top) / total
    return imbalance * TILT_SCALE_DEG


def compute_frontal_score(angle_deg: float, tilt_deg: float) -> float:
    """Percentage of "facing the camera": 100 when both proxies are 0."""
    normalized = (abs(angle_deg) / ANGLE_MAX_DEG + abs(tilt_deg) / TILT_MAX_DEG) / 2.0
    normalized = min(max(normalized, 0.0), 1.0)
    return (1.0 - normalized) * PERCENT_MAX
