"""
Pixel intensity statistics for a dense luma buffer.
"""

from typing import Tuple

import numpy as np


def compute_mean_std(dense: np.ndarray) -> Tuple[float, float]:
    """
    Compute mean and population standard deviation of pixel intensities.

    Accumulation is done in float64 so large frames do not overflow or
    lose precision.

    Args:
        dense: uint8 luma array (any shape, at least one pixel)

    Returns:
        Tuple of (mean, stddev)
    """
    pixels = dense.astype(np.float64, copy=False).ravel()
    n = pixels.size

    mean = pixels.sum() / n
    variance = np.square(pixels - mean).sum() / n

    return float(mean), float(np.sqrt(variance))
