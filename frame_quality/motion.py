"""
Frame-to-frame motion estimation.
"""

import logging
from typing import Optional

import numpy as np

from .quality_constants import SAMPLE_STEP

logger = logging.getLogger(__name__)


def compute_frame_difference(
    current: np.ndarray,
    previous: Optional[np.ndarray],
    sample_step: int = SAMPLE_STEP,
) -> float:
    """
    Mean absolute intensity difference against the previous frame.

    Only every ``sample_step``-th byte is compared. Without a previous
    frame, or when the frame length (width x height) changed, the result is 0.
    Frames of equal length are compared byte for byte even if their
    dimensions differ.

    Args:
        current: Dense luma of the current frame
        previous: Dense luma of the previous frame, or None
        sample_step: Subsampling stride over the flattened buffers

    Returns:
        Raw shake value (0-255 intensity units)
    """
    if previous is None:
        return 0.0

    if previous.size != current.size:
        logger.debug(f"Frame length changed {previous.size} -> {current.size}, motion reset")
        return 0.0

    cur = current.ravel()[::sample_step].astype(np.int16)
    prev = previous.ravel()[::sample_step].astype(np.int16)

    return float(np.abs(cur - prev).sum()) / cur.size
