"""
Sobel gradient field over a dense luma buffer.

This module handles:
- Horizontal/vertical 3x3 Sobel filtering
- Gradient magnitude for debug output
"""

from dataclasses import dataclass

import cv2
import numpy as np

from .quality_constants import SOBEL_KERNEL_SIZE


@dataclass(frozen=True)
class GradientField:
    """Horizontal and vertical gradients of one frame, same shape as the frame."""

    gx: np.ndarray
    gy: np.ndarray

    @property
    def height(self) -> int:
        return self.gx.shape[0]

    @property
    def width(self) -> int:
        return self.gx.shape[1]

    def magnitude(self) -> np.ndarray:
        return np.sqrt(self.gx ** 2 + self.gy ** 2)


def compute_gradient_field(dense: np.ndarray) -> GradientField:
    """
    Apply a 3x3 Sobel kernel independently in x and y.

    Sobel X responds to vertical edges (left/right intensity changes),
    Sobel Y to horizontal edges (top/bottom intensity changes).

    Args:
        dense: uint8 luma array of shape (height, width)

    Returns:
        GradientField with float64 gx, gy arrays
    """
    grad_x = cv2.Sobel(dense, cv2.CV_64F, 1, 0, ksize=SOBEL_KERNEL_SIZE)
    grad_y = cv2.Sobel(dense, cv2.CV_64F, 0, 1, ksize=SOBEL_KERNEL_SIZE)
    return GradientField(gx=grad_x, gy=grad_y)
