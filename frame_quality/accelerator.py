"""
Optional mean/std accelerators.

An accelerator computes luma mean and standard deviation directly on the
strided capture buffer. It is strictly an optimization: the engine always
keeps the pure numpy path (frame_statistics.compute_mean_std) and falls
back to it whenever an accelerator is absent or reports (0, 0).

Contract shared by every accelerator:
    compute_mean_std(buffer, width, height, row_stride) -> (float32, float32)
    returns (0, 0) instead of raising for any geometry luma.validate_frame
    rejects (missing buffer, non-positive size, stride < width, short buffer).
"""

import ctypes
import logging
from pathlib import Path
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np

from .luma import BufferLike, InvalidFrame, RawFrame, luma_view
from .quality_constants import NATIVE_SYMBOL

logger = logging.getLogger(__name__)

DEGRADED = (np.float32(0.0), np.float32(0.0))


class StatisticsAccelerator(Protocol):
    name: str

    def compute_mean_std(
        self, buffer: BufferLike, width: int, height: int, row_stride: int
    ) -> Tuple[np.float32, np.float32]:
        ...


def _plane_or_none(buffer, width: int, height: int, row_stride: int) -> Optional[np.ndarray]:
    try:
        return luma_view(RawFrame(buffer=buffer, width=width, height=height, row_stride=row_stride))
    except InvalidFrame:
        return None


class OpenCVAccelerator:
    """cv2.meanStdDev over the strided plane, no dense copy."""

    name = "opencv"

    def compute_mean_std(
        self, buffer: BufferLike, width: int, height: int, row_stride: int
    ) -> Tuple[np.float32, np.float32]:
        plane = _plane_or_none(buffer, width, height, row_stride)
        if plane is None:
            return DEGRADED

        mean, std = cv2.meanStdDev(plane)
        return np.float32(mean[0, 0]), np.float32(std[0, 0])


class _NativeResult(ctypes.Structure):
    _fields_ = [("a", ctypes.c_float), ("b", ctypes.c_float)]


class NativeAccelerator:
    """
    Shared library exporting ``Result process_gray(const uint8_t*, int32_t,
    int32_t, int32_t)`` where Result is ``{float a; float b}`` (mean, std).
    """

    name = "native"

    def __init__(self, library_path: str):
        self.library_path = str(library_path)
        self._lib = ctypes.CDLL(self.library_path)
        fn = getattr(self._lib, NATIVE_SYMBOL)
        fn.restype = _NativeResult
        fn.argtypes = [
            ctypes.POINTER(ctypes.c_uint8),
            ctypes.c_int32,
            ctypes.c_int32,
            ctypes.c_int32,
        ]
        self._fn = fn
        logger.info(f"Native accelerator loaded: {self.library_path}")

    def compute_mean_std(
        self, buffer: BufferLike, width: int, height: int, row_stride: int
    ) -> Tuple[np.float32, np.float32]:
        plane = _plane_or_none(buffer, width, height, row_stride)
        if plane is None:
            return DEGRADED

        # Rows are read at ptr + y * row_stride, matching plane.strides[0]
        ptr = plane.ctypes.data_as(ctypes.POINTER(ctypes.c_uint8))
        result = self._fn(ptr, width, height, row_stride)
        return np.float32(result.a), np.float32(result.b)


def load_accelerator(name_or_path: Optional[str]) -> Optional[StatisticsAccelerator]:
    """
    Resolve an accelerator from a name or a shared library path.

    Args:
        name_or_path: "opencv", a path to a native library, or None

    Returns:
        Accelerator instance, or None if not requested or unavailable
    """
    if not name_or_path:
        return None

    if name_or_path == OpenCVAccelerator.name:
        return OpenCVAccelerator()

    path = Path(name_or_path)
    if not path.exists():
        logger.warning(f"Accelerator library not found: {path}, using pure statistics")
        return None

    try:
        return NativeAccelerator(str(path))
    except (OSError, AttributeError) as e:
        logger.warning(f"Failed to load accelerator {path}: {e}, using pure statistics")
        return None
