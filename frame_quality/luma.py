"""
Luma plane extraction.

This module handles:
- Raw captured plane description (buffer + geometry)
- Geometry validation
- Stripping row padding into a dense width x height buffer
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray]


class InvalidFrame(ValueError):
    """Raised when a captured frame has malformed geometry."""


@dataclass(frozen=True)
class RawFrame:
    """
    Single-channel plane as delivered by the capture layer.

    Bytes between the end of a row (``width``) and the start of the next
    (``row_stride``) are padding and carry no image data.
    """

    buffer: BufferLike
    width: int
    height: int
    row_stride: int

    @classmethod
    def from_array(cls, gray: np.ndarray) -> "RawFrame":
        """Wrap a 2D uint8 image, keeping its row stride."""
        if gray.ndim != 2:
            raise InvalidFrame(f"Expected a 2D luma image, got shape {gray.shape}")
        height, width = gray.shape
        if gray.dtype != np.uint8:
            gray = gray.astype(np.uint8)
        return cls(buffer=gray.tobytes(), width=width, height=height, row_stride=width)


def _buffer_length(buffer: BufferLike) -> int:
    return memoryview(buffer).nbytes


def _strided_array(buffer: BufferLike) -> Optional[np.ndarray]:
    """A non-contiguous ndarray is taken as a 2D plane, not as a byte buffer."""
    if isinstance(buffer, np.ndarray) and not buffer.flags.c_contiguous:
        return buffer
    return None


def validate_frame(frame: RawFrame) -> None:
    """
    Check frame geometry against its buffer.

    Raises:
        InvalidFrame: non-positive dimensions, stride < width, a buffer
            shorter than ``row_stride * height``, or a non-contiguous array
            whose layout does not match the declared geometry
    """
    if frame.buffer is None:
        raise InvalidFrame("Frame buffer is missing")
    if frame.width <= 0 or frame.height <= 0:
        raise InvalidFrame(f"Invalid frame size: {frame.width}x{frame.height}")
    if frame.row_stride < frame.width:
        raise InvalidFrame(
            f"Row stride {frame.row_stride} is smaller than width {frame.width}"
        )

    plane = _strided_array(frame.buffer)
    if plane is not None:
        if plane.ndim != 2 or plane.dtype != np.uint8:
            raise InvalidFrame(
                f"Strided array must be 2D uint8, got {plane.ndim}D {plane.dtype}"
            )
        if plane.strides != (frame.row_stride, 1):
            raise InvalidFrame(
                f"Array strides {plane.strides} do not match row stride {frame.row_stride}"
            )
        if plane.shape[0] < frame.height or plane.shape[1] < frame.width:
            raise InvalidFrame(
                f"Array shape {plane.shape} is smaller than {frame.height}x{frame.width}"
            )
        return

    required = frame.row_stride * frame.height
    available = _buffer_length(frame.buffer)
    if available < required:
        raise InvalidFrame(
            f"Buffer too short: {available} bytes, need {required} "
            f"({frame.row_stride}x{frame.height})"
        )


def luma_view(frame: RawFrame) -> np.ndarray:
    """
    View the frame's pixels as a (height, width) uint8 array without copying.

    Row padding is excluded from the view but stays in memory, so
    ``view.strides[0] == frame.row_stride``.

    Raises:
        InvalidFrame: if the frame geometry is malformed
    """
    validate_frame(frame)

    w, h, stride = frame.width, frame.height, frame.row_stride
    plane = _strided_array(frame.buffer)
    if plane is not None:
        return plane[:h, :w]

    flat = np.frombuffer(frame.buffer, dtype=np.uint8, count=stride * h)
    return flat.reshape(h, stride)[:, :w]


def extract_luma(frame: RawFrame) -> np.ndarray:
    """
    Extract a dense luma buffer from a captured plane.

    When the stride equals the width the returned array is a view over the
    caller's buffer (no copy). Otherwise each row's first ``width`` bytes are
    copied into a new contiguous buffer.

    Args:
        frame: Raw captured plane

    Returns:
        uint8 array of shape (height, width), C-contiguous

    Raises:
        InvalidFrame: if the frame geometry is malformed
    """
    view = luma_view(frame)
    if view.flags.c_contiguous:
        return view
    return np.ascontiguousarray(view)


def take_ownership(dense: np.ndarray) -> np.ndarray:
    """Return ``dense`` if it owns its memory, otherwise an owned copy."""
    if dense.base is None and dense.flags.writeable:
        return dense
    return dense.copy()
