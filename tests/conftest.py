from dataclasses import fields

import numpy as np
import pytest

from frame_quality.luma import RawFrame
from frame_quality.quality_constants import (
    PERCENT_MIN, PERCENT_MAX,
    ANGLE_MIN_DEG, ANGLE_MAX_DEG,
    TILT_MIN_DEG, TILT_MAX_DEG,
    SHAKE_MIN, SHAKE_MAX,
    DISTANCE_MIN_M, DISTANCE_MAX_M,
)

RANGES = {
    "sharpness": (PERCENT_MIN, PERCENT_MAX),
    "angle": (ANGLE_MIN_DEG, ANGLE_MAX_DEG),
    "tilt_vertical": (TILT_MIN_DEG, TILT_MAX_DEG),
    "frontal": (PERCENT_MIN, PERCENT_MAX),
    "brightness": (PERCENT_MIN, PERCENT_MAX),
    "shake": (SHAKE_MIN, SHAKE_MAX),
    "distance": (DISTANCE_MIN_M, DISTANCE_MAX_M),
}


def pad_rows(gray: np.ndarray, row_stride: int, fill: int = 0xAB) -> bytes:
    """Encode a 2D image with garbage bytes between rows."""
    h, w = gray.shape
    padded = np.full((h, row_stride), fill, dtype=np.uint8)
    padded[:, :w] = gray
    return padded.tobytes()


def assert_in_range(values) -> None:
    for f in fields(values):
        lo, hi = RANGES[f.name]
        value = getattr(values, f.name)
        assert lo <= value <= hi, f"{f.name}={value} outside [{lo}, {hi}]"


@pytest.fixture
def make_frame():
    def _make(gray: np.ndarray, row_stride=None) -> RawFrame:
        h, w = gray.shape
        if row_stride is None or row_stride == w:
            return RawFrame(buffer=gray.astype(np.uint8).tobytes(), width=w, height=h, row_stride=w)
        return RawFrame(buffer=pad_rows(gray, row_stride), width=w, height=h, row_stride=row_stride)
    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def textured(rng):
    return rng.integers(0, 256, size=(24, 32), dtype=np.uint8)
