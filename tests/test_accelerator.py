import shutil
import subprocess

import numpy as np
import pytest

from conftest import pad_rows
from frame_quality.accelerator import (
    DEGRADED,
    NativeAccelerator,
    OpenCVAccelerator,
    load_accelerator,
)
from frame_quality.engine import MetricsEngine
from frame_quality.frame_statistics import compute_mean_std


@pytest.mark.parametrize("buffer,width,height,stride", [
    (None, 4, 4, 4),
    (b"\x01" * 16, 0, 4, 4),
    (b"\x01" * 16, 4, -1, 4),
    (b"\x01" * 16, 4, 4, 0),
    (b"\x01" * 16, 4, 4, 2),
    (b"\x01" * 8, 4, 4, 4),
])
def test_opencv_degrades_instead_of_raising(buffer, width, height, stride):
    assert OpenCVAccelerator().compute_mean_std(buffer, width, height, stride) == DEGRADED


def test_opencv_ignores_row_padding(textured):
    buffer = pad_rows(textured, 40, fill=255)
    mean, std = OpenCVAccelerator().compute_mean_std(buffer, 32, 24, 40)
    expected_mean, expected_std = compute_mean_std(textured)

    assert isinstance(mean, np.float32)
    assert float(mean) == pytest.approx(expected_mean, rel=1e-5)
    assert float(std) == pytest.approx(expected_std, rel=1e-5)


def test_load_accelerator_resolution(tmp_path):
    assert load_accelerator(None) is None
    assert load_accelerator("") is None
    assert isinstance(load_accelerator("opencv"), OpenCVAccelerator)
    assert load_accelerator(str(tmp_path / "missing.so")) is None

    garbage = tmp_path / "libgarbage.so"
    garbage.write_bytes(b"not a shared library")
    assert load_accelerator(str(garbage)) is None


def test_engine_records_accelerated_statistics(make_frame, textured):
    engine = MetricsEngine(accelerator=OpenCVAccelerator())
    engine.process_frame(make_frame(textured, row_stride=36), 0.0)

    assert engine.mode == "opencv"
    assert engine.last_measurements.statistics_source == "opencv"
    assert engine.last_measurements.mean == pytest.approx(textured.mean(), rel=1e-5)


def test_black_frame_falls_back_to_pure_statistics(make_frame):
    engine = MetricsEngine(accelerator=OpenCVAccelerator())
    engine.process_frame(make_frame(np.zeros((8, 8), dtype=np.uint8)), 0.0)

    assert engine.last_measurements.statistics_source == "pure"
    assert engine.last_measurements.mean == 0.0


class _BrokenAccelerator:
    name = "broken"

    def compute_mean_std(self, buffer, width, height, row_stride):
        raise OSError("device lost")


def test_failing_accelerator_uses_pure_path(make_frame, textured):
    engine = MetricsEngine(accelerator=_BrokenAccelerator())
    metrics = engine.process_frame(make_frame(textured), 0.0)

    assert metrics is not None
    assert engine.last_measurements.statistics_source == "pure"
    assert engine.last_measurements.mean == pytest.approx(textured.mean())


NATIVE_SOURCE = r"""
#include <math.h>
#include <stdint.h>

typedef struct { float a; float b; } Result;

Result process_gray(const uint8_t* data, int32_t width, int32_t height, int32_t row_stride) {
    Result r = {0.0f, 0.0f};
    if (!data || width <= 0 || height <= 0 || row_stride <= 0) return r;

    double sum = 0.0;
    double n = (double)width * height;
    for (int y = 0; y < height; y++) {
        const uint8_t* row = data + (int64_t)y * row_stride;
        for (int x = 0; x < width; x++) sum += row[x];
    }
    double mean = sum / n;

    double var = 0.0;
    for (int y = 0; y < height; y++) {
        const uint8_t* row = data + (int64_t)y * row_stride;
        for (int x = 0; x < width; x++) {
            double d = row[x] - mean;
            var += d * d;
        }
    }
    r.a = (float)mean;
    r.b = (float)sqrt(var / n);
    return r;
}
"""


@pytest.fixture(scope="module")
def native_library(tmp_path_factory):
    compiler = shutil.which("cc") or shutil.which("gcc")
    if compiler is None:
        pytest.skip("no C compiler available")

    build_dir = tmp_path_factory.mktemp("native")
    source = build_dir / "process_gray.c"
    source.write_text(NATIVE_SOURCE)
    library = build_dir / "libprocess_gray.so"

    result = subprocess.run(
        [compiler, "-shared", "-fPIC", "-O2", "-o", str(library), str(source), "-lm"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        pytest.skip(f"could not build native library: {result.stderr}")
    return library


def test_native_library_is_loaded(native_library):
    accelerator = load_accelerator(str(native_library))
    assert isinstance(accelerator, NativeAccelerator)
    assert accelerator.name == "native"


@pytest.mark.parametrize("stride", [32, 40])
def test_native_matches_pure_statistics(native_library, textured, stride):
    accelerator = NativeAccelerator(str(native_library))
    mean, std = accelerator.compute_mean_std(pad_rows(textured, stride, fill=255), 32, 24, stride)
    expected_mean, expected_std = compute_mean_std(textured)

    assert isinstance(mean, np.float32)
    assert isinstance(std, np.float32)
    assert float(mean) == pytest.approx(expected_mean, rel=1e-5)
    assert float(std) == pytest.approx(expected_std, rel=1e-5)


def test_native_reads_strided_array_in_place(native_library, textured):
    padded = np.full((24, 40), 255, dtype=np.uint8)
    padded[:, :32] = textured
    view = padded[:, :32]

    mean, std = NativeAccelerator(str(native_library)).compute_mean_std(view, 32, 24, 40)
    assert float(mean) == pytest.approx(textured.mean(), rel=1e-5)
    assert float(std) == pytest.approx(textured.std(), rel=1e-5)


def test_engine_records_native_statistics(native_library, make_frame, textured):
    engine = MetricsEngine(accelerator=NativeAccelerator(str(native_library)))
    engine.process_frame(make_frame(textured, row_stride=48), 0.0)

    assert engine.mode == "native"
    assert engine.last_measurements.statistics_source == "native"
    assert engine.last_measurements.mean == pytest.approx(textured.mean(), rel=1e-5)


@pytest.mark.parametrize("buffer,width,height,stride", [
    (None, 4, 4, 4),
    (b"\x01" * 16, 0, 4, 4),
    (b"\x01" * 16, 4, 4, 0),
    (b"\x01" * 16, 4, 4, 2),
    (b"\x01" * 8, 4, 4, 4),
])
def test_native_degrades_without_calling_library(buffer, width, height, stride):
    accelerator = NativeAccelerator.__new__(NativeAccelerator)

    def unexpected_call(*args):
        raise AssertionError("library must not be called for malformed frames")

    accelerator._fn = unexpected_call
    assert accelerator.compute_mean_std(buffer, width, height, stride) == DEGRADED


def test_opencv_reads_strided_array(textured):
    padded = np.zeros((30, 40), dtype=np.uint8)
    padded[:24, :32] = textured

    mean, std = OpenCVAccelerator().compute_mean_std(padded[:, :32], 32, 24, 40)
    assert float(mean) == pytest.approx(textured.mean(), rel=1e-5)
    assert float(std) == pytest.approx(textured.std(), rel=1e-5)
