import threading

import numpy as np
import pytest

from conftest import assert_in_range
from frame_quality.engine import EngineState, MetricsEngine, measure_frame
from frame_quality.luma import InvalidFrame, RawFrame
from frame_quality.metrics import Metrics, MetricValues


def test_uniform_gray_frame_first_update(make_frame):
    engine = MetricsEngine()
    metrics = engine.process_frame(make_frame(np.full((4, 4), 128, dtype=np.uint8)), 0.0)

    values = metrics.values
    assert values.brightness == pytest.approx(64 + (128 / 255 * 100 - 64) * 0.25)
    assert values.sharpness == pytest.approx(54.0)
    assert values.angle == pytest.approx(2.4)
    assert values.tilt_vertical == pytest.approx(0.0)
    assert values.frontal == pytest.approx(96.0)
    assert values.shake == pytest.approx(0.6)
    assert values.distance == pytest.approx(1.66)
    assert not metrics.flags.sharpness_ok
    assert not metrics.is_capture_ready
    assert engine.current_metrics() is metrics


def test_identical_frames_have_no_shake(make_frame, textured):
    engine = MetricsEngine()
    engine.process_frame(make_frame(textured), 0.0)
    engine.process_frame(make_frame(textured), 0.2)

    assert engine.last_measurements.shake_raw == 0.0


def test_cold_start_then_tracking(make_frame, textured):
    engine = MetricsEngine()
    assert engine.state is EngineState.IDLE

    engine.process_frame(make_frame(textured), 0.0)
    assert engine.last_measurements.shake_raw == 0.0
    assert engine.state is EngineState.TRACKING


def test_resolution_change_resets_motion(make_frame, rng):
    engine = MetricsEngine()
    engine.process_frame(make_frame(rng.integers(0, 256, size=(24, 32), dtype=np.uint8)), 0.0)
    engine.process_frame(make_frame(rng.integers(0, 256, size=(12, 16), dtype=np.uint8)), 0.2)

    assert engine.last_measurements.shake_raw == 0.0
    assert engine.state is EngineState.TRACKING


def test_padded_stride_matches_dense(make_frame, rng):
    frames = [rng.integers(0, 256, size=(24, 30), dtype=np.uint8) for _ in range(3)]
    dense_engine = MetricsEngine()
    padded_engine = MetricsEngine()

    for i, gray in enumerate(frames):
        a = dense_engine.process_frame(make_frame(gray), i * 0.2)
        b = padded_engine.process_frame(make_frame(gray, row_stride=40), i * 0.2)
        assert a == b


@pytest.mark.parametrize("timestamps,expected", [
    ([0.0, 0.05], 1),
    ([0.0, 0.15], 2),
    ([0.0, 0.05, 0.13], 2),
    ([0.0, 0.12, 0.24], 3),
])
def test_throttle(make_frame, textured, timestamps, expected):
    engine = MetricsEngine()
    results = [engine.process_frame(make_frame(textured), ts) for ts in timestamps]

    assert sum(r is not None for r in results) == expected
    assert engine.frames_processed == expected
    assert engine.frames_dropped == len(timestamps) - expected


def test_stream_restart_with_earlier_timestamps(make_frame, textured):
    engine = MetricsEngine()
    frame = make_frame(textured)
    assert engine.process_frame(frame, 1000.0) is not None

    results = [engine.process_frame(frame, 0.2 * i) for i in range(20)]
    assert all(r is not None for r in results)
    assert engine.frames_processed == 21
    assert engine.frames_dropped == 0


def test_throttle_applies_after_restart(make_frame, textured):
    engine = MetricsEngine()
    frame = make_frame(textured)
    engine.process_frame(frame, 1000.0)

    assert engine.process_frame(frame, 0.0) is not None
    assert engine.process_frame(frame, 0.05) is None
    assert engine.process_frame(frame, 0.2) is not None


def test_dropped_frame_keeps_snapshot(make_frame, textured):
    engine = MetricsEngine()
    first = engine.process_frame(make_frame(textured), 0.0)
    assert engine.process_frame(make_frame(np.zeros_like(textured)), 0.01) is None
    assert engine.current_metrics() is first


def test_constant_frame_converges_without_overshoot(make_frame):
    engine = MetricsEngine()
    frame = make_frame(np.full((16, 16), 200, dtype=np.uint8))
    target = 200 / 255 * 100

    previous = engine.current_metrics().values.brightness
    assert previous < target
    for i in range(60):
        brightness = engine.process_frame(frame, i * 0.2).values.brightness
        assert previous <= brightness <= target
        previous = brightness

    assert previous == pytest.approx(target, abs=0.01)
    assert engine.current_metrics().values.sharpness == pytest.approx(0.0, abs=0.01)


def test_metrics_stay_in_range_on_random_stream(make_frame, rng):
    start = MetricValues(sharpness=500, angle=-90, tilt_vertical=90, frontal=-5,
                         brightness=-10, shake=40, distance=0)
    engine = MetricsEngine(initial_metrics=Metrics(values=start, flags=Metrics.initial().flags))
    assert_in_range(engine.current_metrics().values)

    for i in range(40):
        h, w = rng.integers(4, 40, size=2)
        gray = rng.integers(0, 256, size=(h, w), dtype=np.uint8)
        metrics = engine.process_frame(make_frame(gray, row_stride=int(w) + int(rng.integers(0, 8))), i * 0.2)
        assert_in_range(metrics.values)


def test_invalid_frame_keeps_snapshot(textured, make_frame):
    engine = MetricsEngine()
    before = engine.current_metrics()

    bad = RawFrame(buffer=b"\x00" * 10, width=32, height=24, row_stride=32)
    with pytest.raises(InvalidFrame):
        engine.process_frame(bad, 0.0)

    assert engine.current_metrics() is before
    assert engine.state is EngineState.IDLE
    assert engine.frames_invalid == 1


def test_on_frame_discards_invalid_frame():
    engine = MetricsEngine()
    before = engine.current_metrics()

    assert engine.on_frame(b"\x00" * 16, 4, 4, 2, timestamp=0.0) is None
    assert engine.current_metrics() is before
    assert engine.frames_invalid == 1


def test_on_frame_accepts_strided_numpy_plane(textured):
    engine = MetricsEngine()
    metrics = engine.on_frame(textured, textured.shape[1], textured.shape[0],
                              textured.strides[0], timestamp=0.0)
    assert metrics is engine.current_metrics()


def test_on_frame_accepts_non_contiguous_view(textured):
    padded = np.zeros((24, 48), dtype=np.uint8)
    padded[:, :32] = textured
    view = padded[:, :32]

    engine = MetricsEngine()
    assert engine.on_frame(view, 32, 24, view.strides[0], timestamp=0.0) is not None
    assert engine.frames_invalid == 0
    assert engine.last_measurements.mean == pytest.approx(textured.mean())


def test_engines_are_independent(make_frame, textured):
    a = MetricsEngine()
    b = MetricsEngine()
    a.process_frame(make_frame(textured), 0.0)

    assert b.current_metrics() == Metrics.initial()
    assert b.state is EngineState.IDLE


def test_previous_frame_is_not_aliased_to_caller_buffer(textured):
    buffer = bytearray(textured.tobytes())
    engine = MetricsEngine()
    engine.on_frame(buffer, 32, 24, 32, timestamp=0.0)

    buffer[:] = bytes(len(buffer))
    engine.on_frame(textured.tobytes(), 32, 24, 32, timestamp=0.2)
    assert engine.last_measurements.shake_raw == 0.0


def test_concurrent_producers(rng):
    engine = MetricsEngine(min_interval_s=0.0)
    frames = [rng.integers(0, 256, size=(24, 32), dtype=np.uint8) for _ in range(4)]
    errors = []

    def produce(gray):
        try:
            for _ in range(25):
                engine.on_frame(gray.tobytes(), 32, 24, 32)
                assert_in_range(engine.current_metrics().values)
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=produce, args=(g,)) for g in frames]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert engine.frames_processed == 100
    assert engine.frames_dropped == 0


def test_measure_frame_uses_supplied_statistics(textured):
    m = measure_frame(textured, None, statistics=(10.0, 2.0), statistics_source="opencv")
    assert (m.mean, m.stddev, m.statistics_source) == (10.0, 2.0, "opencv")

    m = measure_frame(textured, None)
    assert m.mean == pytest.approx(textured.mean())
    assert m.statistics_source == "pure"
