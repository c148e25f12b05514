from dataclasses import replace

import pytest

from frame_quality.classification import classify, describe_failures
from frame_quality.metrics import Metrics, MetricValues

GOOD = MetricValues(sharpness=75, angle=1.0, tilt_vertical=-2.0, frontal=92,
                    brightness=55, shake=0.5, distance=1.0)


def test_good_values_are_capture_ready():
    flags = classify(GOOD)
    assert flags.is_capture_ready
    assert describe_failures(flags) == []


def test_initial_snapshot_is_ready():
    assert Metrics.initial().is_capture_ready


@pytest.mark.parametrize("field,value,ok", [
    ("sharpness", 60.0, True),
    ("sharpness", 59.9, False),
    ("angle", -5.0, True),
    ("angle", 5.1, False),
    ("tilt_vertical", 5.0, True),
    ("tilt_vertical", -5.5, False),
    ("frontal", 80.0, True),
    ("frontal", 79.0, False),
    ("brightness", 30.0, True),
    ("brightness", 85.0, True),
    ("brightness", 29.9, False),
    ("brightness", 85.1, False),
    ("shake", 1.5, True),
    ("shake", 1.6, False),
    ("distance", 0.5, True),
    ("distance", 2.0, True),
    ("distance", 0.4, False),
    ("distance", 2.1, False),
])
def test_thresholds(field, value, ok):
    flags = classify(replace(GOOD, **{field: value}))
    assert getattr(flags, f"{field}_ok") is ok
    assert flags.is_capture_ready is ok


def test_describe_failures_names_metrics():
    flags = classify(replace(GOOD, sharpness=10, shake=3))
    assert describe_failures(flags) == ["sharpness", "shake"]


def test_snapshot_to_dict():
    data = Metrics.from_values(GOOD).to_dict()
    assert data["is_capture_ready"] is True
    assert data["values"]["brightness"] == 55
    assert data["flags"]["distance_ok"] is True
