"""
Real-time frame quality metrics for single-channel camera streams.
"""

from .luma import RawFrame, InvalidFrame, extract_luma, luma_view
from .frame_statistics import compute_mean_std
from .gradients import GradientField, compute_gradient_field
from .orientation import estimate_dominant_angle, estimate_vertical_tilt, compute_frontal_score
from .motion import compute_frame_difference
from .smoothing import smooth, compute_metric_targets, smooth_metrics
from .classification import QualityFlags, classify, describe_failures
from .metrics import Metrics, MetricValues, FrameMeasurements
from .accelerator import OpenCVAccelerator, NativeAccelerator, load_accelerator
from .fallback import JitterFallback
from .engine import EngineState, MetricsEngine, create_engine, measure_frame

__all__ = [
    "RawFrame",
    "InvalidFrame",
    "extract_luma",
    "luma_view",
    "compute_mean_std",
    "GradientField",
    "compute_gradient_field",
    "estimate_dominant_angle",
    "estimate_vertical_tilt",
    "compute_frontal_score",
    "compute_frame_difference",
    "smooth",
    "compute_metric_targets",
    "smooth_metrics",
    "QualityFlags",
    "classify",
    "describe_failures",
    "Metrics",
    "MetricValues",
    "FrameMeasurements",
    "OpenCVAccelerator",
    "NativeAccelerator",
    "load_accelerator",
    "JitterFallback",
    "EngineState",
    "MetricsEngine",
    "create_engine",
    "measure_frame",
]
