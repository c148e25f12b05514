"""
Metrics engine: per-frame orchestration of the quality pipeline.

Data flow per frame:
    raw plane -> extract_luma -> dense luma
        -> statistics (accelerator or pure)
        -> gradient field -> angle, tilt
        -> frame difference vs. previous dense luma
        -> targets -> EMA smoothing -> thresholds
        -> publish snapshot, keep dense luma as previous

The engine has two states. IDLE: no previous frame (motion is 0).
TRACKING: a previous frame is held. There is no terminal state.

Frames arriving within ``min_interval_s`` of the last processed frame are
dropped without error or snapshot update. A timestamp earlier than the last
processed one means the stream restarted; that frame is always processed.
"""

import enum
import logging
import threading
import time
from typing import Optional, Tuple

import numpy as np

from .accelerator import StatisticsAccelerator, load_accelerator
from .fallback import JitterFallback
from .frame_statistics import compute_mean_std
from .gradients import compute_gradient_field
from .luma import BufferLike, InvalidFrame, RawFrame, extract_luma, take_ownership
from .metrics import FrameMeasurements, Metrics
from .motion import compute_frame_difference
from .orientation import estimate_dominant_angle, estimate_vertical_tilt
from .smoothing import clamp_values, compute_metric_targets, smooth_metrics
from .quality_constants import ACCELERATOR, MIN_FRAME_INTERVAL_S

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    IDLE = "idle"
    TRACKING = "tracking"


def measure_frame(
    dense: np.ndarray,
    previous: Optional[np.ndarray],
    statistics: Optional[Tuple[float, float]] = None,
    statistics_source: str = "pure",
) -> FrameMeasurements:
    """
    Compute raw, unsmoothed measurements for one dense luma frame.

    Args:
        dense: Dense luma of the current frame
        previous: Dense luma of the previous frame, or None (cold start)
        statistics: Precomputed (mean, stddev), e.g. from an accelerator
        statistics_source: Label recorded with the measurements

    Returns:
        FrameMeasurements
    """
    if statistics is None:
        mean, stddev = compute_mean_std(dense)
        statistics_source = "pure"
    else:
        mean, stddev = statistics

    field = compute_gradient_field(dense)
    angle = estimate_dominant_angle(field)
    tilt = estimate_vertical_tilt(field)

    shake_raw = compute_frame_difference(dense, previous)

    return FrameMeasurements(
        mean=float(mean),
        stddev=float(stddev),
        angle_deg=angle,
        tilt_deg=tilt,
        shake_raw=shake_raw,
        statistics_source=statistics_source,
    )


class MetricsEngine:
    """
    Owns the previous dense frame and the current Metrics snapshot.

    One instance per stream. State lives on the instance (never module
    level), so independent engines do not interfere.
    """

    def __init__(
        self,
        initial_metrics: Optional[Metrics] = None,
        accelerator: Optional[StatisticsAccelerator] = None,
        fallback: Optional[JitterFallback] = None,
        min_interval_s: float = MIN_FRAME_INTERVAL_S,
    ):
        if fallback is not None and accelerator is not None:
            raise ValueError("Jitter fallback cannot be combined with an accelerator")

        if initial_metrics is None:
            initial_metrics = Metrics.initial()
        else:
            initial_metrics = Metrics.from_values(clamp_values(initial_metrics.values))

        self.accelerator = accelerator
        self.fallback = fallback
        self.min_interval_s = min_interval_s

        self._lock = threading.Lock()
        self._metrics = initial_metrics
        self._previous: Optional[np.ndarray] = None
        self._last_timestamp: Optional[float] = None
        self._last_measurements: Optional[FrameMeasurements] = None

        self.frames_processed = 0
        self.frames_dropped = 0
        self.frames_invalid = 0

    # -------------------------------------------------------------------------
    # Consumer-facing API
    # -------------------------------------------------------------------------

    def current_metrics(self) -> Metrics:
        """Latest published snapshot. Safe to call from any thread."""
        return self._metrics

    @property
    def state(self) -> EngineState:
        return EngineState.IDLE if self._previous is None else EngineState.TRACKING

    @property
    def last_measurements(self) -> Optional[FrameMeasurements]:
        return self._last_measurements

    @property
    def mode(self) -> str:
        if self.fallback is not None:
            return self.fallback.name
        if self.accelerator is not None:
            return self.accelerator.name
        return "pure"

    # -------------------------------------------------------------------------
    # Capture-facing API
    # -------------------------------------------------------------------------

    def on_frame(
        self,
        buffer: BufferLike,
        width: int,
        height: int,
        row_stride: int,
        timestamp: Optional[float] = None,
    ) -> Optional[Metrics]:
        """
        Frame delivery callback for the capture layer.

        Invalid frames are logged and discarded; the previous snapshot stays
        current. Nothing is raised to the capture layer.

        Returns:
            The newly published snapshot, or None if the frame was dropped
            or invalid
        """
        frame = RawFrame(buffer=buffer, width=width, height=height, row_stride=row_stride)
        try:
            return self.process_frame(frame, timestamp)
        except InvalidFrame as e:
            logger.warning(f"Discarding invalid frame: {e}")
            return None

    def process_frame(self, frame: RawFrame, timestamp: Optional[float] = None) -> Optional[Metrics]:
        """
        Run the full pipeline for one frame and publish a new snapshot.

        Args:
            frame: Raw captured plane
            timestamp: Arrival time in seconds (monotonic clock if None)

        Returns:
            The newly published snapshot, or None if throttled

        Raises:
            InvalidFrame: malformed geometry; no state is changed except the
                throttle timestamp
        """
        if timestamp is None:
            timestamp = time.monotonic()

        with self._lock:
            if self._should_drop(timestamp):
                self.frames_dropped += 1
                return None
            self._last_timestamp = timestamp

            if self.fallback is not None:
                metrics = self.fallback.perturb(self._metrics)
                self._metrics = metrics
                self.frames_processed += 1
                return metrics

            try:
                dense = extract_luma(frame)
            except InvalidFrame:
                self.frames_invalid += 1
                raise

            statistics, source = self._accelerated_statistics(frame)
            measurements = measure_frame(dense, self._previous, statistics, source)

            targets = compute_metric_targets(measurements)
            values = smooth_metrics(self._metrics.values, targets)
            metrics = Metrics.from_values(values)

            # Publish is a single reference swap
            self._metrics = metrics
            self._last_measurements = measurements
            self._previous = take_ownership(dense)
            self.frames_processed += 1

        logger.debug(
            f"Frame {frame.width}x{frame.height}: mean={measurements.mean:.1f} "
            f"std={measurements.stddev:.1f} angle={measurements.angle_deg:.1f} "
            f"tilt={measurements.tilt_deg:.1f} shake={measurements.shake_raw:.2f} "
            f"ready={metrics.is_capture_ready}"
        )
        return metrics

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _should_drop(self, timestamp: float) -> bool:
        if self._last_timestamp is None:
            return False
        delta = timestamp - self._last_timestamp
        if delta < 0:
            # Clock went backwards: the stream restarted, accept the frame
            logger.debug(f"Timestamp moved back by {-delta:.3f}s, treating as stream restart")
            return False
        return delta < self.min_interval_s

    def _accelerated_statistics(
        self, frame: RawFrame
    ) -> Tuple[Optional[Tuple[float, float]], str]:
        if self.accelerator is None:
            return None, "pure"

        try:
            mean, std = self.accelerator.compute_mean_std(
                frame.buffer, frame.width, frame.height, frame.row_stride
            )
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Accelerator {self.accelerator.name} failed: {e}, using pure statistics")
            return None, "pure"

        if mean == 0 and std == 0:
            # Degraded result: recompute on the pure path
            return None, "pure"

        return (float(mean), float(std)), self.accelerator.name


def create_engine(
    accelerator: Optional[str] = ACCELERATOR,
    demo_jitter: bool = False,
    min_interval_s: float = MIN_FRAME_INTERVAL_S,
    initial_metrics: Optional[Metrics] = None,
    seed: Optional[int] = None,
) -> MetricsEngine:
    """
    Build an engine, resolving the requested accelerator.

    Jitter mode is selected only when an accelerator was requested, could
    not be loaded, and ``demo_jitter`` is set. In every other case a missing
    accelerator means the pure statistics path.
    """
    backend = load_accelerator(accelerator)

    fallback = None
    if backend is None and accelerator and demo_jitter:
        logger.warning("Accelerator unavailable, running in demo jitter mode (no real measurements)")
        fallback = JitterFallback(seed=seed)

    engine = MetricsEngine(
        initial_metrics=initial_metrics,
        accelerator=backend,
        fallback=fallback,
        min_interval_s=min_interval_s,
    )
    logger.info(f"Metrics engine ready (mode={engine.mode}, min_interval={min_interval_s * 1000:.0f}ms)")
    return engine
