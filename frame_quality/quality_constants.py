"""
Constants for the frame quality metrics engine.

This module contains all tunable parameters, metric ranges and pass/fail
thresholds used across the per-frame pipeline so they are easy to tune
and maintain in one place.
"""

import os

# =============================================================================
# Sampling Constants
# =============================================================================

# Every Nth element is visited by the orientation and motion scans
SAMPLE_STEP = 4

# Sobel kernel size for the gradient field
SOBEL_KERNEL_SIZE = 3


# =============================================================================
# Raw Measurement Ranges
# =============================================================================

# Luma mean range mapped to brightness percent
BRIGHTNESS_RAW_MIN = 0.0
BRIGHTNESS_RAW_MAX = 255.0

# Luma standard deviation range mapped to sharpness percent
SHARPNESS_RAW_MIN = 0.0
SHARPNESS_RAW_MAX = 64.0

# Mean absolute frame difference range mapped to shake percent
SHAKE_RAW_MIN = 0.0
SHAKE_RAW_MAX = 30.0

# Normalized top/bottom edge-energy imbalance is scaled to degrees
TILT_SCALE_DEG = 30.0


# =============================================================================
# Published Metric Ranges (clamp bounds)
# =============================================================================

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0

ANGLE_MIN_DEG = -45.0
ANGLE_MAX_DEG = 45.0

TILT_MIN_DEG = -30.0
TILT_MAX_DEG = 30.0

SHAKE_MIN = 0.0
SHAKE_MAX = 5.0

# Distance is an inverse-sharpness heuristic, not a measured distance (metres)
DISTANCE_MIN_M = 0.2
DISTANCE_MAX_M = 3.5


# =============================================================================
# Temporal Smoothing Constants
# =============================================================================

ALPHA_BRIGHTNESS = 0.25
ALPHA_SHARPNESS = 0.25
ALPHA_SHAKE = 0.25
ALPHA_ANGLE = 0.20
ALPHA_TILT = 0.20
ALPHA_FRONTAL = 0.20
ALPHA_DISTANCE = 0.20


# =============================================================================
# Pass/Fail Thresholds
# =============================================================================

MIN_SHARPNESS = 60.0
MAX_ABS_ANGLE_DEG = 5.0
MAX_ABS_TILT_DEG = 5.0
MIN_FRONTAL = 80.0
MIN_BRIGHTNESS = 30.0
MAX_BRIGHTNESS = 85.0
MAX_SHAKE = 1.5
MIN_DISTANCE_M = 0.5
MAX_DISTANCE_M = 2.0


# =============================================================================
# Initial Snapshot
# =============================================================================

INITIAL_SHARPNESS = 72.0
INITIAL_ANGLE_DEG = 3.0
INITIAL_TILT_DEG = 0.0
INITIAL_FRONTAL = 95.0
INITIAL_BRIGHTNESS = 64.0
INITIAL_SHAKE = 0.8
INITIAL_DISTANCE_M = 1.2


# =============================================================================
# Throttling Constants
# =============================================================================

# Frames arriving sooner than this after the last processed frame are dropped
MIN_FRAME_INTERVAL_S = 0.120


# =============================================================================
# Demo Jitter Constants (fallback mode only)
# =============================================================================

JITTER_SHARPNESS = 3.0
JITTER_ANGLE_DEG = 1.8
JITTER_TILT_DEG = 1.2
JITTER_BRIGHTNESS = 2.5
JITTER_SHAKE = 0.2
JITTER_DISTANCE_M = 0.06


# =============================================================================
# Accelerator Constants
# =============================================================================

# Either "opencv" or a path to a shared library exporting process_gray
ACCELERATOR = os.getenv("FRAME_QUALITY_ACCELERATOR")

# Exported symbol of the native mean/std library
NATIVE_SYMBOL = "process_gray"
