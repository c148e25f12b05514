"""
Metrics overlay rendering.

This module handles:
- Metrics panel (seven metrics, pass/fail colored)
- Capture readiness banner
- Gradient magnitude rendering for debug output
"""

from typing import List, Optional, Tuple

import cv2
import numpy as np

from .gradients import GradientField
from .metrics import Metrics
from .viz_constants import (
    Color,
    FontScale,
    FontThickness,
    Layout,
    create_outlined_text,
    get_scale_factor,
)


def _metric_rows(metrics: Metrics) -> List[Tuple[str, str, bool]]:
    v, f = metrics.values, metrics.flags
    return [
        ("Sharpness", f"{v.sharpness:.0f}%", f.sharpness_ok),
        ("Angle", f"{v.angle:.1f} deg", f.angle_ok),
        ("Tilt", f"{v.tilt_vertical:.1f} deg", f.tilt_vertical_ok),
        ("Frontal", f"{v.frontal:.0f}%", f.frontal_ok),
        ("Brightness", f"{v.brightness:.0f}%", f.brightness_ok),
        ("Shake", f"{v.shake:.2f}", f.shake_ok),
        ("Distance~", f"{v.distance:.2f} m", f.distance_ok),
    ]


def to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def draw_metrics_panel(
    image: np.ndarray,
    metrics: Metrics,
    mode: Optional[str] = None,
) -> np.ndarray:
    """
    Draw the metrics panel onto a copy of the frame.

    Args:
        image: Grayscale or BGR frame
        metrics: Snapshot to render
        mode: Engine mode label; "jitter" adds a demo-mode notice

    Returns:
        Annotated BGR image
    """
    vis = to_bgr(image)
    scale = get_scale_factor(vis.shape[0])

    rows = _metric_rows(metrics)
    x = int(Layout.PANEL_X * scale)
    y = int(Layout.PANEL_Y * scale)
    pad = int(Layout.PANEL_PADDING * scale)
    line_h = int(Layout.LINE_HEIGHT * scale)
    panel_w = int(Layout.PANEL_WIDTH * scale)
    extra_lines = 2 if mode == "jitter" else 1
    panel_h = pad * 2 + line_h * (len(rows) + extra_lines)

    # Semi-transparent background
    overlay = vis.copy()
    cv2.rectangle(overlay, (x, y), (x + panel_w, y + panel_h), Color.PANEL_BACKGROUND, -1)
    cv2.addWeighted(overlay, Layout.PANEL_ALPHA, vis, 1 - Layout.PANEL_ALPHA, 0, vis)

    title_scale = FontScale.TITLE * scale
    body_scale = FontScale.BODY * scale
    body_thickness = max(1, int(FontThickness.BODY * scale))
    title_thickness = max(1, int(FontThickness.TITLE * scale))

    cursor_y = y + pad + line_h
    ready = metrics.is_capture_ready
    create_outlined_text(
        vis,
        "READY" if ready else "NOT READY",
        (x + pad, cursor_y),
        title_scale,
        Color.TEXT_SUCCESS if ready else Color.TEXT_ERROR,
        title_thickness,
    )

    value_x = x + panel_w // 2 + pad
    for label, value, ok in rows:
        cursor_y += line_h
        color = Color.TEXT_SUCCESS if ok else Color.TEXT_ERROR
        create_outlined_text(vis, label, (x + pad, cursor_y), body_scale,
                             Color.TEXT_PRIMARY, body_thickness)
        create_outlined_text(vis, value, (value_x, cursor_y), body_scale,
                             color, body_thickness)

    if mode == "jitter":
        cursor_y += line_h
        create_outlined_text(vis, "DEMO: simulated values", (x + pad, cursor_y),
                             body_scale, Color.TEXT_WARNING, body_thickness)

    return vis


def draw_gradient_visualization(field: GradientField) -> np.ndarray:
    """Gradient magnitude normalized to uint8 for saving as an image."""
    magnitude = field.magnitude()
    peak = float(magnitude.max())
    if peak == 0:
        return np.zeros(magnitude.shape, dtype=np.uint8)
    return np.clip(magnitude / peak * 255.0, 0, 255).astype(np.uint8)


def draw_frame_difference(current: np.ndarray, previous: Optional[np.ndarray]) -> np.ndarray:
    """Absolute difference image; black when there is no comparable previous frame."""
    if previous is None or previous.shape != current.shape:
        return np.zeros(current.shape, dtype=np.uint8)
    return cv2.absdiff(current, previous)
