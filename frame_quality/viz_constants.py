"""
Shared visualization constants for the metrics overlay and debug output.

This module provides centralized configuration for fonts, colors and
layout used by visualization.py and debug_observer.py.

Example usage:
    from frame_quality.viz_constants import Color, FontScale, FONT_FACE

    cv2.putText(img, "READY", (20, 40), FONT_FACE,
                FontScale.TITLE, Color.TEXT_SUCCESS, 2, cv2.LINE_AA)
"""

import cv2

# ============================================================================
# FONT SETTINGS
# ============================================================================

FONT_FACE = cv2.FONT_HERSHEY_SIMPLEX


class FontScale:
    """Base font scales at the reference frame height."""
    TITLE = 0.8          # Panel title and readiness banner
    BODY = 0.6           # Metric rows


class FontThickness:
    TITLE = 2
    BODY = 1
    OUTLINE_EXTRA = 3    # Added to the main thickness for the outline layer


# ============================================================================
# COLORS (BGR format for OpenCV)
# ============================================================================

class Color:
    WHITE = (255, 255, 255)
    BLACK = (0, 0, 0)
    RED = (0, 0, 255)
    GREEN = (0, 255, 0)
    YELLOW = (0, 255, 255)

    # Semantic colors
    PANEL_BACKGROUND = BLACK
    TEXT_PRIMARY = WHITE
    TEXT_SUCCESS = GREEN    # Metric passes
    TEXT_ERROR = RED        # Metric fails
    TEXT_WARNING = YELLOW   # Demo/degraded mode notice


# ============================================================================
# LAYOUT CONSTANTS
# ============================================================================

class Layout:
    """Panel layout in pixels at the reference frame height."""
    PANEL_X = 16
    PANEL_Y = 16
    PANEL_WIDTH = 260
    PANEL_PADDING = 12
    LINE_HEIGHT = 24
    PANEL_ALPHA = 0.45      # Background opacity

    REFERENCE_HEIGHT = 480  # Frame height the sizes above are tuned for


def get_scale_factor(image_height: int, min_factor: float = 1.0) -> float:
    """Scale factor for fonts and layout relative to Layout.REFERENCE_HEIGHT."""
    return max(image_height / Layout.REFERENCE_HEIGHT, min_factor)


def create_outlined_text(image, text, position, font_scale, color,
                         thickness, outline_color=None):
    """
    Draw text with an outline for visibility on any background.

    Args:
        image: Image to draw on (modified in place)
        text: Text string to draw
        position: (x, y) baseline position
        font_scale: Font scale
        color: Main text color
        thickness: Main text thickness
        outline_color: Outline color (default: Color.BLACK)
    """
    if outline_color is None:
        outline_color = Color.BLACK

    cv2.putText(image, text, position, FONT_FACE, font_scale, outline_color,
                thickness + FontThickness.OUTLINE_EXTRA, cv2.LINE_AA)
    cv2.putText(image, text, position, FONT_FACE, font_scale, color,
                thickness, cv2.LINE_AA)
