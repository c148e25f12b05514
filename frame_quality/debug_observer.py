"""
Debug observer for the frame quality pipeline.

This module provides a non-intrusive way to capture intermediate stages
(luma, gradient magnitude, frame difference, overlay) without the core
pipeline handling any I/O itself.
"""

from pathlib import Path
from typing import Dict, Optional

import cv2
import numpy as np

from .gradients import compute_gradient_field
from .visualization import draw_gradient_visualization, draw_frame_difference

# Larger stages are downsampled before saving
MAX_SAVE_DIMENSION = 1920


class DebugObserver:
    """
    Saves intermediate processing stages into a directory.

    Stages saved repeatedly get a numeric suffix: ``luma.png``,
    ``luma_1.png``, ``luma_2.png`` ...
    """

    def __init__(self, debug_dir: str):
        self.debug_dir = Path(debug_dir)
        self.debug_dir.mkdir(parents=True, exist_ok=True)
        self._stage_counter: Dict[str, int] = {}

    def save_stage(self, name: str, image: np.ndarray) -> Optional[Path]:
        """
        Save an intermediate processing stage image.

        Args:
            name: Stage name (used as filename prefix)
            image: Image to save

        Returns:
            Path written, or None for an empty image
        """
        if image is None or image.size == 0:
            return None

        if name in self._stage_counter:
            self._stage_counter[name] += 1
            filename = f"{name}_{self._stage_counter[name]}.png"
        else:
            self._stage_counter[name] = 0
            filename = f"{name}.png"

        return self._save_with_compression(image, filename)

    def observe_frame(self, dense: np.ndarray, previous: Optional[np.ndarray]) -> None:
        """Save luma, gradient magnitude and frame difference for one frame."""
        self.save_stage("luma", dense)
        self.save_stage("gradient_magnitude",
                        draw_gradient_visualization(compute_gradient_field(dense)))
        self.save_stage("frame_difference", draw_frame_difference(dense, previous))

    def _save_with_compression(self, image: np.ndarray, filename: str) -> Path:
        output_path = self.debug_dir / filename

        h, w = image.shape[:2]
        if max(h, w) > MAX_SAVE_DIMENSION:
            scale = MAX_SAVE_DIMENSION / max(h, w)
            image = cv2.resize(image, (int(w * scale), int(h * scale)),
                               interpolation=cv2.INTER_AREA)

        cv2.imwrite(str(output_path), image, [cv2.IMWRITE_PNG_COMPRESSION, 6])
        return output_path
