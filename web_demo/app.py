#!/usr/bin/env python3
"""Simple web demo for the frame quality engine.

Clients push luma frames (raw plane bytes or an encoded image) and poll the
latest metrics snapshot as JSON.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from flask import Flask, jsonify, request
from werkzeug.utils import secure_filename

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from frame_quality.classification import describe_failures
from frame_quality.engine import MetricsEngine, create_engine
from frame_quality.luma import InvalidFrame, RawFrame

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}

logger = logging.getLogger(__name__)


def _allowed_file(filename: str) -> bool:
    return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


def _int_param(name: str) -> Optional[int]:
    raw = request.args.get(name, request.form.get(name))
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _timestamp_param() -> Optional[float]:
    raw = request.args.get("timestamp_ms", request.form.get("timestamp_ms"))
    if raw is None or raw == "":
        return None
    try:
        return float(raw) / 1000.0
    except ValueError:
        return None


def _metrics_payload(engine: MetricsEngine, accepted: bool):
    metrics = engine.current_metrics()
    payload = {
        "accepted": accepted,
        "mode": engine.mode,
        "state": engine.state.value,
        "metrics": metrics.to_dict(),
        "failing_metrics": describe_failures(metrics.flags),
    }
    return jsonify(payload)


def create_app(engine: Optional[MetricsEngine] = None) -> Flask:
    app = Flask(__name__)
    app.config["ENGINE"] = engine if engine is not None else create_engine()

    @app.route("/")
    def index():
        return jsonify({
            "message": "Frame quality demo",
            "try": ["GET /api/metrics", "POST /api/frame", "POST /api/image"],
        })

    @app.route("/api/metrics", methods=["GET"])
    def api_metrics():
        return _metrics_payload(app.config["ENGINE"], accepted=False)

    @app.route("/api/frame", methods=["POST"])
    def api_frame():
        engine: MetricsEngine = app.config["ENGINE"]

        buffer = request.get_data()
        width = _int_param("width")
        height = _int_param("height")
        row_stride = _int_param("row_stride")
        if width is None or height is None:
            return jsonify({"success": False, "error": "width and height are required"}), 400
        if row_stride is None:
            row_stride = width

        if not buffer:
            return jsonify({"success": False, "error": "Empty frame body"}), 400

        frame = RawFrame(buffer=buffer, width=width, height=height, row_stride=row_stride)
        try:
            metrics = engine.process_frame(frame, _timestamp_param())
        except InvalidFrame as e:
            logger.warning(f"Rejected frame: {e}")
            return jsonify({"success": False, "error": str(e)}), 400

        return _metrics_payload(engine, accepted=metrics is not None)

    @app.route("/api/image", methods=["POST"])
    def api_image():
        engine: MetricsEngine = app.config["ENGINE"]

        if "image" not in request.files:
            return jsonify({"success": False, "error": "Missing image file"}), 400

        file = request.files["image"]
        if file.filename == "":
            return jsonify({"success": False, "error": "Empty filename"}), 400

        if not _allowed_file(secure_filename(file.filename)):
            return jsonify({"success": False, "error": "Unsupported file type"}), 400

        data = np.frombuffer(file.read(), dtype=np.uint8)
        gray = cv2.imdecode(data, cv2.IMREAD_GRAYSCALE)
        if gray is None:
            return jsonify({"success": False, "error": "Failed to decode image"}), 400

        h, w = gray.shape
        metrics = engine.on_frame(gray, w, h, gray.strides[0], _timestamp_param())
        return _metrics_payload(engine, accepted=metrics is not None)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=8000, debug=True)
