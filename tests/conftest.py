"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


def build_raw_output(rows, num_classes):
    """
    Build a [1, 4 + C, N] raw model output.

    Args:
        rows: List of (cx, cy, w, h, class_id, score) per candidate.
        num_classes: Number of classes in the label table.
    """
    out = np.zeros((1, 4 + num_classes, len(rows)), dtype=np.float32)
    for n, (cx, cy, w, h, class_id, score) in enumerate(rows):
        out[0, 0:4, n] = (cx, cy, w, h)
        out[0, 4 + class_id, n] = score
    return out


@pytest.fixture
def raw_output():
    """Factory for synthetic raw model outputs."""
    return build_raw_output


@pytest.fixture
def labels():
    return ["person", "bicycle", "car"]


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
source:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

model:
  path: "models/test.onnx"
  labels_path: "config/labels.yaml"
  input_shape: [1, 640, 640, 3]

suppression:
  max_output_size: 500
  iou_threshold: 0.45
  score_threshold: 0.2

presence:
  key_prefix: "person_"
  absence_mode: "since_last_seen"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "source": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "model": {
            "path": "models/test.onnx",
            "labels_path": "config/labels.yaml",
            "input_shape": [1, 640, 640, 3],
        },
        "suppression": {
            "max_output_size": 500,
            "iou_threshold": 0.45,
            "score_threshold": 0.2,
        },
        "presence": {
            "key_prefix": "person_",
            "identity": "index",
            "absence_mode": "since_last_seen",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
