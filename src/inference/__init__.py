"""
Inference layer: the opaque model behind a small engine interface.
"""

from .backend import FunctionEngine, InferenceAdapter, InferenceEngine, warm_up
from .opencv_backend import OpenCvDnnConfig, OpenCvDnnEngine

__all__ = [
    "FunctionEngine",
    "InferenceAdapter",
    "InferenceEngine",
    "warm_up",
    "OpenCvDnnConfig",
    "OpenCvDnnEngine",
]
