"""
Render sinks: where the frame's final geometry is drawn.
"""

from .base import NullRenderer, RecordingRenderer, RenderSink
from .opencv_renderer import OpenCvRenderer, create_renderer

__all__ = [
    "NullRenderer",
    "RecordingRenderer",
    "RenderSink",
    "OpenCvRenderer",
    "create_renderer",
]
