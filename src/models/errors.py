"""
Error taxonomy for the detection pipeline.

Per-frame errors (InvalidFrameError, InferenceError) are recoverable: the
frame driver logs them, skips the frame and keeps the loop alive.
ResourceExhaustionError is fatal and propagates out of the driver.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class InvalidFrameError(PipelineError):
    """The frame is empty or malformed (zero width/height, wrong shape)."""


class InferenceError(PipelineError):
    """The model failed to execute or returned an unusable tensor."""


class ResourceExhaustionError(PipelineError):
    """Buffer allocation failed or the per-frame memory budget was exceeded."""
