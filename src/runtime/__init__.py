"""
Runtime context for detection sessions.
"""

from .context import DetectionSession

__all__ = ["DetectionSession"]
