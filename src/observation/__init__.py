"""
Observation layer for pluggable video/image sources.

This layer abstracts the source of frames (camera, video file, stream,
still image) from the frame driver. Each source implements the
ObservationSource interface and returns FrameData objects.
"""

from typing import Any, Dict, Optional

from .base import ObservationSource, ObservationConfig
from .image_source import ImageSource, ImageSourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(
    source_cfg: Dict[str, Any],
    source_id: str = "main-source",
    image_path: Optional[str] = None,
) -> ObservationSource:
    """
    Build an observation source from the `source` config section.

    Args:
        source_cfg: Source configuration dict.
        source_id: Identifier for the source.
        image_path: Force still-image mode for this path.
    """
    backend = source_cfg.get("backend", "opencv")
    path = image_path or source_cfg.get("image_path")
    if image_path or backend == "image":
        return ImageSource(ImageSourceConfig(source_id=source_id, path=path or ""))
    if backend == "opencv":
        return OpenCVSource(OpenCVSourceConfig.from_source_config(source_cfg, source_id=source_id))
    raise ValueError(f"Unknown source backend: {backend!r}")


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "ImageSource",
    "ImageSourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
