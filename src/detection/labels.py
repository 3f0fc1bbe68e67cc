"""
Label table loading.

The label table is an ordered list of class names; the decoder's argmax
output indexes into it positionally.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

import yaml


def parse_labels(data) -> List[str]:
    """
    Normalize a parsed label document to an ordered list of names.

    Accepts a plain list, a mapping {index: name}, or a mapping with a
    "names" key holding either of those (YOLO dataset.yaml style).
    """
    if isinstance(data, dict) and "names" in data:
        data = data["names"]
    if isinstance(data, list):
        names = [str(n) for n in data]
    elif isinstance(data, dict):
        indexed = {int(k): str(v) for k, v in data.items()}
        if sorted(indexed) != list(range(len(indexed))):
            raise ValueError("Label indices must be contiguous and start at 0")
        names = [indexed[i] for i in range(len(indexed))]
    else:
        raise ValueError(f"Unsupported label table format: {type(data).__name__}")

    if not names:
        raise ValueError("Label table is empty")
    return names


def load_labels(path: Union[str, Path]) -> List[str]:
    """Load a label table from a YAML or JSON file."""
    path = Path(path)
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    names = parse_labels(data)
    logging.info(f"Loaded {len(names)} labels from {path}")
    return names
