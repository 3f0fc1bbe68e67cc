"""
Inference engine interface and the adapter the pipeline calls.

Engines are opaque: a float32 tensor [1, H, W, 3] in, a raw output tensor
[1, 4 + C, N] out. The adapter owns error translation and registers every
tensor it touches with the frame scope so nothing outlives the frame.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Sequence, Tuple

import numpy as np

from detection.preprocess import model_input_size
from models.detection import PreprocessedInput
from models.errors import InferenceError, PipelineError, ResourceExhaustionError


class InferenceEngine(Protocol):
    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        ...

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        ...


class FunctionEngine(InferenceEngine):
    """Wrap a plain callable (tensor -> tensor) as an inference engine."""

    def __init__(self, fn: Callable[[np.ndarray], np.ndarray], input_shape: Sequence[int]):
        if len(input_shape) != 4:
            raise ValueError(f"Expected input shape [1, H, W, 3], got {list(input_shape)}")
        self._fn = fn
        self._input_shape = tuple(int(x) for x in input_shape)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return self._input_shape

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        return self._fn(tensor)


def warm_up(engine: InferenceEngine) -> None:
    """Run one pass on an all-ones tensor so the first real frame is not slow."""
    dummy = np.ones(engine.input_shape, dtype=np.float32)
    result = engine.execute(dummy)
    logging.info(f"Model warm-up done: input={list(dummy.shape)} output={list(np.shape(result))}")
    del dummy, result


class InferenceAdapter:
    """
    Runs the model on a preprocessed frame.

    Backend faults become InferenceError (recoverable, the frame is skipped);
    allocation failures become ResourceExhaustionError (fatal).
    """

    def __init__(self, engine: InferenceEngine):
        self.engine = engine
        shape = tuple(engine.input_shape)
        width, height = model_input_size(shape)
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid model input shape {list(shape)}")
        self._input_shape = shape
        self._model_size = (width, height)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return self._input_shape

    @property
    def model_size(self) -> Tuple[int, int]:
        """Return (model_width, model_height)."""
        return self._model_size

    def run(self, prep: PreprocessedInput, scope=None) -> np.ndarray:
        """
        Execute the model on one frame.

        Returns:
            Raw output tensor [1, 4 + C, N].
        """
        try:
            output = self.engine.execute(prep.tensor)
        except MemoryError as e:
            raise ResourceExhaustionError(f"Out of memory during inference: {e}") from e
        except PipelineError:
            raise
        except Exception as e:
            raise InferenceError(f"Model execution failed: {e}") from e

        if output is None:
            raise InferenceError("Model returned no output")
        output = np.asarray(output)
        if scope is not None:
            scope.track(output)
        return output
