"""
Tests for the inference adapter and engines.
"""

import numpy as np
import pytest

from inference.backend import FunctionEngine, InferenceAdapter, warm_up
from inference.opencv_backend import OpenCvDnnConfig, OpenCvDnnEngine
from models.detection import PreprocessedInput
from models.errors import InferenceError, ResourceExhaustionError
from pipeline.scope import FrameScope


def _prep(h=32, w=32):
    return PreprocessedInput(
        tensor=np.zeros((1, h, w, 3), dtype=np.float32),
        x_ratio=1.0,
        y_ratio=1.0,
        padded_size=w,
        source_size=(w, h),
    )


class TestInferenceAdapter:
    def test_model_size_from_input_shape(self):
        engine = FunctionEngine(lambda t: t, input_shape=(1, 480, 640, 3))

        adapter = InferenceAdapter(engine)

        assert adapter.model_size == (640, 480)

    @pytest.mark.parametrize("shape", [(640, 640), (1, 0, 640, 3), (1, 640, 0, 3)])
    def test_rejects_unusable_input_shape(self, shape):
        class FixedShapeEngine:
            input_shape = shape

            def execute(self, tensor):
                return tensor

        with pytest.raises(ValueError):
            InferenceAdapter(FixedShapeEngine())

    def test_run_returns_output_and_tracks_it(self):
        expected = np.ones((1, 5, 3), dtype=np.float32)
        adapter = InferenceAdapter(FunctionEngine(lambda t: expected, input_shape=(1, 32, 32, 3)))

        with FrameScope() as scope:
            output = adapter.run(_prep(), scope=scope)
            assert scope.live_buffers == 1

        assert np.array_equal(output, expected)

    def test_backend_fault_becomes_inference_error(self):
        def broken(tensor):
            raise RuntimeError("device lost")

        adapter = InferenceAdapter(FunctionEngine(broken, input_shape=(1, 32, 32, 3)))

        with pytest.raises(InferenceError):
            adapter.run(_prep())

    def test_memory_error_is_fatal(self):
        def oom(tensor):
            raise MemoryError("no memory")

        adapter = InferenceAdapter(FunctionEngine(oom, input_shape=(1, 32, 32, 3)))

        with pytest.raises(ResourceExhaustionError):
            adapter.run(_prep())

    def test_no_output(self):
        adapter = InferenceAdapter(FunctionEngine(lambda t: None, input_shape=(1, 32, 32, 3)))

        with pytest.raises(InferenceError):
            adapter.run(_prep())

    def test_invalid_input_shape(self):
        with pytest.raises(ValueError):
            FunctionEngine(lambda t: t, input_shape=(640, 640))


class TestWarmUp:
    def test_runs_on_ones(self):
        seen = []

        def record(tensor):
            seen.append(tensor.copy())
            return np.zeros((1, 5, 1), dtype=np.float32)

        warm_up(FunctionEngine(record, input_shape=(1, 8, 8, 3)))

        assert len(seen) == 1
        assert seen[0].shape == (1, 8, 8, 3)
        assert np.all(seen[0] == 1.0)


class TestOpenCvDnnEngine:
    def test_missing_model_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            OpenCvDnnEngine(OpenCvDnnConfig(model_path=str(tmp_path / "missing.onnx")))

    def test_invalid_layout(self, tmp_path):
        with pytest.raises(ValueError):
            OpenCvDnnEngine(OpenCvDnnConfig(model_path="x.onnx", input_layout="chw"))

    def test_corrupt_model_file(self, tmp_path):
        model = tmp_path / "broken.onnx"
        model.write_bytes(b"not a model")

        with pytest.raises(InferenceError):
            OpenCvDnnEngine(OpenCvDnnConfig(model_path=str(model), warmup=False))
