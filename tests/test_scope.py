"""
Tests for per-frame buffer scopes.
"""

import numpy as np
import pytest

from models.errors import InvalidFrameError, ResourceExhaustionError
from pipeline.scope import FrameScope


class TestFrameScope:
    def test_tracks_and_releases(self):
        with FrameScope() as scope:
            a = scope.track(np.zeros(10, dtype=np.uint8))
            scope.track(np.zeros(20, dtype=np.uint8))
            assert scope.active is True
            assert scope.live_buffers == 2
            assert scope.allocated_bytes == 30
            assert a.shape == (10,)

        assert scope.active is False
        assert scope.live_buffers == 0
        assert scope.allocated_bytes == 0
        assert scope.released_count == 2
        assert scope.peak_bytes == 30

    def test_released_on_error_path(self):
        scope = FrameScope()

        with pytest.raises(InvalidFrameError):
            with scope:
                scope.track(np.zeros(8))
                raise InvalidFrameError("bad frame")

        assert scope.live_buffers == 0

    def test_budget_exceeded(self):
        with pytest.raises(ResourceExhaustionError):
            with FrameScope(budget_bytes=16) as scope:
                scope.track(np.zeros(8, dtype=np.uint8))
                scope.track(np.zeros(16, dtype=np.uint8))

    def test_memory_error_becomes_resource_exhaustion(self):
        with pytest.raises(ResourceExhaustionError):
            with FrameScope():
                raise MemoryError("out of memory")

    def test_release_is_idempotent(self):
        scope = FrameScope()
        scope.track(np.zeros(4))

        scope.release()
        scope.release()

        assert scope.released_count == 1

    def test_none_is_ignored(self):
        scope = FrameScope()

        assert scope.track(None) is None
        assert scope.live_buffers == 0

    def test_live_buffers_return_to_zero_over_many_frames(self):
        scopes = []
        for _ in range(5):
            with FrameScope() as scope:
                scope.track(np.zeros((4, 4)))
            scopes.append(scope)

        assert all(s.live_buffers == 0 for s in scopes)
