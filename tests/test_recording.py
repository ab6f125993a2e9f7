"""Unit tests for the recording buffer."""

import threading

import numpy as np
import pytest

from esponquen.recording import RecordingBuffer, RecordingStateError


class TestRecordingBuffer:
    def test_push_while_idle_is_discarded(self):
        buffer = RecordingBuffer()
        buffer.push([1.0, 2.0, 3.0])

        buffer.begin()
        samples, _ = buffer.end()
        assert len(samples) == 0

    def test_end_returns_samples_in_order(self):
        buffer = RecordingBuffer(sample_rate=44100)
        buffer.begin()
        buffer.push([1.0, 2.0])
        buffer.push(np.array([3.0], dtype=np.float64))

        samples, sample_rate = buffer.end()

        assert sample_rate == 44100
        assert samples.dtype == np.float32
        np.testing.assert_array_equal(samples, [1.0, 2.0, 3.0])
        assert not buffer.is_recording

    def test_end_leaves_storage_empty(self):
        buffer = RecordingBuffer()
        buffer.begin()
        buffer.push([0.5] * 10)
        buffer.end()

        buffer.begin()
        samples, _ = buffer.end()
        assert len(samples) == 0

    def test_begin_resets_previous_contents(self):
        buffer = RecordingBuffer()
        buffer.begin()
        buffer.push([0.5] * 10)
        buffer.end()
        buffer.push([0.7] * 3)

        buffer.begin()
        buffer.push([0.1])
        samples, _ = buffer.end()
        np.testing.assert_allclose(samples, [0.1])

    def test_pushed_array_is_copied(self):
        buffer = RecordingBuffer()
        block = np.zeros(4, dtype=np.float32)
        buffer.begin()
        buffer.push(block)
        block[:] = 1.0

        samples, _ = buffer.end()
        np.testing.assert_array_equal(samples, np.zeros(4))

    def test_begin_twice_raises(self):
        buffer = RecordingBuffer()
        buffer.begin()
        with pytest.raises(RecordingStateError):
            buffer.begin()

    def test_end_without_begin_raises(self):
        with pytest.raises(RecordingStateError):
            RecordingBuffer().end()

    def test_lock_is_reentrant_for_begin_and_end(self):
        buffer = RecordingBuffer(sample_rate=8000)
        with buffer.lock:
            assert not buffer.is_recording
            buffer.begin()
        buffer.push([0.25] * 8)

        with buffer.lock:
            assert buffer.is_recording
            samples, sample_rate = buffer.end()
        assert len(samples) == 8
        assert sample_rate == 8000
        assert not buffer.is_recording

    def test_sample_rate_can_be_updated(self):
        buffer = RecordingBuffer()
        buffer.sample_rate = 48000
        buffer.begin()
        _, sample_rate = buffer.end()
        assert sample_rate == 48000

    def test_max_seconds_caps_recording(self, captured_logs):
        buffer = RecordingBuffer(sample_rate=10, max_seconds=1.0)
        buffer.begin()
        buffer.push([0.1] * 7)
        buffer.push([0.2] * 7)
        buffer.push([0.3] * 7)
        assert buffer.is_recording

        samples, _ = buffer.end()
        assert len(samples) == 10
        assert captured_logs.getvalue().count("cap") == 1

    def test_concurrent_pushes_are_not_lost(self):
        buffer = RecordingBuffer()
        buffer.begin()

        def producer():
            for _ in range(200):
                buffer.push([1.0] * 5)

        threads = [threading.Thread(target=producer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        samples, _ = buffer.end()
        assert len(samples) == 4 * 200 * 5
