"""Tests for :class:`audiospectrum.capture.CaptureBridge`."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from audiospectrum.capture import CaptureBridge, HandoffQueue
from audiospectrum.errors import DeviceError

from conftest import FakeBackend


def test_start_uses_default_sample_rate(fake_backend) -> None:
    bridge = CaptureBridge(backend=fake_backend)
    rate, queue = bridge.start()
    assert rate == 48_000
    assert queue is bridge.queue
    stream = fake_backend.streams[0]
    assert stream.started
    assert stream.kwargs["dtype"] == "float32"
    assert stream.kwargs["samplerate"] == 48_000.0
    bridge.stop()


def test_callback_copies_mono_block(fake_backend) -> None:
    bridge = CaptureBridge(backend=fake_backend)
    bridge.start()
    callback = fake_backend.streams[0].callback

    block = np.arange(8, dtype=np.float32).reshape(-1, 1)
    callback(block, 8, None, 0)
    block[:] = -1.0  # PortAudio reuses its buffer
    callback(block, 8, None, 0)

    drained = bridge.queue.drain()
    assert np.array_equal(drained[:8], np.arange(8, dtype=np.float32))
    assert np.array_equal(drained[8:], np.full(8, -1.0, dtype=np.float32))
    assert bridge.queue.drain().size == 0


def test_callback_downmixes_stereo(fake_backend) -> None:
    bridge = CaptureBridge(backend=fake_backend, channels=2)
    bridge.start()
    assert fake_backend.streams[0].kwargs["channels"] == 2
    block = np.array([[1.0, 0.0], [0.5, 0.5], [-1.0, 1.0]], dtype=np.float32)
    fake_backend.streams[0].callback(block, 3, None, 0)
    assert np.allclose(bridge.queue.drain(), [0.5, 0.5, 0.0])


def test_callback_failures_are_counted_and_logged(fake_backend, caplog) -> None:
    bridge = CaptureBridge(backend=fake_backend)
    bridge.start()
    callback = fake_backend.streams[0].callback

    callback(None, 0, None, 0)  # must not raise
    callback(np.zeros((4, 1), dtype=np.float32), 4, None, 1)
    assert bridge.queue.failures == 1
    assert bridge.queue.status_flags == 1

    with caplog.at_level(logging.WARNING, logger="audiospectrum.capture"):
        bridge.queue.drain()
    assert "capture callback" in caplog.text
    assert "status event" in caplog.text

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="audiospectrum.capture"):
        bridge.queue.drain()
    assert caplog.text == ""


def test_no_input_device() -> None:
    backend = FakeBackend(
        devices=[{"name": "Speaker", "max_input_channels": 0, "default_samplerate": 44100.0}]
    )
    with pytest.raises(DeviceError):
        CaptureBridge(backend=backend).start()
    assert backend.streams == []


def test_unknown_device() -> None:
    with pytest.raises(DeviceError):
        CaptureBridge("missing", backend=FakeBackend()).start()


def test_output_only_device_rejected() -> None:
    with pytest.raises(DeviceError):
        CaptureBridge(1, backend=FakeBackend()).start()


def test_unsupported_configuration() -> None:
    backend = FakeBackend(reject_settings=True)
    with pytest.raises(DeviceError):
        CaptureBridge(backend=backend).start()
    assert backend.streams == []


def test_stop_releases_device_once(fake_backend) -> None:
    with CaptureBridge(backend=fake_backend) as bridge:
        assert bridge.running
    stream = fake_backend.streams[0]
    assert stream.aborted and stream.closed
    assert not bridge.running
    bridge.stop()  # idempotent


def test_start_twice_is_an_error(fake_backend) -> None:
    bridge = CaptureBridge(backend=fake_backend)
    bridge.start()
    with pytest.raises(RuntimeError):
        bridge.start()
    bridge.stop()


def test_list_input_devices(fake_backend) -> None:
    assert CaptureBridge(backend=fake_backend).list_input_devices() == [(0, "Fake Mic")]


def test_queue_preserves_order() -> None:
    queue = HandoffQueue()
    queue.push(np.array([1.0, 2.0], dtype=np.float32))
    queue.push(np.array([3.0], dtype=np.float32))
    assert len(queue) == 2
    assert queue.drain().tolist() == [1.0, 2.0, 3.0]
    assert len(queue) == 0
