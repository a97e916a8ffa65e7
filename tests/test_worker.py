"""Tests for :class:`audiospectrum.worker.SpectrumWorker`."""

from __future__ import annotations

import numpy as np
import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from audiospectrum.capture import CaptureBridge  # noqa: E402
from audiospectrum.worker import SpectrumWorker  # noqa: E402

from conftest import FakeBackend  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication([])
    return app


def test_tick_emits_owned_snapshot(qapp, fake_backend) -> None:
    worker = SpectrumWorker(CaptureBridge(backend=fake_backend), frame_size=512)
    received: list[object] = []
    worker.spectrumReady.connect(received.append)

    assert worker.start()
    assert worker.timer.isActive()
    fake_backend.streams[0].callback(np.zeros((512, 1), dtype=np.float32), 512, None, 0)
    worker.tick()

    assert len(received) == 1
    snapshot = received[0]
    assert snapshot.frames == 1
    assert snapshot.raw.flags.writeable

    worker.stop()
    assert not worker.timer.isActive()
    assert fake_backend.streams[0].closed


def test_device_error_is_emitted(qapp) -> None:
    backend = FakeBackend(devices=[])
    worker = SpectrumWorker(CaptureBridge(backend=backend))
    errors: list[str] = []
    worker.errorOccurred.connect(errors.append)

    assert not worker.start()
    assert errors and "No microphone" in errors[0]
    worker.tick()  # no analyzer yet, nothing happens


def test_invalid_options_release_device(qapp, fake_backend) -> None:
    worker = SpectrumWorker(CaptureBridge(backend=fake_backend), frame_size=1000)
    errors: list[str] = []
    worker.errorOccurred.connect(errors.append)

    assert not worker.start()
    assert errors and "power of two" in errors[0]
    assert fake_backend.streams[0].closed
    assert not worker.bridge.running
