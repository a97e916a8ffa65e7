"""Shared fixtures: a stand-in for the sounddevice module API."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


class FakePortAudioError(Exception):
    pass


class FakeStream:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.callback = kwargs["callback"]
        self.started = False
        self.aborted = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def abort(self) -> None:
        self.aborted = True

    def close(self) -> None:
        self.closed = True


class FakeBackend:
    """Implements the parts of ``sounddevice`` used by ``CaptureBridge``."""

    PortAudioError = FakePortAudioError

    def __init__(self, devices=None, *, reject_settings: bool = False) -> None:
        if devices is None:
            devices = [
                {"name": "Fake Mic", "max_input_channels": 2, "default_samplerate": 48000.0},
                {"name": "Fake Speaker", "max_input_channels": 0, "default_samplerate": 44100.0},
            ]
        self.devices = devices
        self.reject_settings = reject_settings
        self.streams: list[FakeStream] = []

    def query_devices(self, device=None, kind=None):
        if kind is None:
            return list(self.devices)
        inputs = [d for d in self.devices if d["max_input_channels"] > 0]
        if device is None:
            if not inputs:
                raise FakePortAudioError("No input device available")
            return inputs[0]
        if isinstance(device, int) and 0 <= device < len(self.devices):
            return self.devices[device]
        raise ValueError(f"No input device matching {device!r}")

    def check_input_settings(self, **_kwargs) -> None:
        if self.reject_settings:
            raise FakePortAudioError("Invalid sample rate")

    def InputStream(self, **kwargs) -> FakeStream:
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
