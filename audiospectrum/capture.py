"""
Capture bridge: move microphone samples off the PortAudio thread.

``CaptureBridge`` owns the ``sounddevice`` input stream.  PortAudio invokes
the stream callback on its own real-time thread, outside our scheduling
control, so the callback does nothing but copy the block (down-mixed to
mono) into a :class:`HandoffQueue`.  The analysis tick drains that queue on
the host's thread.  No other state crosses the two contexts and the stream
object itself never leaves the bridge.

``sounddevice`` is imported lazily in :meth:`CaptureBridge.start` so the
analysis modules remain importable on machines without PortAudio.  A
different backend module exposing the same functions can be injected for
testing.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Optional, Tuple

import numpy as np

from .constants import CHANNELS
from .errors import DeviceError

LOGGER = logging.getLogger(__name__)


class HandoffQueue:
    """Unbounded single-producer/single-consumer FIFO of sample chunks.

    The producer (capture callback) only ever calls :meth:`push`, which is
    a ``deque.append`` and never blocks.  The consumer (analysis tick)
    calls :meth:`drain` to take everything currently available; an empty
    queue yields an empty array immediately.

    Failures inside the callback are not raised.  They are counted in
    ``failures`` (and PortAudio status flags in ``status_flags``) by the
    producer and reported through logging by the consumer, so the
    real-time thread never touches the logging machinery.
    """

    def __init__(self) -> None:
        self._chunks: deque[np.ndarray] = deque()
        self.failures: int = 0
        self.status_flags: int = 0
        self._reported_failures = 0
        self._reported_flags = 0

    def __len__(self) -> int:
        return len(self._chunks)

    def push(self, chunk: np.ndarray) -> None:
        """Append ``chunk`` (producer side)."""
        self._chunks.append(chunk)

    def drain(self) -> np.ndarray:
        """Remove and return every queued sample, oldest first."""
        parts: list[np.ndarray] = []
        while True:
            try:
                parts.append(self._chunks.popleft())
            except IndexError:
                break
        self._report()
        if not parts:
            return np.zeros(0, dtype=np.float32)
        if len(parts) == 1:
            return parts[0]
        return np.concatenate(parts)

    def _report(self) -> None:
        failures = self.failures
        if failures != self._reported_failures:
            LOGGER.warning(
                "Dropped %d sample chunk(s) in the capture callback (%d total)",
                failures - self._reported_failures,
                failures,
            )
            self._reported_failures = failures
        flags = self.status_flags
        if flags != self._reported_flags:
            LOGGER.warning(
                "Input stream reported %d status event(s) such as overflow (%d total)",
                flags - self._reported_flags,
                flags,
            )
            self._reported_flags = flags


class CaptureBridge:
    """Own an input stream and forward its samples into a handoff queue.

    Args:
        device: PortAudio device index or name.  ``None`` selects the
            default input device.
        channels: Number of channels to open.  Blocks with more than one
            channel are averaged down to mono.
        sample_rate: Optional explicit sample rate.  When omitted the
            device's default rate is used.
        backend: Module implementing the ``sounddevice`` API.  Defaults to
            ``sounddevice`` itself, imported on :meth:`start`.

    Once started the stream stays open until :meth:`stop` is called; that
    is the only way to release the device.  The bridge can also be used as
    a context manager.
    """

    def __init__(
        self,
        device: Optional[int | str] = None,
        *,
        channels: int = CHANNELS,
        sample_rate: Optional[float] = None,
        backend: Any = None,
    ) -> None:
        self.device = device
        self.channels = channels
        self.requested_rate = sample_rate
        self._backend = backend
        self.queue = HandoffQueue()
        self.sample_rate: Optional[int] = None
        self.stream: Any = None

    # -----------------------------------------------------------------
    @property
    def backend(self) -> Any:
        if self._backend is None:
            import sounddevice  # type: ignore

            self._backend = sounddevice
        return self._backend

    @property
    def running(self) -> bool:
        return self.stream is not None

    def list_input_devices(self) -> list[tuple[int, str]]:
        """Return ``[(index, name), ...]`` for every device that can record."""
        devices = []
        for idx, dev in enumerate(self.backend.query_devices()):
            if dev["max_input_channels"] > 0:
                devices.append((idx, dev["name"]))
        return devices

    # -----------------------------------------------------------------
    def _callback(self, indata: np.ndarray, frames: int, _time, status) -> None:
        """Copy one block into the queue.  Runs on the PortAudio thread."""
        if status:
            self.queue.status_flags += 1
        try:
            if indata.ndim == 2 and indata.shape[1] > 1:
                samples = indata.mean(axis=1, dtype=np.float32)
            else:
                # sounddevice reuses ``indata`` after we return
                samples = np.array(indata, dtype=np.float32).reshape(-1)
            self.queue.push(samples)
        except Exception:
            self.queue.failures += 1

    def start(self) -> Tuple[int, HandoffQueue]:
        """Open and start the stream.

        Returns:
            Tuple of ``(sample_rate, queue)``.  The sample rate is fixed
            for the lifetime of the stream.

        Raises:
            DeviceError: If no input device exists or the device rejects
                the requested configuration.
            RuntimeError: If the bridge is already running.
        """
        if self.stream is not None:
            raise RuntimeError("capture stream already started")

        sd = self.backend
        errors = (ValueError, sd.PortAudioError)
        try:
            info = sd.query_devices(self.device, kind="input")
        except errors as exc:
            raise DeviceError(f"No microphone found: {exc}") from exc
        if not info or info.get("max_input_channels", 0) < 1:
            raise DeviceError(f"Device {self.device!r} has no input channels")

        rate = self.requested_rate or info["default_samplerate"]
        channels = min(self.channels, int(info["max_input_channels"]))
        try:
            sd.check_input_settings(
                device=self.device,
                channels=channels,
                dtype="float32",
                samplerate=rate,
            )
            stream = sd.InputStream(
                device=self.device,
                channels=channels,
                samplerate=rate,
                dtype="float32",
                callback=self._callback,
            )
        except errors as exc:
            raise DeviceError(f"No supported input configuration: {exc}") from exc
        try:
            stream.start()
        except errors as exc:
            stream.close()
            raise DeviceError(f"Could not start input stream: {exc}") from exc

        self.stream = stream
        self.sample_rate = int(rate)
        LOGGER.info(
            "Capturing from %s at %d Hz (%d channel(s))",
            info.get("name", self.device),
            self.sample_rate,
            channels,
        )
        return self.sample_rate, self.queue

    def stop(self) -> None:
        """Stop the stream and release the device.  Safe to call twice."""
        stream, self.stream = self.stream, None
        if stream is None:
            return
        try:
            stream.abort()
        finally:
            stream.close()
        LOGGER.info("Capture stream closed")

    def __enter__(self) -> "CaptureBridge":
        self.start()
        return self

    def __exit__(self, *_exc) -> None:
        self.stop()


__all__ = ["HandoffQueue", "CaptureBridge"]
