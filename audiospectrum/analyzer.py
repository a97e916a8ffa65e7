"""
SpectrumAnalyzer: the per-tick analysis step.

The analyzer runs on the host's thread at the host's cadence (once per
rendered frame, typically).  Each :meth:`SpectrumAnalyzer.tick` drains the
handoff queue filled by the capture callback, assembles as many frames as
the backlog allows, transforms them, and folds the latest raw spectrum
into the envelope.  All steps run sequentially; the envelope is only
written inside :meth:`EnvelopeFollower.update`, so a snapshot never shows a
half-updated envelope.

The renderer receives a :class:`SpectrumSnapshot` of read-only views that
are valid until the next tick.  Anything kept longer must be copied with
:meth:`SpectrumSnapshot.copy`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .capture import CaptureBridge, HandoffQueue
from .constants import (
    ENVELOPE_DECAY,
    FRAME_SIZE,
    MAX_DISPLAY_FREQUENCY_HZ,
    STEP_SIZE,
)
from .display import compute_max_bin, frequency_ticks
from .envelope import EnvelopeFollower
from .errors import TransformError
from .frames import FrameAssembler, OverlappingFrameAssembler
from .spectrum import SpectralTransform

LOGGER = logging.getLogger(__name__)


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.setflags(write=False)
    return view


@dataclass(frozen=True)
class SpectrumSnapshot:
    """What the renderer may read for one tick.

    Attributes:
        raw: Latest raw spectrum (``frame_size / 2`` magnitudes).
        envelope: Smoothed spectrum of the same shape.
        max_bin: Number of leading bins inside the display range.
        frames: Frames analysed during this tick.
    """

    raw: np.ndarray
    envelope: np.ndarray
    max_bin: int
    frames: int = 0

    @property
    def visible_raw(self) -> np.ndarray:
        return self.raw[: self.max_bin]

    @property
    def visible_envelope(self) -> np.ndarray:
        return self.envelope[: self.max_bin]

    def copy(self) -> "SpectrumSnapshot":
        """Return a snapshot that owns its arrays."""
        return SpectrumSnapshot(
            raw=self.raw.copy(),
            envelope=self.envelope.copy(),
            max_bin=self.max_bin,
            frames=self.frames,
        )


class SpectrumAnalyzer:
    """Turn queued microphone samples into raw and smoothed spectra.

    Args:
        queue: Handoff queue filled by the capture callback.
        sample_rate: Sample rate of the capture stream in hertz.
        frame_size: Analysis frame length (a power of two).
        decay: Envelope smoothing constant ``K``.
        max_display_frequency_hz: Display ceiling used for ``max_bin``.
        overlap: Use :class:`OverlappingFrameAssembler` (bounded memory,
            drops unread frames) instead of the lossless block-consuming
            :class:`FrameAssembler`.
        step_size: Frame advance for the overlapping policy.
        strict: Re-raise :class:`TransformError` instead of logging and
            skipping the frame.  Useful in development and tests.
    """

    def __init__(
        self,
        queue: HandoffQueue,
        sample_rate: int,
        *,
        frame_size: int = FRAME_SIZE,
        decay: float = ENVELOPE_DECAY,
        max_display_frequency_hz: float = MAX_DISPLAY_FREQUENCY_HZ,
        overlap: bool = False,
        step_size: int = STEP_SIZE,
        strict: bool = False,
    ) -> None:
        self.queue = queue
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.strict = strict
        if overlap:
            self.assembler: FrameAssembler = OverlappingFrameAssembler(
                frame_size, step_size
            )
        else:
            self.assembler = FrameAssembler(frame_size)
        self.transform = SpectralTransform(sample_rate, frame_size)
        self.follower = EnvelopeFollower(frame_size // 2, decay)
        self.max_bin = compute_max_bin(
            sample_rate, frame_size, max_display_frequency_hz
        )
        self.frames_processed = 0
        self.frames_skipped = 0
        self._raw = np.zeros(frame_size // 2, dtype=np.float32)

    @classmethod
    def from_bridge(cls, bridge: CaptureBridge, **kwargs) -> "SpectrumAnalyzer":
        """Start ``bridge`` and build an analyzer reading from it.

        The bridge is stopped again if the analyzer cannot be built.

        Raises:
            DeviceError: Propagated from :meth:`CaptureBridge.start`.
            ValueError: The analyzer options are invalid.
        """
        sample_rate, queue = bridge.start()
        try:
            return cls(queue, sample_rate, **kwargs)
        except BaseException:
            bridge.stop()
            raise

    # -----------------------------------------------------------------
    @property
    def raw(self) -> np.ndarray:
        return _readonly(self._raw)

    @property
    def envelope(self) -> np.ndarray:
        return self.follower.values

    @property
    def frequencies(self) -> np.ndarray:
        """Centre frequency of every bin in hertz."""
        return self.transform.frequencies

    def axis_ticks(self, num_ticks: Optional[int] = None) -> list[tuple[float, float]]:
        """Frequency axis labels matching :attr:`max_bin`."""
        if num_ticks is None:
            return frequency_ticks(self.max_bin, self.sample_rate, self.frame_size)
        return frequency_ticks(self.max_bin, self.sample_rate, self.frame_size, num_ticks)

    def peak_frequency(self) -> float:
        """Frequency of the strongest displayed envelope bin, or ``0.0``."""
        visible = self.follower.values[: self.max_bin]
        idx = int(np.argmax(visible))
        if visible[idx] <= 0.0:
            return 0.0
        return float(self.frequencies[idx])

    # -----------------------------------------------------------------
    def process(self, samples: np.ndarray) -> int:
        """Feed ``samples`` and transform every frame that becomes available.

        Returns the number of frames analysed.
        """
        self.assembler.feed(samples)
        analysed = 0
        for frame in self.assembler.frames():
            try:
                spectrum = self.transform(frame)
            except TransformError:
                if self.strict:
                    raise
                self.frames_skipped += 1
                LOGGER.error("Skipping malformed frame", exc_info=True)
                continue
            self._raw[:] = spectrum
            analysed += 1
        self.frames_processed += analysed
        return analysed

    def tick(self) -> SpectrumSnapshot:
        """Run one analysis step and return the spectra for rendering."""
        analysed = self.process(self.queue.drain())
        self.follower.update(self._raw)
        return SpectrumSnapshot(
            raw=self.raw,
            envelope=self.follower.values,
            max_bin=self.max_bin,
            frames=analysed,
        )


__all__ = ["SpectrumSnapshot", "SpectrumAnalyzer"]
