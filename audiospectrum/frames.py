"""Frame assembly: turn a stream of samples into windowed analysis frames.

Two assembly policies are provided and a pipeline uses exactly one:

* :class:`FrameAssembler` is block-consuming.  Frames advance by a full
  ``frame_size`` and no sample is ever discarded.  If analysis falls
  behind capture the backlog grows without bound, so it is only correct
  while analysis is cheaper than capture.  This is the default.
* :class:`OverlappingFrameAssembler` advances by ``step_size`` and keeps
  at most one finished frame.  When a new frame is ready before the
  consumer took the previous one, the previous frame is dropped.  Memory
  stays bounded and temporal resolution is lost when the display cannot
  keep pace.

Both apply a Hann window before handing a frame out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

import numpy as np
from scipy.signal import windows

from .constants import FRAME_SIZE, STEP_SIZE

LOGGER = logging.getLogger(__name__)


def is_power_of_two(n: int) -> bool:
    return n >= 2 and (n & (n - 1)) == 0


@lru_cache(maxsize=8)
def hann_window(frame_size: int = FRAME_SIZE) -> np.ndarray:
    """Return the symmetric Hann window ``0.5 * (1 - cos(2*pi*i / (N - 1)))``.

    The array is cached and marked read-only.
    """
    window = windows.hann(frame_size, sym=True).astype(np.float32)
    window.setflags(write=False)
    return window


@dataclass(frozen=True)
class AnalysisFrame:
    """One frame of consecutive samples and its windowed copy.

    Attributes:
        samples: The raw samples, in stream order.
        windowed: ``samples`` multiplied by ``window``.
        window: Window coefficients applied to the samples.
    """

    samples: np.ndarray
    windowed: np.ndarray
    window: np.ndarray

    def __len__(self) -> int:
        return len(self.samples)


def _make_frame(samples: np.ndarray, window: np.ndarray) -> AnalysisFrame:
    windowed = np.empty_like(samples)
    np.multiply(samples, window, out=windowed)
    return AnalysisFrame(samples=samples, windowed=windowed, window=window)


def _validate_frame_size(frame_size: int) -> None:
    if not is_power_of_two(frame_size):
        raise ValueError(f"frame_size must be a power of two, got {frame_size}")


class FrameAssembler:
    """Block-consuming assembler: every sample lands in exactly one frame.

    Parameters
    ----------
    frame_size:
        Number of samples per frame (a power of two).
    """

    def __init__(self, frame_size: int = FRAME_SIZE) -> None:
        _validate_frame_size(frame_size)
        self.frame_size = frame_size
        self.window = hann_window(frame_size)
        self._backlog = np.zeros(0, dtype=np.float32)

    @property
    def backlog(self) -> int:
        """Number of samples waiting for a complete frame."""
        return int(self._backlog.size)

    def feed(self, new_samples: Sequence[float] | np.ndarray) -> None:
        """Append ``new_samples`` to the backlog."""
        chunk = np.asarray(new_samples, dtype=np.float32).reshape(-1)
        if chunk.size == 0:
            return
        if self._backlog.size == 0:
            self._backlog = chunk.copy()
        else:
            self._backlog = np.concatenate((self._backlog, chunk))

    def try_take_frame(self) -> Optional[AnalysisFrame]:
        """Remove the oldest ``frame_size`` samples as a windowed frame.

        Returns ``None`` if not enough samples are backlogged.
        """
        if self._backlog.size < self.frame_size:
            return None
        samples = self._backlog[: self.frame_size].copy()
        self._backlog = self._backlog[self.frame_size :]
        return _make_frame(samples, self.window)

    def frames(self):
        """Yield frames until the backlog holds less than one frame."""
        while True:
            frame = self.try_take_frame()
            if frame is None:
                return
            yield frame


class OverlappingFrameAssembler(FrameAssembler):
    """Overlapping assembler that drops frames the consumer did not take.

    Parameters
    ----------
    frame_size:
        Number of samples per frame (a power of two).
    step_size:
        Advance between consecutive frames, ``0 < step_size < frame_size``.

    Attributes
    ----------
    dropped:
        Count of finished frames discarded because a newer one replaced
        them before :meth:`try_take_frame` was called.
    """

    def __init__(
        self, frame_size: int = FRAME_SIZE, step_size: int = STEP_SIZE
    ) -> None:
        super().__init__(frame_size)
        if not 0 < step_size < frame_size:
            raise ValueError(
                f"step_size must be in (0, {frame_size}), got {step_size}"
            )
        self.step_size = step_size
        self.dropped = 0
        self._pending: Optional[AnalysisFrame] = None

    def feed(self, new_samples: Sequence[float] | np.ndarray) -> None:
        """Append samples and build every frame they complete.

        Only the newest finished frame is retained; the backlog never holds
        a complete frame afterwards.
        """
        super().feed(new_samples)
        while self._backlog.size >= self.frame_size:
            if self._pending is not None:
                self.dropped += 1
                LOGGER.debug("Dropped unread frame (%d so far)", self.dropped)
            samples = self._backlog[: self.frame_size].copy()
            self._pending = _make_frame(samples, self.window)
            self._backlog = self._backlog[self.step_size :]

    def try_take_frame(self) -> Optional[AnalysisFrame]:
        frame, self._pending = self._pending, None
        return frame


__all__ = [
    "is_power_of_two",
    "hann_window",
    "AnalysisFrame",
    "FrameAssembler",
    "OverlappingFrameAssembler",
]
