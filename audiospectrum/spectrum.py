"""Spectral transform: windowed frame to normalised magnitude spectrum."""

from __future__ import annotations

import math
from typing import Union

import numpy as np

from .constants import FRAME_SIZE
from .errors import TransformError
from .frames import AnalysisFrame, is_power_of_two


def bin_frequencies(frame_size: int, sample_rate: float) -> np.ndarray:
    """Return the centre frequency (Hz) of each of the ``frame_size / 2`` bins."""
    return np.arange(frame_size // 2, dtype=np.float64) * (sample_rate / frame_size)


def magnitude_spectrum(windowed: np.ndarray, frame_size: int = FRAME_SIZE) -> np.ndarray:
    """Compute the normalised magnitude spectrum of one windowed frame.

    The real FFT of a real signal is conjugate symmetric, so only the first
    ``frame_size / 2`` bins are kept.  Each magnitude is divided by
    ``sqrt(frame_size)`` so the level does not depend on the frame length.

    Args:
        windowed: One-dimensional array of exactly ``frame_size`` samples
            with the window already applied.
        frame_size: Expected frame length, a power of two.

    Returns:
        ``float32`` array of ``frame_size / 2`` non-negative magnitudes.

    Raises:
        TransformError: If ``windowed`` is not a one-dimensional array of
            ``frame_size`` samples.
    """
    data = np.asarray(windowed)
    if data.ndim != 1 or data.size != frame_size:
        raise TransformError(
            f"Expected a frame of {frame_size} samples, got shape {data.shape}"
        )
    spectrum = np.abs(np.fft.rfft(data.astype(np.float64)))[: frame_size // 2]
    spectrum /= math.sqrt(frame_size)
    return spectrum.astype(np.float32)


class SpectralTransform:
    """Transform frames of a fixed size captured at a fixed sample rate.

    Bin ``i`` of every result represents ``i * sample_rate / frame_size`` Hz;
    the centre frequencies are available as :attr:`frequencies`.
    """

    def __init__(self, sample_rate: float, frame_size: int = FRAME_SIZE) -> None:
        if not is_power_of_two(frame_size):
            raise ValueError(f"frame_size must be a power of two, got {frame_size}")
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.frequencies = bin_frequencies(frame_size, sample_rate)

    @property
    def num_bins(self) -> int:
        return self.frame_size // 2

    def transform(self, frame: Union[AnalysisFrame, np.ndarray]) -> np.ndarray:
        """Return the raw spectrum of ``frame`` (an :class:`AnalysisFrame`
        or an already windowed array)."""
        windowed = frame.windowed if isinstance(frame, AnalysisFrame) else frame
        return magnitude_spectrum(windowed, self.frame_size)

    __call__ = transform


__all__ = ["bin_frequencies", "magnitude_spectrum", "SpectralTransform"]
