"""Mapping between spectrum bins and the displayed frequency range.

These helpers know nothing about drawing.  The renderer uses
:func:`compute_max_bin` to decide how many leading bins to plot and
:func:`frequency_ticks` to label the frequency axis consistently with
those bins.
"""

from __future__ import annotations

import math

from .constants import AXIS_TICKS


def bin_width(sample_rate: float, frame_size: int) -> float:
    """Return the width of one bin in hertz."""
    nyquist = sample_rate / 2.0
    return nyquist / (frame_size // 2)


def compute_max_bin(
    sample_rate: float, frame_size: int, max_display_frequency_hz: float
) -> int:
    """Return the number of leading bins that fall below the display ceiling.

    ``min(frame_size / 2, floor(max_display_frequency_hz / bin_width))``.

    Raises:
        ValueError: If any argument is non-positive or the ceiling is
            lower than one bin, which would leave nothing to display.
    """
    if sample_rate <= 0 or frame_size < 2 or max_display_frequency_hz <= 0:
        raise ValueError(
            "sample_rate, frame_size and max_display_frequency_hz must be positive"
        )
    half = frame_size // 2
    width = bin_width(sample_rate, frame_size)
    max_bin = min(half, int(math.floor(max_display_frequency_hz / width)))
    if max_bin < 1:
        raise ValueError(
            f"Display ceiling {max_display_frequency_hz} Hz is below the first bin"
        )
    return max_bin


def frequency_ticks(
    max_bin: int,
    sample_rate: float,
    frame_size: int,
    num_ticks: int = AXIS_TICKS,
) -> list[tuple[float, float]]:
    """Return ``num_ticks + 1`` axis ticks as ``(fraction, hz)`` pairs.

    ``fraction`` runs from 0 to 1 across the plotted width and ``hz`` is
    the frequency drawn at that position, derived from ``max_bin`` so the
    labels match the bins actually shown.
    """
    if num_ticks < 1:
        raise ValueError(f"num_ticks must be positive, got {num_ticks}")
    top = max_bin * bin_width(sample_rate, frame_size)
    return [(i / num_ticks, (i / num_ticks) * top) for i in range(num_ticks + 1)]


__all__ = ["bin_width", "compute_max_bin", "frequency_ticks"]
