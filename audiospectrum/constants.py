"""Application-wide constants used by the spectrum pipeline.

The values in this module configure the analysis frame size, overlap,
envelope smoothing and the display ceiling.  Centralising the
configuration avoids magic numbers spread throughout the code base and
makes it easy to tune the latency/resolution trade-off in one place.
"""

from __future__ import annotations

# ─── Analysis configuration ────────────────────────────────────────────────

# Number of samples per analysis frame.  Must be a power of two.  Larger
# frames give finer frequency resolution at the cost of latency.
FRAME_SIZE: int = 2048

# Advance between successive frames when the overlapping assembler is used.
# Half a frame is the usual choice for a Hann window.
STEP_SIZE: int = FRAME_SIZE // 2

# ─── Envelope follower ─────────────────────────────────────────────────────

# Fraction of the previous envelope kept on every tick.  Values close to
# one give a slow, smooth fall-off; rises are always instantaneous.
ENVELOPE_DECAY: float = 0.95

# ─── Display defaults ──────────────────────────────────────────────────────

# Only bins up to this frequency (Hz) are handed to the renderer.
MAX_DISPLAY_FREQUENCY_HZ: float = 6000.0

# Number of intervals on the frequency axis.
AXIS_TICKS: int = 20

# ─── Capture / host cadence ────────────────────────────────────────────────

# Channels requested from the input device.  Multi-channel input is
# down-mixed to mono in the capture callback.
CHANNELS: int = 1

# Interval of the analysis tick driven by the Qt worker, roughly one
# display frame at 60 Hz.
TICK_INTERVAL_MS: int = 16

__all__ = [
    "FRAME_SIZE",
    "STEP_SIZE",
    "ENVELOPE_DECAY",
    "MAX_DISPLAY_FREQUENCY_HZ",
    "AXIS_TICKS",
    "CHANNELS",
    "TICK_INTERVAL_MS",
]
