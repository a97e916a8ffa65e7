"""Envelope follower used to stabilise the displayed spectrum.

The follower is asymmetric: a bin that rises is taken over immediately,
a bin that falls decays exponentially towards the new value::

    envelope[i] = max(envelope[i] * K + raw[i] * (1 - K), raw[i])

``K`` (``decay``) is fixed for the lifetime of the follower.  Transients
show up without lag while the fall-off stays smooth.

In float32 the decay eventually rounds to no change a few ulps above
``raw``.  Once a step makes no progress the bin is set to ``raw``, so
repeating the same input reaches it exactly in a bounded number of steps.
"""

from __future__ import annotations

import numpy as np

from .constants import ENVELOPE_DECAY, FRAME_SIZE


class EnvelopeFollower:
    """Per-bin smoothed spectrum, mutated in place by :meth:`update`.

    Parameters
    ----------
    num_bins:
        Number of spectrum bins tracked.
    decay:
        Smoothing constant ``K`` in ``[0, 1)``.  ``0`` disables smoothing.

    The state starts at all zeros and is never reset.  :meth:`update` is
    the only mutator; readers get a read-only view from :attr:`values`.
    """

    def __init__(
        self, num_bins: int = FRAME_SIZE // 2, decay: float = ENVELOPE_DECAY
    ) -> None:
        if num_bins < 1:
            raise ValueError(f"num_bins must be positive, got {num_bins}")
        if not 0.0 <= decay < 1.0:
            raise ValueError(f"decay must be in [0, 1), got {decay}")
        self.decay = float(decay)
        self._envelope = np.zeros(num_bins, dtype=np.float32)
        self._scratch = np.empty(num_bins, dtype=np.float32)
        self._weighted = np.empty(num_bins, dtype=np.float32)
        self._stalled = np.empty(num_bins, dtype=bool)

    def __len__(self) -> int:
        return self._envelope.size

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the current envelope."""
        view = self._envelope.view()
        view.setflags(write=False)
        return view

    def update(self, raw: np.ndarray) -> np.ndarray:
        """Fold one raw spectrum into the envelope and return :attr:`values`."""
        raw = np.asarray(raw, dtype=np.float32)
        if raw.shape != self._envelope.shape:
            raise ValueError(
                f"Expected {self._envelope.size} bins, got shape {raw.shape}"
            )
        k = np.float32(self.decay)
        # envelope * K + raw * (1 - K), computed into scratch first so the
        # envelope is only written once the new values are complete
        np.multiply(self._envelope, k, out=self._scratch)
        np.multiply(raw, np.float32(1.0) - k, out=self._weighted)
        self._scratch += self._weighted
        # a decay step that rounds to no progress lands on raw exactly
        np.greater_equal(self._scratch, self._envelope, out=self._stalled)
        np.copyto(self._scratch, raw, where=self._stalled)
        np.maximum(self._scratch, raw, out=self._envelope)
        return self.values


__all__ = ["EnvelopeFollower"]
