"""Exception types raised by the spectrum pipeline."""

from __future__ import annotations


class SpectrumError(Exception):
    """Base class for all pipeline errors."""


class DeviceError(SpectrumError):
    """No input device exists or it offers no usable configuration.

    Raised at startup only.  There is no retry: the hardware has to be
    reconnected or the configuration changed.
    """


class TransformError(SpectrumError):
    """A frame of the wrong length reached the spectral transform."""


__all__ = ["SpectrumError", "DeviceError", "TransformError"]
