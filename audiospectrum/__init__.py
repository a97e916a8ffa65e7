"""Audiospectrum package."""

from .analyzer import SpectrumAnalyzer, SpectrumSnapshot
from .capture import CaptureBridge, HandoffQueue
from .display import compute_max_bin, frequency_ticks
from .envelope import EnvelopeFollower
from .errors import DeviceError, SpectrumError, TransformError
from .frames import AnalysisFrame, FrameAssembler, OverlappingFrameAssembler
from .spectrum import SpectralTransform, magnitude_spectrum

try:  # PySide6 may be missing in headless environments
    from .worker import SpectrumWorker
except Exception:  # pragma: no cover - optional dependency
    SpectrumWorker = None  # type: ignore

__all__ = [
    "AnalysisFrame",
    "CaptureBridge",
    "DeviceError",
    "EnvelopeFollower",
    "FrameAssembler",
    "HandoffQueue",
    "OverlappingFrameAssembler",
    "SpectralTransform",
    "SpectrumAnalyzer",
    "SpectrumError",
    "SpectrumSnapshot",
    "SpectrumWorker",
    "TransformError",
    "compute_max_bin",
    "frequency_ticks",
    "magnitude_spectrum",
]
