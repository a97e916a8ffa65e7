"""Qt integration: drive the analysis tick from the event loop."""

from __future__ import annotations

import logging
from typing import Any, Optional

from PySide6 import QtCore

from .analyzer import SpectrumAnalyzer
from .capture import CaptureBridge
from .constants import TICK_INTERVAL_MS
from .errors import DeviceError

LOGGER = logging.getLogger(__name__)


class SpectrumWorker(QtCore.QObject):
    """Own a capture bridge and publish a spectrum on every timer tick.

    The capture callback runs on the PortAudio thread; everything else,
    including the analysis, runs on the thread this object lives in.  A
    widget connects to :pyattr:`spectrumReady` and draws the snapshot it
    receives.  Snapshots are copies, so receivers may keep them.

    Args:
        bridge: Capture bridge to start.  A default-device bridge is
            created when omitted.
        interval_ms: Timer period of the analysis tick.
        parent: Optional Qt parent.
        **analyzer_options: Keyword arguments for :class:`SpectrumAnalyzer`
            (``frame_size``, ``decay``, ``overlap`` ...).

    Signals:
        spectrumReady(object): A :class:`SpectrumSnapshot` per tick.
        errorOccurred(str): The device could not be opened or the
            analyzer options are invalid.
    """

    spectrumReady = QtCore.Signal(object)
    errorOccurred = QtCore.Signal(str)

    def __init__(
        self,
        bridge: Optional[CaptureBridge] = None,
        *,
        interval_ms: int = TICK_INTERVAL_MS,
        parent: Optional[QtCore.QObject] = None,
        **analyzer_options: Any,
    ) -> None:
        super().__init__(parent)
        self.bridge = bridge if bridge is not None else CaptureBridge()
        self.analyzer_options = analyzer_options
        self.analyzer: Optional[SpectrumAnalyzer] = None
        self.timer = QtCore.QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.tick)

    def start(self) -> bool:
        """Open the device and start ticking.  Returns ``False`` on failure."""
        try:
            self.analyzer = SpectrumAnalyzer.from_bridge(
                self.bridge, **self.analyzer_options
            )
        except (DeviceError, ValueError) as e:
            LOGGER.error("Could not start capture: %s", e)
            self.errorOccurred.emit(str(e))
            return False
        self.timer.start()
        return True

    @QtCore.Slot()
    def tick(self) -> None:
        if self.analyzer is None:
            return
        snapshot = self.analyzer.tick()
        self.spectrumReady.emit(snapshot.copy())

    def stop(self) -> None:
        """Stop ticking and release the device."""
        self.timer.stop()
        self.bridge.stop()
        self.analyzer = None


__all__ = ["SpectrumWorker"]
