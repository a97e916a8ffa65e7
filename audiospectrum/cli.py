#!/usr/bin/env python3
"""Headless spectrum session: capture the microphone and log the peak."""

from __future__ import annotations

import argparse
import logging
import time
from typing import Optional, Sequence

from .analyzer import SpectrumAnalyzer
from .capture import CaptureBridge
from .constants import (
    ENVELOPE_DECAY,
    FRAME_SIZE,
    MAX_DISPLAY_FREQUENCY_HZ,
    STEP_SIZE,
    TICK_INTERVAL_MS,
)
from .errors import DeviceError

LOGGER = logging.getLogger("audiospectrum")

REPORT_INTERVAL = 1.0  # seconds between peak reports


def _device(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audiospectrum",
        description="Capture the microphone and report its smoothed spectrum.",
    )
    parser.add_argument("--device", type=_device, default=None,
                        help="input device index or name (default: system default)")
    parser.add_argument("--list-devices", action="store_true",
                        help="list input devices and exit")
    parser.add_argument("--frame-size", type=int, default=FRAME_SIZE)
    parser.add_argument("--decay", type=float, default=ENVELOPE_DECAY,
                        help="envelope smoothing constant in [0, 1)")
    parser.add_argument("--max-freq", type=float, default=MAX_DISPLAY_FREQUENCY_HZ,
                        help="highest displayed frequency in Hz")
    parser.add_argument("--overlap", action="store_true",
                        help="overlapping frames; unread frames are dropped")
    parser.add_argument("--step-size", type=int, default=STEP_SIZE)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bridge = CaptureBridge(args.device)
    if args.list_devices:
        for idx, name in bridge.list_input_devices():
            print(f"{idx:3d}  {name}")
        return 0

    try:
        analyzer = SpectrumAnalyzer.from_bridge(
            bridge,
            frame_size=args.frame_size,
            decay=args.decay,
            max_display_frequency_hz=args.max_freq,
            overlap=args.overlap,
            step_size=args.step_size,
        )
    except DeviceError as e:
        LOGGER.error("%s", e)
        return 1
    except ValueError as e:
        LOGGER.error("Invalid configuration: %s", e)
        return 2

    LOGGER.info(
        "Showing %d bins up to %.0f Hz (Ctrl+C to quit)",
        analyzer.max_bin,
        analyzer.axis_ticks()[-1][1],
    )
    try:
        last_report = time.monotonic()
        while True:
            analyzer.tick()
            now = time.monotonic()
            if now - last_report >= REPORT_INTERVAL:
                LOGGER.info(
                    "Peak %.1f Hz, %d frames analysed",
                    analyzer.peak_frequency(),
                    analyzer.frames_processed,
                )
                last_report = now
            time.sleep(TICK_INTERVAL_MS / 1000.0)
    except KeyboardInterrupt:
        print("\nExiting.", flush=True)
    finally:
        bridge.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
