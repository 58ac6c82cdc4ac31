"""
wavebars command line.

Usage:
    # Static waveform of a finished recording
    python main.py render recording.wav -o waveform.png --width 800 --height 120

    # Record from the microphone and save the amplitude timeline
    python main.py record --seconds 5 -o timeline.png
"""
import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.waveform import RenderRequest, WaveformAppearance
from app.services.waveform_service import render_waveform_png
from src.capture.audio_recorder import AudioRecorder, RecorderConfig
from src.engine.bar_renderer import BarGeometry
from src.engine.errors import DecodeFailure
from src.engine.scroll import ScrollViewport
from src.engine.surface import PillowSurface, Viewport
from src.engine.tick_source import AsyncioClock
from src.engine.views import create_live_recorder, create_timeline_recorder

# 配置日志
logger.add(
    settings.LOG_FILE,
    rotation="500 MB",
    level="DEBUG" if settings.DEBUG_MODE else settings.LOG_LEVEL,
)


async def cmd_render(args: argparse.Namespace) -> int:
    try:
        request = RenderRequest(
            width=args.width,
            height=args.height,
            device_pixel_ratio=args.dpr,
            sample_count=args.samples,
            current_time=args.time,
            duration=args.duration,
            appearance=WaveformAppearance(
                bar_color=args.color,
                bar_width=args.bar_width,
                bar_gap=args.gap,
                bar_radius=args.radius,
            ),
        )
    except ValidationError as exc:
        logger.error("Invalid render options: {}", exc)
        return 2

    source = Path(args.input).read_bytes()
    try:
        png = await render_waveform_png(source, request)
    except DecodeFailure as exc:
        logger.error("Could not decode {}: {}", args.input, exc)
        return 1
    Path(args.output).write_bytes(png)
    logger.info("Waveform written to {}", Path(args.output).resolve())
    return 0


async def cmd_record(args: argparse.Namespace) -> int:
    clock = AsyncioClock()
    container = Viewport(args.width, args.height, args.dpr)
    smoothing = settings.SPECTRUM_SMOOTHING if args.spectrum else settings.TIMELINE_SMOOTHING
    recorder = AudioRecorder(
        RecorderConfig(fft_size=args.fft_size, smoothing_time_constant=smoothing)
    )

    surface = PillowSurface(bar_color=args.color)
    if args.spectrum:
        view = create_live_recorder(clock, container, surface=surface)
    else:
        view = create_timeline_recorder(
            clock,
            container,
            scroll_container=ScrollViewport(viewport_width=args.width),
            geometry=BarGeometry(),
            surface=surface,
            grow_width=not args.fixed,
            sample_interval_ms=args.interval,
        )

    session = recorder.start()
    view.attach(session, session.analyser)
    view.start()
    try:
        await asyncio.sleep(args.seconds)
    finally:
        recorder.stop()
        # one more frame so the stopped state is drawn
        view.invalidate()
        await asyncio.sleep(2.0 / settings.FRAME_RATE)
        view.close()

    Path(args.output).write_bytes(surface.to_png())
    if not args.spectrum:
        logger.info("Collected {} amplitude samples", len(view.amplitudes()))
    logger.info("Live view written to {}", Path(args.output).resolve())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bar-style audio waveforms.")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-o", "--output", default="waveform.png", help="PNG output path")
    common.add_argument("--width", type=float, default=settings.DEFAULT_CANVAS_WIDTH)
    common.add_argument("--height", type=float, default=settings.DEFAULT_CANVAS_HEIGHT)
    common.add_argument("--dpr", type=float, default=settings.DEFAULT_DEVICE_PIXEL_RATIO)
    common.add_argument("--color", default="#3b82f6", help="Bar colour")

    render = sub.add_parser("render", parents=[common], help="Render a recording")
    render.add_argument("input", help="Encoded audio file")
    render.add_argument("--samples", type=int, default=None, help="Peak count")
    render.add_argument("--bar-width", type=float, default=1.0)
    render.add_argument("--gap", type=float, default=1.0)
    render.add_argument("--radius", type=float, default=0.0)
    render.add_argument("--time", type=float, default=None, help="Playhead position (s)")
    render.add_argument("--duration", type=float, default=None, help="Total duration (s)")

    record = sub.add_parser("record", parents=[common], help="Record from the microphone")
    record.add_argument("--seconds", type=float, default=5.0)
    record.add_argument("--interval", type=float, default=settings.SAMPLE_INTERVAL_MS,
                        help="Amplitude sampling interval (ms)")
    record.add_argument("--fft-size", type=int, default=settings.FFT_SIZE)
    record.add_argument("--fixed", action="store_true", help="Compress into a fixed width")
    record.add_argument("--spectrum", action="store_true", help="Draw the live spectrum instead")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    handler = cmd_render if args.command == "render" else cmd_record
    sys.exit(asyncio.run(handler(args)))


if __name__ == "__main__":
    main()
