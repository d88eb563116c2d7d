#!/usr/bin/env python3
"""
Export Smoke Test Script
========================

Standalone script exercising the full pipeline on a real video file.

This script:
    1. Samples preview frames from the video
    2. Renders the middle preview frame to the log
    3. Exports the video as .jsonl.gz into a history directory
    4. Reads the stored record back and reports a summary

Prerequisites:
    - Install the package: pip install -e .

Usage:
    python scripts/smoke_export.py clip.mp4
    python scripts/smoke_export.py clip.mp4 --fps 5 --width 120 --square-pixels
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from ascii_video.codec import decode_payload, read_container
from ascii_video.converter import LuminanceConverter, Progress
from ascii_video.export import ConversionError, export_text
from ascii_video.models import ExportOptions
from ascii_video.models.cell import frame_to_text
from ascii_video.sampling import SamplingError
from ascii_video.session import SessionManager, render_preview
from ascii_video.storage import FileBackend, OutputStore, format_size


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run_smoke(
    video: Path,
    history_dir: Path,
    fps: int,
    width: int,
    square_pixels: bool,
) -> bool:
    """
    Run the smoke test.

    Returns:
        True if the export was produced and reads back intact
    """
    logger.info("=" * 60)
    logger.info(f"Video: {video}")
    logger.info(f"History: {history_dir}")
    logger.info(f"FPS: {fps}, width: {width}, square pixels: {square_pixels}")
    logger.info("=" * 60)

    converter = LuminanceConverter()
    store = OutputStore(FileBackend(history_dir))
    sessions = SessionManager()
    session = sessions.open(video)

    start_time = time.time()
    try:
        await sessions.load(session)
        logger.info(f"Sampled {session.sampler.total_frames} preview frames")

        session.square_pixels = square_pixels
        session.preview.move_to(session.preview.max_position // 2)
        frame = render_preview(session, converter, 80)
        if frame is not None:
            for line in frame_to_text(frame):
                logger.info(f"  |{line}|")

        def report(progress: Progress) -> None:
            if progress.current is None or progress.current == progress.total:
                logger.info(f"  {progress.stage.value}: {progress.percent:.0f}%")

        result = await export_text(
            session,
            converter,
            store,
            ExportOptions(fps=fps, width=width),
            square_pixels=square_pixels,
            on_progress=report,
        )
    except (SamplingError, ConversionError) as e:
        logger.error(f"TEST FAILED - {e}")
        return False
    finally:
        sessions.close()

    stored = store.get_by_id(result.record.id)
    header, frames = read_container(decode_payload(stored.data)) if stored else (None, [])

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {time.time() - start_time:.1f} seconds")
    logger.info(f"Filename: {result.filename}")
    logger.info(f"Payload: {format_size(len(result.payload))}")
    logger.info(f"Saved to history: {result.saved}")
    logger.info(f"Frames read back: {len(frames)}")
    logger.info("=" * 60)

    ok = stored is not None and header.frame_count == len(frames) == result.record.frame_count
    if ok:
        logger.info("TEST PASSED - Export stored and decoded")
    else:
        logger.error("TEST FAILED - Stored export missing or inconsistent")
    return ok


def main():
    parser = argparse.ArgumentParser(description="End-to-end export smoke test")
    parser.add_argument("video", type=Path, help="Video file to convert")
    parser.add_argument(
        "--history-dir",
        type=Path,
        default=Path("./data"),
        help="Output history directory (default: ./data)",
    )
    parser.add_argument("--fps", type=int, default=10, help="Export FPS (default: 10)")
    parser.add_argument("--width", type=int, default=120, help="ASCII width (default: 120)")
    parser.add_argument("--square-pixels", action="store_true", help="Round-pixel export")

    args = parser.parse_args()

    ok = asyncio.run(run_smoke(
        video=args.video,
        history_dir=args.history_dir,
        fps=args.fps,
        width=args.width,
        square_pixels=args.square_pixels,
    ))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
