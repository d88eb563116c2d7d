"""
ascii-video Main Application
============================

FastAPI entry point for the ASCII video service.

Endpoints:
    GET    /                        - Service information
    GET    /health                  - Liveness probe
    POST   /session                 - Upload a video (raw body), sample preview frames
    PUT    /session/preview         - Adjust skip range / slider, render preview
    POST   /session/export/text     - Export the session as .jsonl.gz
    POST   /session/export/video    - Export the session as an encoded video
    GET    /outputs                 - Output history (without payloads)
    GET    /outputs/{id}            - One history record
    GET    /outputs/{id}/download   - Compressed payload of a record
    GET    /outputs/{id}/frames     - Decoded frames of a record (replay)
    DELETE /outputs/{id}            - Remove a record
"""

import asyncio
import logging
import os
import shutil
import tempfile
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ascii_video.codec import (
    ContainerFormatError,
    CorruptFrameError,
    decode_payload,
    read_container,
)
from ascii_video.config import settings
from ascii_video.converter import Encoder, LuminanceConverter
from ascii_video.export import (
    ConversionError,
    ExportBusyError,
    ExportValidationError,
    export_text,
    export_video,
)
from ascii_video.models import ExportOptions, PreviewRequest
from ascii_video.models.cell import frame_to_text
from ascii_video.sampling import SamplingError
from ascii_video.session import SessionContext, SessionManager, render_preview
from ascii_video.storage import FileBackend, OutputStore, format_date, format_size


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_store: Optional[OutputStore] = None
_sessions: Optional[SessionManager] = None
_converter: Optional[LuminanceConverter] = None

# No encoder ships with the service; video export answers 501 until one is set
_encoder: Optional[Encoder] = None

# Uploaded videos
_upload_dir: Optional[Path] = None
_owns_upload_dir: bool = False

_startup_time: float = 0.0


def get_store() -> Optional[OutputStore]:
    return _store

def get_sessions() -> Optional[SessionManager]:
    return _sessions

def get_converter() -> Optional[LuminanceConverter]:
    return _converter

def get_encoder() -> Optional[Encoder]:
    return _encoder


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _store, _sessions, _converter
    global _upload_dir, _owns_upload_dir, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    _store = OutputStore(
        FileBackend(settings.storage.directory),
        key=settings.storage.key,
        capacity=settings.storage.capacity,
    )
    logger.info(
        f"Output history: {settings.storage.directory} "
        f"(key={settings.storage.key}, capacity={settings.storage.capacity})"
    )

    _converter = LuminanceConverter(settings.converter)
    _sessions = SessionManager(
        max_samples=settings.sampler.max_samples,
        samples_per_second=settings.sampler.samples_per_second,
        on_release=_release_upload,
    )

    if settings.sampler.upload_dir:
        _upload_dir = Path(settings.sampler.upload_dir)
        _upload_dir.mkdir(parents=True, exist_ok=True)
        _owns_upload_dir = False
    else:
        _upload_dir = Path(tempfile.mkdtemp(prefix="ascii-video-"))
        _owns_upload_dir = True

    yield

    logger.info("Shutting down...")

    if _sessions:
        _sessions.close()

    if _owns_upload_dir and _upload_dir is not None:
        shutil.rmtree(_upload_dir, ignore_errors=True)

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="ascii-video",
    description="Convert videos into colored ASCII frame streams",
    version=settings.app.version,
    lifespan=lifespan,
)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _save_upload(body: bytes, filename: str) -> Path:
    suffix = Path(filename).suffix or ".bin"
    fd, name = tempfile.mkstemp(dir=_upload_dir, prefix="upload-", suffix=suffix)
    with os.fdopen(fd, "wb") as f:
        f.write(body)
    return Path(name)


def _discard_upload(path: Optional[Path]) -> None:
    if path is not None and _upload_dir is not None and path.parent == _upload_dir:
        path.unlink(missing_ok=True)


def _release_upload(session: SessionContext) -> None:
    _discard_upload(session.video_path)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    sessions = get_sessions()
    return JSONResponse({
        "service": settings.app.name,
        "version": settings.app.version,
        "status": "running",
        "session_generation": sessions.generation if sessions else 0,
        "storage_capacity": settings.storage.capacity,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always returns 200 if the service is running."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.post("/session")
async def open_session(request: Request, filename: str = "video.mp4") -> JSONResponse:
    """
    Select a video.

    The request body is the raw video file. Any previous session is
    superseded; its upload is removed once it is no longer sampling or
    exporting.
    """
    sessions = get_sessions()
    body = await request.body()
    if not body:
        return _error("Please select a video file", 422)

    path = await asyncio.to_thread(_save_upload, body, filename)
    session = sessions.open(path, filename=filename)

    try:
        loaded = await sessions.load(session)
    except SamplingError as e:
        logger.error(f"Sampling failed for {filename}: {e}")
        return _error(str(e), 422)

    if not loaded:
        return _error("Superseded by a newer video selection", 409)

    return JSONResponse({
        "generation": session.generation,
        "name": session.base_name,
        "total_frames": session.sampler.total_frames,
        "preview": session.preview.state(),
    })


@app.put("/session/preview")
async def update_preview(adjustment: PreviewRequest) -> JSONResponse:
    """Adjust the skip range and slider, and render the selected frame."""
    session = get_sessions().current
    if session is None:
        return _error("Please select a video file", 409)
    if session.export_in_flight:
        return _error("An export is already running", 409)

    session.square_pixels = adjustment.square_pixels
    session.preview.configure(skip_start=adjustment.skip_start, skip_end=adjustment.skip_end)
    session.preview.move_to(adjustment.position)

    rendering = settings.converter.merged(adjustment.rendering_overrides())
    frame = await asyncio.to_thread(
        render_preview, session, get_converter(), adjustment.width, rendering
    )

    return JSONResponse({
        **session.preview.state(),
        "rendered": frame is not None,
        "lines": frame_to_text(frame) if frame is not None else [],
    })


@app.post("/session/export/text")
async def export_session_text(options: ExportOptions, square_pixels: bool = False) -> JSONResponse:
    """
    Export the current session as a .jsonl.gz frame stream.

    When the history save fails the payload is returned inline so the
    export is not lost.
    """
    try:
        result = await export_text(
            get_sessions().current,
            get_converter(),
            get_store(),
            options,
            square_pixels=square_pixels,
            rendering=settings.converter.merged(options.rendering_overrides()),
            compress_level=settings.container.compress_level,
            chunk_size=settings.container.chunk_size,
            default_base_name=settings.container.default_base_name,
        )
    except ExportValidationError as e:
        return _error(str(e), 409)
    except ExportBusyError as e:
        return _error(str(e), 409)
    except ConversionError as e:
        return _error(f"Conversion failed: {e}", 502)

    response = {
        "filename": result.filename,
        "saved": result.saved,
        "record": result.record.summary(),
    }
    if not result.saved:
        response["warning"] = "Output not saved to history (storage full or unavailable)"
        response["data"] = result.record.data
    return JSONResponse(response)


@app.post("/session/export/video")
async def export_session_video(options: ExportOptions) -> Response:
    """Export the current session as an encoded ASCII video (not stored in history)."""
    encoder = get_encoder()
    if encoder is None:
        return _error("Video export is not available", 501)

    try:
        result = await export_video(
            get_sessions().current,
            encoder,
            options,
            rendering=settings.converter.merged(options.rendering_overrides()),
        )
    except (ExportValidationError, ExportBusyError) as e:
        return _error(str(e), 409)
    except ConversionError as e:
        return _error(f"Conversion failed: {e}", 502)

    return Response(
        content=result.blob,
        media_type=f"video/{result.format}",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@app.get("/outputs")
async def list_outputs() -> JSONResponse:
    """Output history, most recent first, without payloads."""
    return JSONResponse([
        {
            **record.summary(),
            "size_label": format_size(record.size),
            "date_label": format_date(record.timestamp),
        }
        for record in get_store().get_all()
    ])


@app.get("/outputs/{output_id}")
async def get_output(output_id: str) -> JSONResponse:
    """One history record without its payload."""
    record = get_store().get_by_id(output_id)
    if record is None:
        return _error(f"Output not found: {output_id}", 404)
    return JSONResponse(record.summary())


@app.get("/outputs/{output_id}/download")
async def download_output(output_id: str) -> Response:
    """Compressed .jsonl.gz payload of a record."""
    record = get_store().get_by_id(output_id)
    if record is None:
        return _error(f"Output not found: {output_id}", 404)

    try:
        payload = decode_payload(record.data)
    except ContainerFormatError as e:
        return _error(str(e), 422)

    return Response(
        content=payload,
        media_type="application/gzip",
        headers={"Content-Disposition": f'attachment; filename="{record.filename}"'},
    )


@app.get("/outputs/{output_id}/frames")
async def replay_output(output_id: str) -> JSONResponse:
    """Decoded frames of a record as text rows."""
    record = get_store().get_by_id(output_id)
    if record is None:
        return _error(f"Output not found: {output_id}", 404)

    try:
        header, frames = await asyncio.to_thread(read_container, decode_payload(record.data))
    except (ContainerFormatError, CorruptFrameError) as e:
        logger.warning(f"Stored output {output_id} is unreadable: {e}")
        return _error(str(e), 422)

    return JSONResponse({
        "header": header.to_wire(),
        "frames": [frame_to_text(frame) for frame in frames],
    })


@app.delete("/outputs/{output_id}")
async def delete_output(output_id: str) -> JSONResponse:
    """Remove a record. Unknown ids are a no-op."""
    if not get_store().delete(output_id):
        return _error("Failed to delete output", 500)
    return JSONResponse({"deleted": output_id})


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ascii_video.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
