"""
ascii-video
===========

Video to ASCII-art conversion with a compressed frame-stream export format
and a bounded history of past exports.

Components:
    - sampling: Sequential frame sampling and the preview window
    - codec: Run-length frame codec and the .jsonl.gz container
    - storage: Capacity-bounded, recency-ordered output store
    - converter: Converter / Encoder protocols and the default converter
    - export: Text and video export workflows
    - session: Per-selection session context

Example:
    from ascii_video.config import settings
    from ascii_video.storage import OutputStore, FileBackend

    store = OutputStore(FileBackend(settings.storage.directory))
    for record in store.get_all():
        print(record.name, record.filename)

    # The HTTP service is started via main.py
"""

__version__ = "0.1.0"
__author__ = "ascii-video contributors"

__all__ = [
    "__version__",
]
