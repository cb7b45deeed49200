"""
Streaming copy utilities.
Chunked source-to-destination copy, run off the event loop by the pipeline.
"""

from typing import BinaryIO, Callable, Optional

DEFAULT_CHUNK_SIZE = 256 * 1024  # 256KB read buffer


def copy_stream(
    source: BinaryIO,
    destination: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Copy every byte from source to destination.

    Blocking; callers in async code run it with asyncio.to_thread.
    Read and write errors propagate unchanged, leaving whatever was already
    written in place.

    Args:
        source: Readable binary stream (read until it returns b"")
        destination: Writable binary stream
        chunk_size: Bytes per read
        progress_callback: Optional callback called with the running byte count

    Returns:
        Number of bytes written
    """
    written = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break

        destination.write(chunk)
        written += len(chunk)

        if progress_callback:
            progress_callback(written)

    destination.flush()
    return written
