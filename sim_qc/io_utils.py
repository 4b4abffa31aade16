"""I/O utilities for transparent gzip handling.

A .sim input may be stored raw or gzip-compressed. ``open_binary`` sniffs
the gzip magic on the opened handle itself, so the file name plays no part.

Example:
    with smart_open(Path("cohort.sim.gz")) as f:
        header = f.read(16)
"""

import gzip
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

GZIP_MAGIC = b"\x1f\x8b"


def open_binary(filepath: Path) -> IO[bytes]:
    """Open a file for binary reading, decompressing gzip content.

    The caller owns the returned handle. Both handle types support
    ``seek``; for gzip files a backwards seek re-decodes from the start.

    Args:
        filepath: Path to file (compressed or not)

    Returns:
        Binary file handle positioned at the start of the content
    """
    raw = open(filepath, "rb")
    try:
        magic = raw.read(len(GZIP_MAGIC))
        if magic != GZIP_MAGIC:
            raw.seek(0)
            return raw
    except BaseException:
        raw.close()
        raise
    # GzipFile does not close a passed fileobj, so reopen by path
    raw.close()
    return gzip.open(filepath, "rb")


def is_compressed(handle: IO[bytes]) -> bool:
    """True if ``handle`` came from ``open_binary`` on a gzip file."""
    return isinstance(handle, gzip.GzipFile)


@contextmanager
def smart_open(filepath: Path) -> Iterator[IO[bytes]]:
    """Open a binary file with automatic gzip detection, closing on exit.

    Args:
        filepath: Path to file (compressed or not)

    Yields:
        Binary file handle
    """
    f = open_binary(filepath)
    try:
        yield f
    finally:
        f.close()
