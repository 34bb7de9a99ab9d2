"""File helpers for artifact uploads."""

from __future__ import annotations

import os
from typing import BinaryIO


def upload_body(f: BinaryIO) -> tuple[BinaryIO | bytes, int]:
    """Get the request body and its size for an open binary file.

    An empty file is returned as ``b""``: requests sends a zero-length
    stream with ``Transfer-Encoding: chunked``, which must never accompany
    an explicit ``Content-Length``.

    Args:
        f: File opened in binary mode

    Returns:
        Tuple of (body, content_length).
    """
    content_length = os.fstat(f.fileno()).st_size
    if content_length == 0:
        return b"", 0
    return f, content_length
