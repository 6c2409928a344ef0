"""Structural validity checks for ZIP archives.

Only the End-Of-Central-Directory record is looked for, so each check reads a
bounded tail of the file regardless of the archive size. Entry checksums are
not verified and nothing is decompressed.
"""

import logging
import os
from typing import Optional, Tuple

EOCD_SIGNATURE = b"PK\x05\x06"
EOCD_MIN_SIZE = 22
MAX_COMMENT_LENGTH = 65535

logger = logging.getLogger(__name__)


def check_archive(path: str) -> Tuple[bool, Optional[str]]:
    """Check that a file looks like a complete ZIP archive.

    Args:
        path: Path of the file to check.

    Returns:
        ``(True, None)`` when the EOCD signature is present in the trailing
        window, otherwise ``(False, reason)``.
    """
    try:
        handle = open(path, 'rb')
    except OSError as e:
        logger.debug(f"Cannot open {path}: {e}")
        return False, "Cannot open file"

    with handle:
        try:
            length = os.fstat(handle.fileno()).st_size
        except OSError:
            return False, "Cannot read file metadata"

        if length < EOCD_MIN_SIZE:
            return False, (f"File too small ({length} bytes, "
                           f"minimum {EOCD_MIN_SIZE} bytes required)")

        search_len = min(length, MAX_COMMENT_LENGTH + EOCD_MIN_SIZE)

        try:
            handle.seek(-search_len, os.SEEK_END)
        except OSError:
            return False, "Cannot seek to end of file"

        try:
            buffer = handle.read(search_len)
        except OSError:
            return False, "Cannot read file contents"

    # rfind scans from the end, so the rightmost signature wins
    if buffer.rfind(EOCD_SIGNATURE) >= 0:
        return True, None

    return False, "Missing ZIP signature (corrupted or incomplete transfer)"
