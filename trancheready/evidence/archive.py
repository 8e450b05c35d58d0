"""
Evidence Archive
================

ZIP packaging of named evidence buffers.

Author: TrancheReady Team
Version: 1.0.0
"""

import io
import zipfile
from typing import Dict, Mapping


class ArchiveFormatError(ValueError):
    """Raised when bytes are not a readable evidence archive."""
    pass


def zip_named_buffers(files: Mapping[str, bytes]) -> bytes:
    """Deflate ``files`` into a ZIP archive, entries in mapping order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def read_named_buffers(archive: bytes) -> Dict[str, bytes]:
    """Read every entry of a ZIP archive back into a name to bytes mapping."""
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}
    except zipfile.BadZipFile as e:
        raise ArchiveFormatError(f"not a ZIP archive: {e}") from e
