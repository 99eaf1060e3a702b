"""
Copying archive entries to real files.

Downstream consumers (rule checks, the cross-referencer) only deal with
files, so a resource found inside a dependency archive is extracted to a
tracked temporary file first.
"""

import shutil
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path

from ..core.tempfiles import TempFileTracker

# What reading a damaged, truncated or unsupported archive entry can raise
ARCHIVE_ERRORS = (
    OSError,
    EOFError,
    RuntimeError,
    NotImplementedError,
    zlib.error,
    zipfile.BadZipFile,
)


@dataclass(frozen=True)
class MaterializedEntry:
    """An archive entry extracted to a temporary file."""
    archive: Path
    entry: str
    file: Path


def materialize_entry(archive: Path, entry: str, tracker: TempFileTracker) -> MaterializedEntry:
    """Extract one entry to a new tracked temporary file.

    Raises:
        KeyError: If the entry is not in the archive
        ARCHIVE_ERRORS: If the archive or the entry cannot be read
    """
    with zipfile.ZipFile(archive) as zf:
        info = zf.getinfo(entry)
        target = tracker.new_file(entry)
        try:
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except BaseException:
            tracker.discard(target)
            raise
    return MaterializedEntry(archive=archive, entry=entry, file=target)
