"""
Tracking of temporary files created while materializing archive entries.
"""

import atexit
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Optional

from .logging import get_logger

logger = get_logger(__name__)


class TempFileTracker:
    """Owns one temporary directory and every file created inside it.

    Files are deleted when ``cleanup()`` runs, which is registered with
    atexit on first use. Empty parent directories are removed up to the
    tracker's own directory, which goes away in ``cleanup()``. Deletion
    failures are ignored.
    """

    def __init__(self, prefix: str = "pluglint-dependency-"):
        self.prefix = prefix
        self._root: Optional[Path] = None
        self._files: set[Path] = set()
        self._lock = threading.Lock()

    @property
    def root(self) -> Optional[Path]:
        return self._root

    @property
    def files(self) -> list[Path]:
        with self._lock:
            return sorted(self._files)

    def new_file(self, relative_name: str) -> Path:
        """Reserve a path for a new temporary file, keeping the entry's name."""
        with self._lock:
            if self._root is None:
                self._root = Path(tempfile.mkdtemp(prefix=self.prefix))
                atexit.register(self.cleanup)
            root = self._root
        # One private directory per file so equal entry names never collide
        slot = Path(tempfile.mkdtemp(dir=root))
        target = slot.joinpath(*[p for p in relative_name.split("/") if p not in ("", ".", "..")])
        target.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self._files.add(target)
        return target

    def discard(self, path: Path) -> None:
        """Delete one tracked file now."""
        with self._lock:
            self._files.discard(path)
        self._delete(path)

    def cleanup(self) -> None:
        """Delete every tracked file and the temporary directory."""
        with self._lock:
            files = list(self._files)
            self._files.clear()
            root = self._root
        for path in files:
            self._delete(path)
        if root is not None and root.exists():
            shutil.rmtree(root, ignore_errors=True)
        with self._lock:
            if self._root == root:
                self._root = None

    def _delete(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Could not delete temporary file {path}: {e}")
            return
        root = self._root
        if root is None:
            return
        parent = path.parent
        while parent != root and root in parent.parents:
            try:
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
