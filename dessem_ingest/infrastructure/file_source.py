"""
File discovery and content loading for case directories.

Content is always read whole, as bytes, before any decoding starts. Reads are
retried with tenacity on transient I/O errors (network mounts, busy files);
missing files, directories and permission problems fail immediately.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)

_PERMANENT_ERRORS = (FileNotFoundError, IsADirectoryError, NotADirectoryError, PermissionError)


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, OSError) and not isinstance(exc, _PERMANENT_ERRORS)


def discover_files(root: Path | str, pattern: str = "*") -> List[Path]:
    """
    List the regular files of a case directory, sorted by name.

    Raises
    ------
    NotADirectoryError
        `root` does not exist or is not a directory.
    """
    base = Path(root)
    if not base.is_dir():
        raise NotADirectoryError(f"case directory not found: {base}")
    files = sorted(p for p in base.glob(pattern) if p.is_file())
    log.debug("Files discovered", extra={"root": str(base), "files": len(files)})
    return files


def _read_bytes(path: Path) -> bytes:
    with path.open("rb") as f:
        return f.read()


def read_content(path: Path | str, attempts: int = 3, wait: Optional[Any] = None) -> bytes:
    """
    Read a whole file with automatic retry.

    Retries up to `attempts` times with exponential backoff for transient
    `OSError`s.

    Raises
    ------
    OSError
        The last error once all attempts are exhausted, or the first
        permanent one.
    """
    retryer = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait if wait is not None else wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    return retryer(_read_bytes, Path(path))


__all__ = ["discover_files", "read_content"]
