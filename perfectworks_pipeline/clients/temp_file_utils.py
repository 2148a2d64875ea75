"""Temporary file utilities for writing downloaded results.

This module provides a context manager that stages a download in a temporary
file next to its final destination and moves it into place only when the
block completes without error. An existing file at the destination is never
truncated or partially overwritten by a failed transfer.
"""

from collections.abc import Generator
from contextlib import contextmanager
import logging
import os
from pathlib import Path
import tempfile
from typing import BinaryIO

logger = logging.getLogger(__name__)


@contextmanager
def atomic_output_file(target_path: Path) -> Generator[BinaryIO, None, None]:
    """Context manager yielding a binary handle that replaces ``target_path``.

    The parent directory is created if needed. The temporary file lives in the
    same directory so the final ``os.replace`` is an atomic rename on the same
    filesystem. Cleanup failures are logged as warnings but do not raise
    exceptions to avoid masking original errors.

    Args:
        target_path: Final location of the file.

    Yields:
        Writable binary file object.

    Example:
        >>> with atomic_output_file(Path("out/report.pdf")) as handle:
        ...     for chunk in response.iter_content(65536):
        ...         handle.write(chunk)
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path_str = tempfile.mkstemp(
        dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".part"
    )
    temp_path = Path(temp_path_str)
    logger.debug(f"Staging download for '{target_path.name}' in {temp_path}")

    try:
        with os.fdopen(fd, "wb") as handle:
            yield handle
        os.replace(temp_path, target_path)
        logger.debug(f"Moved staged download into place: {target_path}")
    finally:
        if temp_path.exists():
            try:
                os.unlink(temp_path)
                logger.debug(f"Cleaned up staged download: {temp_path}")
            except OSError as e:
                logger.warning(
                    f"Failed to cleanup staged download {temp_path}: {str(e)}"
                )
