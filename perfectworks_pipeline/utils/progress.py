"""Progress bar utilities for the PerfectWorks Accessibility Pipeline.

This module provides a ProgressBar class that wraps tqdm for consistent
progress display of batch runs with unicode/ASCII handling.
"""

import sys

from tqdm import tqdm

from .logging import _supports_unicode


class ProgressBar:
    """Progress bar wrapper around tqdm for consistent styling.

    Provides a context manager interface with automatic cleanup. The bar is
    disabled when stderr is not a terminal so that logs and CI output stay
    clean.

    Args:
        total: Total number of files to process
        desc: Description text to display with the progress bar
        unit: Unit label for files
        disable: Force-disable the bar. None auto-detects from stderr.

    Example:
        >>> with ProgressBar(total=10, desc="Accessibility") as pbar:
        ...     for outcome in outcomes:
        ...         pbar.record(outcome.success)
    """

    def __init__(
        self,
        total: int,
        desc: str,
        unit: str = "file",
        disable: bool | None = None,
    ) -> None:
        self.total = total
        self.desc = desc
        self.unit = unit
        self.disable = (not sys.stderr.isatty()) if disable is None else disable
        self.succeeded = 0
        self.failed = 0
        self._pbar: tqdm | None = None

    def __enter__(self) -> "ProgressBar":
        self._pbar = tqdm(
            total=self.total,
            desc=self.desc,
            unit=self.unit,
            ncols=80,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
            ascii=not _supports_unicode(),
            disable=self.disable,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def record(self, success: bool) -> None:
        """Advance by one file and refresh the success/failure postfix."""
        if success:
            self.succeeded += 1
        else:
            self.failed += 1
        if self._pbar is not None:
            self._pbar.set_postfix({"ok": self.succeeded, "failed": self.failed})
            self._pbar.update(1)

    def close(self) -> None:
        """Manually close and cleanup progress bar."""
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None
