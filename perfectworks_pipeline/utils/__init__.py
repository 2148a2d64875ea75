"""Utility functions and helpers for the PerfectWorks Accessibility Pipeline.

This package provides logging/reporting and progress tracking utilities that
integrate with Hydra's logging setup and support unicode/emoji for
user-friendly terminal output.
"""

from .logging import PipelineReporter, get_error_suggestion, log_error, setup_logging
from .progress import ProgressBar

__all__ = [
    "setup_logging",
    "log_error",
    "get_error_suggestion",
    "PipelineReporter",
    "ProgressBar",
]
