"""Logging utilities for the PerfectWorks Accessibility Pipeline.

This module provides structured logging functions and the PipelineReporter
that integrate with Hydra's logging system and support unicode/emoji for
user-friendly terminal output.
"""

from collections.abc import Sequence
import codecs
import logging
import os
import sys
from typing import Any

from tabulate import tabulate

from perfectworks_pipeline.domain.models import (
    BatchReport,
    FileAnalysis,
    PipelineOutcome,
)

PACKAGE_LOGGER = "perfectworks_pipeline"

_UNICODE_CODECS = frozenset({"utf-8", "utf-16", "utf-32", "utf-8-sig"})


def _supports_unicode() -> bool:
    """Whether emoji and box-drawing characters can be written to stdout.

    ``FORCE_ASCII=1`` turns unicode output off regardless of the encoding.
    Encoding aliases such as ``UTF8`` are normalized through ``codecs``.
    """
    if os.environ.get("FORCE_ASCII") == "1":
        return False
    encoding = getattr(sys.stdout, "encoding", None)
    if not encoding:
        return False
    try:
        return codecs.lookup(encoding).name in _UNICODE_CODECS
    except LookupError:
        return False


def _format_with_emoji(message: str, emoji: str, fallback: str) -> str:
    """Prefix a message with an emoji, or with an ASCII tag like ``[OK]``."""
    prefix = emoji if _supports_unicode() else fallback
    return f"{prefix} {message}"


def _table_format() -> str:
    return "grid" if _supports_unicode() else "simple"


def format_duration(seconds: float) -> str:
    """Format a duration as "3m 15s" or "12.3s"."""
    minutes = int(seconds // 60)
    if minutes > 0:
        return f"{minutes}m {int(seconds % 60)}s"
    return f"{seconds:.1f}s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Initialize logging configuration for the pipeline.

    Hydra configures the root handlers when ``@hydra.main()`` is used, so
    this function only adjusts the package log level and returns the logger
    the command layer reports through.

    Args:
        verbose: Lower the package log level to DEBUG.

    Returns:
        Configured logger instance ready for use

    Example:
        >>> logger = setup_logging(verbose=True)
        >>> logger.debug("Input: ./documents")
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logging.getLogger(f"{PACKAGE_LOGGER}.cli")


def get_error_suggestion(error_message: str) -> str:
    """Get actionable suggestion based on error message pattern.

    Args:
        error_message: Error message string to analyze

    Returns:
        Actionable suggestion string based on error pattern

    Example:
        >>> get_error_suggestion("Rate limit exceeded - please try again later")
        'Wait a minute and retry, or lower processing.concurrency'
    """
    error_lower = error_message.lower()

    if "rate limit" in error_lower or "429" in error_lower:
        return "Wait a minute and retry, or lower processing.concurrency"
    elif "api key" in error_lower or "authentication" in error_lower:
        return "Check api.api_key validity and permissions"
    elif "forbidden" in error_lower:
        return "Check that your API key has access to file processing"
    elif "base url" in error_lower:
        return "Check api.base_url"
    elif "unsupported file type" in error_lower:
        return "Only PDF and HTML files can be processed"
    elif (
        "no response" in error_lower
        or "connection" in error_lower
        or "timeout" in error_lower
    ):
        return "Check internet connection and retry"
    elif "upload" in error_lower:
        return "Check file integrity and size limits"
    elif "server error" in error_lower:
        return "The service failed, retry later"
    else:
        return "Review error details and check logs for more information"


def log_error(logger: logging.Logger, error: Exception, context: dict) -> None:
    """Log an error with structured context information.

    Args:
        logger: Logger instance to use for logging
        error: Exception that was raised
        context: Dictionary containing context information such as:
            - filename: Name of the file being processed
            - step: Processing step where error occurred

    Example:
        >>> log_error(logger, ValueError("Invalid format"), {"filename": "a.pdf",
        ...           "step": "registering"})
    """
    filename = context.get("filename", "Unknown")
    step = context.get("step", "Unknown")
    header = _format_with_emoji(f'Error processing "{filename}"', "❌", "[ERROR]")
    logger.error(
        f"{header}\n   Step: {step}\n   Error: {type(error).__name__}: {error}"
    )
    # Full traceback only at debug level, the summary already lists the message
    if sys.exc_info()[0] is not None:
        logger.debug("Full traceback:", exc_info=True)


class PipelineReporter:
    """Progress and summary reporting for a pipeline run.

    A thin layer over a ``logging.Logger`` that the batch scheduler and the
    single-item pipeline receive explicitly. It renders the emoji/ASCII
    prefixes and the tabulated summaries.

    Args:
        logger: Logger to write through.
        verbose: Whether per-step progress lines are emitted.
    """

    def __init__(self, logger: logging.Logger | None = None, verbose: bool = False):
        self.logger = logger or logging.getLogger(PACKAGE_LOGGER)
        self.verbose = verbose

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(_format_with_emoji(message, "ℹ️ ", "[INFO]"))

    def warning(self, message: str) -> None:
        self.logger.warning(_format_with_emoji(message, "⚠️ ", "[WARN]"))

    def error(self, message: str) -> None:
        self.logger.error(_format_with_emoji(message, "❌", "[ERROR]"))

    def success(self, message: str) -> None:
        self.logger.info(_format_with_emoji(message, "✅", "[OK]"))

    def step(self, step: int, total: int, message: str) -> None:
        self.logger.info(f"[{step}/{total}] {message}")

    def step_with_file(self, step: int, total: int, filename: str, action: str) -> None:
        """Log one workflow step for a file. Only emitted in verbose mode."""
        if self.verbose:
            self.logger.info(f"[{step}/{total}] {action} {filename}")

    def summary(self, title: str, rows: Sequence[tuple[str, Any]]) -> None:
        """Log a titled two-column table."""
        self.logger.info("")
        self.logger.info(_format_with_emoji(f"{title}:", "📊", "[SUMMARY]"))
        self.logger.info(tabulate(list(rows), tablefmt=_table_format()))

    def show_analysis(self, analysis: FileAnalysis) -> None:
        self.summary(
            "File Analysis",
            [
                ("PDF files", analysis.document_count),
                ("HTML files", analysis.markup_count),
                ("Total size", f"{analysis.total_bytes / (1024 * 1024):.2f} MB"),
                ("HTML characters", f"{analysis.markup_chars:,}"),
                ("Skipped (unsupported)", len(analysis.unsupported)),
            ],
        )

    def start_wave(self, wave_number: int, total_waves: int, size: int) -> None:
        self.step(wave_number, total_waves, f"Processing batch ({size} files)")

    def complete_wave(self, succeeded: int, failed: int, duration: float) -> None:
        elapsed = format_duration(duration)
        if failed == 0:
            self.success(f"Batch completed in {elapsed}: {succeeded} files processed")
        else:
            self.warning(
                f"Batch completed in {elapsed}: {succeeded} successful, "
                f"{failed} failed"
            )

    def complete_file(self, outcome: PipelineOutcome) -> None:
        if outcome.success:
            self.logger.debug(f"Completed {outcome.filename}")
        else:
            self.logger.error(
                _format_with_emoji(
                    f"Failed {outcome.filename}: {outcome.error_message}",
                    "✗",
                    "[FAIL]",
                )
            )

    def show_outcomes(self, outcomes: Sequence[PipelineOutcome]) -> None:
        """Log a per-file results table."""
        if not outcomes:
            return
        rows = []
        for outcome in outcomes:
            name = outcome.filename
            if len(name) > 40:
                name = name[:40] + "..."
            processed_id = (
                outcome.processed_record.id if outcome.processed_record else "-"
            )
            rows.append(
                [
                    name,
                    "OK" if outcome.success else "FAILED",
                    processed_id,
                    f"{outcome.duration:.1f}s",
                ]
            )
        self.logger.info("")
        self.logger.info(
            tabulate(
                rows,
                headers=["File", "Status", "Processed ID", "Time"],
                tablefmt=_table_format(),
            )
        )

    def show_final_summary(self, report: BatchReport) -> None:
        self.summary(
            "Processing Complete",
            [
                ("Total files", report.total_items),
                ("Successful", report.succeeded),
                ("Failed", report.failed),
                ("Duration", format_duration(report.elapsed)),
            ],
        )
        self.logger.info("")
        if report.all_succeeded:
            self.success("All files processed successfully!")
        elif report.all_failed:
            self.error("All files failed to process")
        else:
            self.warning(
                f"{report.succeeded} files processed, {report.failed} failed"
            )

    def show_failures(self, report: BatchReport) -> None:
        """Log failed files with their errors and a suggestion each."""
        failed = report.failed_outcomes
        if not failed:
            return
        self.logger.info("")
        self.logger.info(
            _format_with_emoji(
                f"Errors ({len(failed)} files failed):", "❌", "[ERRORS]"
            )
        )
        for idx, outcome in enumerate(failed, start=1):
            message = outcome.error_message or "Unknown error"
            self.logger.info(f'{idx}. "{outcome.filename}"')
            self.logger.info(f"   Error: {message}")
            self.logger.info(f"   Suggestion: {get_error_suggestion(message)}")
