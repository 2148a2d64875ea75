"""Command implementations for the PerfectWorks Accessibility Pipeline CLI.

This module contains the command functions that implement the dry-run
analysis and the processing workflow. These commands are called from the main
entry point after configuration validation and client initialization.
"""

import logging
from pathlib import Path

from perfectworks_pipeline.clients.perfectworks_client import mask_api_key
from perfectworks_pipeline.clients.workflow_client import WorkflowClient
from perfectworks_pipeline.domain.config import AppConfig
from perfectworks_pipeline.domain.exceptions import PreconditionError
from perfectworks_pipeline.domain.file_classifier import scan_input
from perfectworks_pipeline.domain.models import BatchReport, FileAnalysis, WorkItem
from perfectworks_pipeline.orchestration.pipeline import BatchPipeline
from perfectworks_pipeline.orchestration.processor import FileProcessor
from perfectworks_pipeline.utils.logging import PipelineReporter


def plan_work_items(
    analysis: FileAnalysis,
    input_path: Path,
    output_path: Path,
    force: bool = False,
) -> list[WorkItem]:
    """Pair every supported input file with its output path.

    When the input is a file, the output is the target file path (or, if it
    is an existing directory, the file keeps its name inside it). When the
    input is a directory, the output is a directory and every supported file
    keeps its name.

    Args:
        analysis: Result of scanning the input path.
        input_path: Input file or directory.
        output_path: Output file or directory.
        force: Allow existing output files to be replaced.

    Returns:
        Work items in input order.

    Raises:
        PreconditionError: If the output location is unusable, an output
            file already exists and ``force`` is off, or two items would
            write the same output file.
    """
    files = [info.path for info in analysis.supported]

    if input_path.is_dir():
        if output_path.exists() and not output_path.is_dir():
            raise PreconditionError(
                f"Output path must be a directory when input is a directory: "
                f"{output_path}"
            )
        items = [WorkItem(path, output_path / path.name) for path in files]
    elif output_path.is_dir():
        items = [WorkItem(path, output_path / path.name) for path in files]
    else:
        items = [WorkItem(path, output_path) for path in files]

    seen: dict[Path, WorkItem] = {}
    for item in items:
        key = item.output_path.resolve()
        if key in seen:
            raise PreconditionError(
                f"Duplicate output path {item.output_path} for "
                f"{seen[key].input_path.name} and {item.input_path.name}"
            )
        seen[key] = item

    if not force:
        existing = [item.output_path for item in items if item.output_path.exists()]
        if existing:
            listed = ", ".join(str(path) for path in existing[:5])
            more = f" and {len(existing) - 5} more" if len(existing) > 5 else ""
            raise PreconditionError(
                f"Output file(s) already exist: {listed}{more}. "
                f"Use processing.force=true to overwrite."
            )

    return items


def _prepare(
    cfg: AppConfig, reporter: PipelineReporter
) -> tuple[FileAnalysis, list[WorkItem]]:
    """Scan the input, show the analysis and plan the work items.

    Raises:
        PreconditionError: If the input is a single file of an unsupported
            type, or if planning the work items fails.
    """
    input_path = Path(cfg.paths.input)
    output_path = Path(cfg.paths.output)

    analysis = scan_input(input_path)
    if input_path.is_file() and analysis.unsupported:
        raise PreconditionError(
            f"Unsupported file type: {input_path.name} "
            f"(expected .pdf, .html or .htm)"
        )
    reporter.show_analysis(analysis)
    if not analysis.supported:
        return analysis, []

    items = plan_work_items(analysis, input_path, output_path, cfg.processing.force)
    return analysis, items


def _determine_exit_code(report: BatchReport) -> int:
    """Determine the appropriate exit code based on the batch report.

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete failure
    """
    if report.failed == 0:
        return 0  # Success, or nothing to process
    elif report.succeeded > 0:
        return 1  # Partial failure
    else:
        return 2  # Complete failure


def analyze_command(cfg: AppConfig, logger: logging.Logger) -> int:
    """Execute dry-run mode: analyze the input without uploading anything.

    Runs the same input checks as a real run, so an existing output file or
    a duplicate output path is reported here as well.

    Args:
        cfg: Application configuration object
        logger: Logger instance for logging messages

    Returns:
        Exit code: 0 for success
    """
    reporter = PipelineReporter(logger, verbose=cfg.processing.verbose)
    reporter.info("Dry-run mode enabled - analyzing input without processing")

    _, items = _prepare(cfg, reporter)
    if not items:
        reporter.warning("No supported files found (PDF or HTML)")
        return 0

    for item in items:
        logger.info(f"  {item.input_path.name} -> {item.output_path}")
    reporter.info(f"{len(items)} file(s) would be processed")
    return 0


def process_command(
    cfg: AppConfig,
    logger: logging.Logger,
    client: WorkflowClient,
    show_progress: bool | None = None,
) -> int:
    """Execute the full processing workflow.

    Analyzes the input, plans the work items, runs them through the batch
    pipeline and displays the per-file results, the final summary and the
    failed files with suggestions.

    Args:
        cfg: Application configuration object
        logger: Logger instance for logging messages
        client: Initialized workflow client instance
        show_progress: Force the progress bar on or off. None auto-detects.

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete failure

    Raises:
        PreconditionError: If the input or output paths are unusable. Raised
            before any network call.
    """
    reporter = PipelineReporter(logger, verbose=cfg.processing.verbose)
    reporter.debug(f"Input: {cfg.paths.input}")
    reporter.debug(f"Output: {cfg.paths.output}")
    reporter.debug(f"Base URL: {cfg.api.base_url}")
    reporter.debug(f"Concurrency: {cfg.processing.concurrency}")
    reporter.debug(f"API key: {mask_api_key(cfg.api.api_key)}")

    _, items = _prepare(cfg, reporter)
    if not items:
        reporter.warning("No supported files found (PDF or HTML)")
        return 0

    reporter.info(
        f"Processing {len(items)} file(s) with concurrency "
        f"{cfg.processing.concurrency}"
    )
    processor = FileProcessor(
        client, reporter, download_expires_in=cfg.api.download_expires_in
    )
    pipeline = BatchPipeline(processor, reporter, show_progress=show_progress)
    try:
        report = pipeline.run(
            items,
            concurrency=cfg.processing.concurrency,
            model=cfg.processing.ai_model,
        )
    finally:
        client.close()

    reporter.show_outcomes(report.outcomes)
    reporter.show_final_summary(report)
    reporter.show_failures(report)

    return _determine_exit_code(report)
