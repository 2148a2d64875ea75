"""
BatchPipeline schedules work items through FileProcessor in bounded waves.

Items are split into consecutive waves of at most ``concurrency`` items. All
items of a wave run concurrently on a thread pool; the next wave starts only
after every item of the current wave has reached a terminal outcome. A failed
item never cancels its siblings and never aborts the batch.

Outcomes are returned in the same order as the input items, regardless of
the order in which they complete.

Example usage:
    >>> from perfectworks_pipeline.orchestration.processor import FileProcessor
    >>> from perfectworks_pipeline.orchestration.pipeline import BatchPipeline
    >>>
    >>> pipeline = BatchPipeline(FileProcessor(client))
    >>> report = pipeline.run(items, concurrency=3)
    >>> print(f"{report.succeeded} succeeded, {report.failed} failed")
"""

from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
import logging
import time

from perfectworks_pipeline.domain.models import (
    AIModel,
    BatchReport,
    PipelineOutcome,
    PipelineStage,
    WorkItem,
)
from perfectworks_pipeline.domain.report import build_report
from perfectworks_pipeline.orchestration.processor import FileProcessor
from perfectworks_pipeline.utils.logging import PipelineReporter
from perfectworks_pipeline.utils.progress import ProgressBar


def split_into_waves(items: Sequence[WorkItem], size: int) -> list[list[WorkItem]]:
    """Split items into consecutive chunks of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"Wave size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchPipeline:
    """Runs a list of work items through FileProcessor, one wave at a time.

    Attributes:
        processor: Single-item workflow runner.
        reporter: Reporter for wave and per-file progress.
        show_progress: Whether to display a progress bar. None lets the bar
            decide from the terminal.
        logger: Logger instance for this pipeline.
    """

    def __init__(
        self,
        processor: FileProcessor,
        reporter: PipelineReporter | None = None,
        show_progress: bool | None = None,
    ) -> None:
        self.processor = processor
        self.reporter = reporter or PipelineReporter()
        self.show_progress = show_progress
        self.logger = logging.getLogger(__name__)

    def _run_one(self, item: WorkItem, model: AIModel | None) -> PipelineOutcome:
        return self.processor.run(item, model)

    def _run_wave(
        self,
        wave: list[WorkItem],
        model: AIModel | None,
        pbar: ProgressBar,
    ) -> list[PipelineOutcome]:
        """Run one wave to completion and return its outcomes in wave order."""
        results: list[PipelineOutcome | None] = [None] * len(wave)

        with ThreadPoolExecutor(max_workers=len(wave)) as executor:
            futures: dict[Future, int] = {
                executor.submit(self._run_one, item, model): idx
                for idx, item in enumerate(wave)
            }
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    # Raised outside the processor's own error handling
                    item = wave[idx]
                    self.logger.error(
                        f"Unexpected error while processing {item.input_path.name}",
                        exc_info=True,
                    )
                    outcome = PipelineOutcome(
                        input_path=item.input_path,
                        output_path=item.output_path,
                        success=False,
                        error_message=str(e) or type(e).__name__,
                        error_type=type(e).__name__,
                        failed_stage=PipelineStage.FAILED,
                    )
                results[idx] = outcome
                self.reporter.complete_file(outcome)
                pbar.record(outcome.success)

        return [outcome for outcome in results if outcome is not None]

    def run_batch(
        self,
        items: Sequence[WorkItem],
        concurrency: int = 3,
        model: AIModel | None = None,
    ) -> list[PipelineOutcome]:
        """Process all items in waves of at most ``concurrency`` items.

        Args:
            items: Work items to process. Output paths must be distinct.
            concurrency: Maximum number of items processed at the same time.
            model: Optional accessibility model forwarded to each item.

        Returns:
            One outcome per item, in input order.

        Raises:
            ValueError: If concurrency is lower than 1.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        waves = split_into_waves(items, concurrency)
        outcomes: list[PipelineOutcome] = []
        self.logger.debug(
            f"Scheduling {len(items)} file(s) in {len(waves)} batch(es) "
            f"of up to {concurrency}"
        )

        with ProgressBar(
            total=len(items),
            desc="Accessibility",
            disable=None if self.show_progress is None else not self.show_progress,
        ) as pbar:
            for number, wave in enumerate(waves, start=1):
                self.reporter.start_wave(number, len(waves), len(wave))
                wave_start = time.time()

                wave_outcomes = self._run_wave(wave, model, pbar)

                succeeded = sum(1 for outcome in wave_outcomes if outcome.success)
                self.reporter.complete_wave(
                    succeeded,
                    len(wave_outcomes) - succeeded,
                    time.time() - wave_start,
                )
                outcomes.extend(wave_outcomes)

        return outcomes

    def run(
        self,
        items: Sequence[WorkItem],
        concurrency: int = 3,
        model: AIModel | None = None,
    ) -> BatchReport:
        """Process all items and summarize the run in a BatchReport."""
        started_at = time.time()
        outcomes = self.run_batch(items, concurrency, model)
        return build_report(outcomes, started_at)
