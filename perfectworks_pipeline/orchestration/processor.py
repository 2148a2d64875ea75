"""
FileProcessor runs a single file through the complete accessibility workflow.

This module provides the FileProcessor class which drives one work item
through seven remote calls: request upload URL → upload → register file
record → process for accessibility → fetch processed record → request
download URL → download. The sequence is a fail-fast state machine:

    UPLOADING → UPLOADED → REGISTERING → REGISTERED → PROCESSING →
    PROCESSED → DOWNLOADING_RESULT → DONE

Any failure moves the item to FAILED and stops the sequence. Remote records
created by earlier steps are left as they are; there is no rollback.

Example usage:
    >>> from perfectworks_pipeline.clients.perfectworks_client import (
    ...     PerfectWorksClient,
    ... )
    >>> from perfectworks_pipeline.orchestration.processor import FileProcessor
    >>>
    >>> processor = FileProcessor(client)
    >>> outcome = processor.run(WorkItem(Path("in.pdf"), Path("out/in.pdf")))
    >>> print(f"Success: {outcome.success}")
"""

import logging
import time

from perfectworks_pipeline.clients.workflow_client import WorkflowClient
from perfectworks_pipeline.domain.exceptions import UnsupportedTypeError
from perfectworks_pipeline.domain.file_classifier import classify
from perfectworks_pipeline.domain.models import (
    AIModel,
    FileKind,
    PipelineOutcome,
    PipelineStage,
    RemoteFileRecord,
    WorkItem,
)
from perfectworks_pipeline.utils.logging import PipelineReporter, log_error

TOTAL_STEPS = 7


class FileProcessor:
    """Runs the seven-step accessibility workflow for one file.

    The processor keeps no per-item state on the instance, so several ``run``
    calls may execute concurrently on different work items.

    Attributes:
        client: Workflow client issuing the remote calls.
        reporter: Reporter for per-step progress lines.
        download_expires_in: Lifetime requested for download URLs.
        logger: Logger instance for this processor.
    """

    def __init__(
        self,
        client: WorkflowClient,
        reporter: PipelineReporter | None = None,
        download_expires_in: int = 3600,
    ) -> None:
        self.client = client
        self.reporter = reporter or PipelineReporter()
        self.download_expires_in = download_expires_in
        self.logger = logging.getLogger(__name__)

    def _step(self, number: int, filename: str, action: str) -> None:
        self.reporter.step_with_file(number, TOTAL_STEPS, filename, action)

    def run(self, item: WorkItem, model: AIModel | None = None) -> PipelineOutcome:
        """Process a single work item through the complete workflow.

        The input's kind is checked before anything else: unsupported files
        fail without a single network call. The model selector is forwarded
        only for document (PDF) inputs.

        Args:
            item: Input and output paths.
            model: Optional accessibility model.

        Returns:
            PipelineOutcome with the original and processed records on
            success, or the error message and failed stage on failure.

        Raises:
            No exceptions are raised. All errors are captured and returned in
            the PipelineOutcome.
        """
        start_time = time.time()
        filename = item.input_path.name
        stage = PipelineStage.UPLOADING
        original: RemoteFileRecord | None = None
        processed: RemoteFileRecord | None = None

        try:
            kind = classify(item.input_path)
            if kind is FileKind.UNSUPPORTED:
                raise UnsupportedTypeError(item.input_path)
            mime_type = kind.mime_type
            size = item.input_path.stat().st_size

            self._step(1, filename, "Generating upload URL for")
            ticket = self.client.request_upload_ticket(filename, mime_type, size)

            self._step(2, filename, "Uploading to cloud storage")
            self.client.upload_bytes(ticket, item.input_path, mime_type)

            stage = PipelineStage.REGISTERING
            self._step(3, filename, "Creating file record for")
            original = self.client.register_file(filename, ticket.object_key)

            stage = PipelineStage.PROCESSING
            self._step(4, filename, "Processing for accessibility")
            processing = self.client.trigger_processing(
                original.id, model if kind is FileKind.DOCUMENT else None
            )

            self._step(5, filename, "Getting processed file details for")
            processed = self.client.fetch_record(processing.processed_file_id)

            stage = PipelineStage.DOWNLOADING_RESULT
            self._step(6, filename, "Generating download URL for")
            download = self.client.request_download_ticket(
                processed.id, self.download_expires_in
            )

            self._step(7, filename, "Downloading processed")
            self.client.download_bytes(download, item.output_path)

        except Exception as e:
            log_error(self.logger, e, {"filename": filename, "step": stage.value})
            return PipelineOutcome(
                input_path=item.input_path,
                output_path=item.output_path,
                success=False,
                original_record=original,
                processed_record=processed,
                error_message=str(e) or type(e).__name__,
                error_type=type(e).__name__,
                failed_stage=stage,
                duration=time.time() - start_time,
            )

        self.logger.debug(
            f"{filename}: original file {original.id}, processed file {processed.id}"
        )
        return PipelineOutcome(
            input_path=item.input_path,
            output_path=item.output_path,
            success=True,
            original_record=original,
            processed_record=processed,
            duration=time.time() - start_time,
        )
