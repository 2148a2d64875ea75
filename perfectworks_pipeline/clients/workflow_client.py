"""
Abstract base class for accessibility workflow clients.

This module defines the interface the single-item pipeline drives. The
workflow is a fixed sequence of seven calls:

    # 1. ticket = client.request_upload_ticket("doc.pdf", MimeType.PDF, size)
    # 2. client.upload_bytes(ticket, path, MimeType.PDF)
    # 3. record = client.register_file("doc.pdf", ticket.object_key)
    # 4. processing = client.trigger_processing(record.id, model)
    # 5. processed = client.fetch_record(processing.processed_file_id)
    # 6. download = client.request_download_ticket(processed.id)
    # 7. client.download_bytes(download, output_path)

Implementations are stateless between calls and safe to use from several
worker threads at once.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from ..domain.models import (
    AIModel,
    DownloadTicket,
    MimeType,
    ProcessingTicket,
    RemoteFileRecord,
    UploadTicket,
)


class WorkflowClient(ABC):
    """Interface for the seven remote calls of the accessibility workflow.

    Every method performs exactly one request/response round trip and raises
    a ``PerfectWorksClientError`` subclass on failure.
    """

    @abstractmethod
    def request_upload_ticket(
        self, filename: str, mime_type: MimeType, size_bytes: int
    ) -> UploadTicket:
        """Request a signed upload URL for a file.

        Raises:
            RemoteError: If the server rejects the filename or size.
        """

    @abstractmethod
    def upload_bytes(
        self, ticket: UploadTicket, local_path: Path, mime_type: MimeType
    ) -> None:
        """Stream a local file to the ticket's signed URL.

        Raises:
            TransferError: On network failure, timeout or storage rejection.
        """

    @abstractmethod
    def register_file(self, filename: str, object_key: str) -> RemoteFileRecord:
        """Create the file record for an uploaded object.

        Raises:
            RemoteError: On duplicate or invalid object key.
        """

    @abstractmethod
    def trigger_processing(
        self, file_id: str, model: AIModel | None = None
    ) -> ProcessingTicket:
        """Process a file for accessibility. Blocks until the server is done.

        Raises:
            RemoteError: With server status and message on failure.
        """

    @abstractmethod
    def fetch_record(self, file_id: str) -> RemoteFileRecord:
        """Fetch a file record by id.

        Raises:
            NotFoundError: If the id is unknown.
        """

    @abstractmethod
    def request_download_ticket(
        self, file_id: str, expires_in: int = 3600
    ) -> DownloadTicket:
        """Request a signed download URL for a file."""

    @abstractmethod
    def download_bytes(self, ticket: DownloadTicket, output_path: Path) -> None:
        """Download the ticket's file to ``output_path``.

        Parent directories are created as needed. An existing file at
        ``output_path`` is only replaced once the transfer has completed.

        Raises:
            TransferError: On network failure, timeout or write failure.
        """

    def close(self) -> None:
        """Release connections held by the client. The client stays usable."""
