"""
Domain models for the PerfectWorks Accessibility Pipeline.

This module defines the core data structures that represent the flow of
information through the accessibility workflow, from local work items to
remote file records and signed transfer tickets to per-file outcomes and the
final batch report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


class FileKind(Enum):
    """Logical type of a local input file, derived from its extension."""

    DOCUMENT = "document"
    MARKUP = "markup"
    UNSUPPORTED = "unsupported"

    @property
    def is_supported(self) -> bool:
        return self is not FileKind.UNSUPPORTED

    @property
    def mime_type(self) -> MimeType:
        """MIME type sent to the API for this kind.

        Raises:
            ValueError: For UNSUPPORTED, which never reaches the API.
        """
        try:
            return _KIND_MIME_TYPES[self]
        except KeyError:
            raise ValueError(f"No MIME type for {self.value} files") from None


class MimeType(Enum):
    PDF = "application/pdf"
    HTML = "text/html"


class FileFormat(Enum):
    PDF = "pdf"
    HTML = "html"


class FileType(Enum):
    ORIGINAL = "original"
    ACCESSIBLE = "accessible"
    CONVERTED = "converted"


class FileStatus(Enum):
    """Server-side lifecycle of a file record."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"
    DELETED = "deleted"


class AIModel(Enum):
    """Accessibility models selectable for document (PDF) processing."""

    DOC_LUMEN = "doc-lumen"
    DOC_PRISM = "doc-prism"
    DOC_VISION = "doc-vision"


class PipelineStage(Enum):
    """States of the single-item workflow state machine.

    Stages advance strictly in declaration order up to DONE. FAILED is
    terminal and reachable from any non-terminal stage.
    """

    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    REGISTERING = "registering"
    REGISTERED = "registered"
    PROCESSING = "processing"
    PROCESSED = "processed"
    DOWNLOADING_RESULT = "downloading_result"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.DONE, PipelineStage.FAILED)


_KIND_MIME_TYPES = {
    FileKind.DOCUMENT: MimeType.PDF,
    FileKind.MARKUP: MimeType.HTML,
}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from the API, tolerating a trailing 'Z'."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _enum_or_none(enum_cls: type[Enum], value: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class WorkItem:
    """One input file queued for processing together with its output path."""

    input_path: Path
    output_path: Path


@dataclass(frozen=True)
class ClassifiedFile:
    """A local file with its logical kind and size information."""

    path: Path
    kind: FileKind
    size_bytes: int
    char_count: int | None = None
    """Decoded text length. Only computed for MARKUP files."""


@dataclass
class FileAnalysis:
    """Result of scanning the input path before processing.

    Collects supported files grouped by kind, plus the names of skipped
    unsupported entries, so the caller can show what is about to be sent.
    """

    documents: list[ClassifiedFile] = field(default_factory=list)
    markup: list[ClassifiedFile] = field(default_factory=list)
    unsupported: list[ClassifiedFile] = field(default_factory=list)

    @property
    def supported(self) -> list[ClassifiedFile]:
        """Supported files in name order."""
        return sorted(self.documents + self.markup, key=lambda f: f.path.name)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def markup_count(self) -> int:
        return len(self.markup)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.documents + self.markup)

    @property
    def markup_chars(self) -> int:
        return sum(f.char_count or 0 for f in self.markup)


@dataclass(frozen=True)
class UploadTicket:
    """Short-lived signed URL for uploading a single file."""

    upload_url: str
    object_key: str
    expires_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> UploadTicket:
        return cls(
            upload_url=data["uploadUrl"],
            object_key=data["objectKey"],
            expires_at=parse_timestamp(data.get("expiresAt")),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


@dataclass(frozen=True)
class DownloadTicket:
    """Short-lived signed URL for downloading a processed file."""

    download_url: str
    expires_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DownloadTicket:
        return cls(
            download_url=data["downloadUrl"],
            expires_at=parse_timestamp(data.get("expiresAt")),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


@dataclass(frozen=True)
class ProcessingTicket:
    """Response of the accessibility processing request."""

    processed_file_id: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ProcessingTicket:
        return cls(processed_file_id=str(data["processedFileId"]))


@dataclass(frozen=True)
class RemoteFileRecord:
    """Server-side record of an uploaded or derived file.

    Owned by the remote service; the client only reads it. Unknown enum
    values from the API are kept as None rather than rejected so a newer
    server does not break older clients.
    """

    id: str
    """File's unique identifier on the server."""

    filename: str
    file_format: FileFormat | None = None
    file_type: FileType | None = None
    mime_type: str | None = None
    size: int | None = None
    status: FileStatus | None = None
    object_key: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    upload_date: datetime | None = None
    processed_at: datetime | None = None
    parent_file_id: str | None = None
    """Id of the original file for derived (accessible/converted) files."""

    page_count: int | None = None
    """Number of pages, reported for PDF files."""

    chars_count: int | None = None
    """Number of characters, reported for HTML files."""

    analysis_result: dict[str, Any] | None = None
    """Stored audit results, present once the file has been analyzed."""

    is_active: bool = True

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteFileRecord:
        """Build a record from the API's camelCase JSON representation."""
        return cls(
            id=str(data["id"]),
            filename=data.get("filename", ""),
            file_format=_enum_or_none(FileFormat, data.get("fileFormat")),
            file_type=_enum_or_none(FileType, data.get("fileType")),
            mime_type=data.get("mimeType"),
            size=data.get("fileSize"),
            status=_enum_or_none(FileStatus, data.get("status")),
            object_key=data.get("objectKey"),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            upload_date=parse_timestamp(data.get("uploadDate")),
            processed_at=parse_timestamp(data.get("processedAt")),
            parent_file_id=data.get("parentFileId"),
            page_count=data.get("pageCount"),
            chars_count=data.get("charsCount"),
            analysis_result=data.get("analysisResult"),
            is_active=data.get("isActive", True),
        )


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal result of running one WorkItem through the workflow.

    Produced exactly once per WorkItem. A failed outcome always carries a
    non-empty error message and the stage the workflow was in when it failed.
    """

    input_path: Path
    output_path: Path
    success: bool
    original_record: RemoteFileRecord | None = None
    processed_record: RemoteFileRecord | None = None
    error_message: str | None = None
    error_type: str | None = None
    """Exception class name for failed outcomes, for grouping in reports."""

    failed_stage: PipelineStage | None = None
    duration: float = 0.0
    """Processing duration in seconds."""

    @property
    def filename(self) -> str:
        return self.input_path.name


@dataclass(frozen=True)
class BatchReport:
    """Read-only summary of a batch run."""

    total_items: int
    succeeded: int
    failed: int
    outcomes: tuple[PipelineOutcome, ...]
    elapsed: float
    """Wall-clock duration of the batch in seconds."""

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    @property
    def all_failed(self) -> bool:
        return self.total_items > 0 and self.succeeded == 0

    @property
    def failed_outcomes(self) -> list[PipelineOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]
