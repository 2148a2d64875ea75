"""Shared fixtures for the accessibility pipeline test suite.

The FakeWorkflowClient keeps uploaded bytes in memory and hands them back
unchanged on download, so a successful run writes an exact copy of the input
to the output path.
"""

from __future__ import annotations

import itertools
from pathlib import Path
import threading

import pytest

from perfectworks_pipeline.clients.exceptions import (
    NotFoundError,
    RemoteError,
)
from perfectworks_pipeline.clients.temp_file_utils import atomic_output_file
from perfectworks_pipeline.clients.workflow_client import WorkflowClient
from perfectworks_pipeline.domain.config import (
    ApiConfig,
    AppConfig,
    PathsConfig,
    ProcessingConfig,
)
from perfectworks_pipeline.domain.models import (
    AIModel,
    DownloadTicket,
    MimeType,
    ProcessingTicket,
    RemoteFileRecord,
    UploadTicket,
)

PDF_BYTES = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"
HTML_BYTES = b"<!DOCTYPE html><html><body><h1>Report</h1></body></html>"

WORKFLOW_METHODS = (
    "request_upload_ticket",
    "upload_bytes",
    "register_file",
    "trigger_processing",
    "fetch_record",
    "request_download_ticket",
    "download_bytes",
)


class FakeWorkflowClient(WorkflowClient):
    """In-memory workflow client that echoes uploaded bytes on download.

    Failures are injected per (filename, method) with ``fail_on``. All calls
    are recorded as ``(method, filename)`` tuples.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.calls: list[tuple[str, str]] = []
        self.models: dict[str, AIModel | None] = {}
        self.storage: dict[str, bytes] = {}
        self.records: dict[str, RemoteFileRecord] = {}
        self._failures: dict[tuple[str, str], Exception] = {}
        self._file_ids: dict[str, str] = {}
        self.close_count = 0

    def fail_on(
        self, filename: str, method: str, error: Exception | None = None
    ) -> None:
        assert method in WORKFLOW_METHODS, method
        self._failures[(filename, method)] = error or RemoteError(
            f"Injected failure in {method}", http_status=500
        )

    def calls_for(self, filename: str) -> list[str]:
        with self._lock:
            return [method for method, name in self.calls if name == filename]

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def _enter(self, method: str, filename: str) -> None:
        with self._lock:
            self.calls.append((method, filename))
        error = self._failures.get((filename, method))
        if error is not None:
            raise error

    def _next_id(self) -> str:
        with self._lock:
            return f"file-{next(self._ids)}"

    def request_upload_ticket(
        self, filename: str, mime_type: MimeType, size_bytes: int
    ) -> UploadTicket:
        self._enter("request_upload_ticket", filename)
        key = f"uploads/{self._next_id()}/{filename}"
        return UploadTicket(upload_url=f"https://storage.test/{key}", object_key=key)

    def upload_bytes(
        self, ticket: UploadTicket, local_path: Path, mime_type: MimeType
    ) -> None:
        self._enter("upload_bytes", local_path.name)
        data = local_path.read_bytes()
        with self._lock:
            self.storage[ticket.object_key] = data

    def register_file(self, filename: str, object_key: str) -> RemoteFileRecord:
        self._enter("register_file", filename)
        if object_key not in self.storage:
            raise RemoteError("Failed to create file record", http_status=400)
        record = RemoteFileRecord(
            id=self._next_id(), filename=filename, object_key=object_key
        )
        with self._lock:
            self.records[record.id] = record
            self._file_ids[record.id] = filename
        return record

    def trigger_processing(
        self, file_id: str, model: AIModel | None = None
    ) -> ProcessingTicket:
        filename = self._file_ids.get(file_id, file_id)
        self._enter("trigger_processing", filename)
        original = self.records[file_id]
        processed = RemoteFileRecord(
            id=self._next_id(),
            filename=original.filename,
            object_key=original.object_key,
            parent_file_id=original.id,
        )
        with self._lock:
            self.records[processed.id] = processed
            self._file_ids[processed.id] = filename
            self.models[filename] = model
        return ProcessingTicket(processed_file_id=processed.id)

    def fetch_record(self, file_id: str) -> RemoteFileRecord:
        self._enter("fetch_record", self._file_ids.get(file_id, file_id))
        try:
            return self.records[file_id]
        except KeyError:
            raise NotFoundError(
                "Failed to get file details",
                http_status=404,
                detail=f"File not found: {file_id}",
            ) from None

    def request_download_ticket(
        self, file_id: str, expires_in: int = 3600
    ) -> DownloadTicket:
        self._enter("request_download_ticket", self._file_ids.get(file_id, file_id))
        return DownloadTicket(download_url=f"https://storage.test/download/{file_id}")

    def download_bytes(self, ticket: DownloadTicket, output_path: Path) -> None:
        file_id = ticket.download_url.rsplit("/", 1)[-1]
        filename = self._file_ids.get(file_id, file_id)
        with self._lock:
            self.calls.append(("download_bytes", filename))
        record = self.records[file_id]
        data = self.storage[record.object_key]
        error = self._failures.get((filename, "download_bytes"))
        with atomic_output_file(output_path) as handle:
            if error is not None:
                # Fail mid-transfer, after part of the body was written
                handle.write(data[: len(data) // 2])
                raise error
            handle.write(data)

    def close(self) -> None:
        self.close_count += 1


@pytest.fixture
def fake_client() -> FakeWorkflowClient:
    return FakeWorkflowClient()


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    """Directory with two PDFs, one HTML file and one unsupported file."""
    directory = tmp_path / "input"
    directory.mkdir()
    (directory / "a.pdf").write_bytes(PDF_BYTES)
    (directory / "b.pdf").write_bytes(PDF_BYTES + b"% second\n")
    (directory / "c.html").write_bytes(HTML_BYTES)
    (directory / "notes.txt").write_text("not a document")
    return directory


@pytest.fixture
def make_config():
    """Factory building a validated AppConfig for the given paths."""

    def _make(input_path: Path, output_path: Path, **processing) -> AppConfig:
        return AppConfig(
            api=ApiConfig(api_key="pw_test_key_1234567890"),
            paths=PathsConfig(input=str(input_path), output=str(output_path)),
            processing=ProcessingConfig(**processing),
        )

    return _make
