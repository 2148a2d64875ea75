"""Tests for the PerfectWorks HTTP client.

The client is driven through a fake ``requests.Session`` so the tests cover
envelope handling, status translation and file transfers without a network.
"""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Any

import pytest
import requests

from perfectworks_pipeline.clients.exceptions import (
    ErrorCategory,
    NotFoundError,
    PerfectWorksClientError,
    RemoteError,
    TransferError,
)
from perfectworks_pipeline.clients.perfectworks_client import (
    PerfectWorksClient,
    mask_api_key,
)
from perfectworks_pipeline.domain.config import ApiConfig
from perfectworks_pipeline.domain.models import (
    AIModel,
    DownloadTicket,
    FileStatus,
    MimeType,
    UploadTicket,
)

API_KEY = "pw_live_abcdefghijklmnop"
BASE_URL = "https://api.test/api/v0"


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        reason: str = "OK",
        chunks: list[bytes] | None = None,
        stream_error: Exception | None = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._chunks = chunks or []
        self._stream_error = stream_error
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def iter_content(self, chunk_size: int = 1):
        for chunk in self._chunks:
            yield chunk
        if self._stream_error is not None:
            raise self._stream_error

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, router: "Router"):
        self.headers: dict[str, str] = {}
        self._router = router
        self.closed = False

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        return self._router.dispatch(self, method, url, kwargs)

    def put(self, url: str, **kwargs) -> FakeResponse:
        return self.request("PUT", url, **kwargs)

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def close(self) -> None:
        self.closed = True


class Router:
    """Maps (method, url) to a response or an exception to raise."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], FakeResponse | Exception] = {}
        self.sessions: list[FakeSession] = []
        self.requests: list[dict[str, Any]] = []

    def new_session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    def add(self, method: str, url: str, result: FakeResponse | Exception) -> None:
        self.routes[(method, url)] = result

    def dispatch(
        self, session: FakeSession, method: str, url: str, kwargs: dict[str, Any]
    ) -> FakeResponse:
        entry = {"method": method, "url": url, "session": session, **kwargs}
        if "data" in kwargs and hasattr(kwargs["data"], "read"):
            entry["body"] = kwargs["data"].read()
        self.requests.append(entry)
        result = self.routes[(method, url)]
        if isinstance(result, Exception):
            raise result
        return result


def envelope(data: Any, message: str = "OK") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def client(router: Router) -> PerfectWorksClient:
    config = ApiConfig(api_key=API_KEY, base_url=BASE_URL + "/")
    return PerfectWorksClient(config, session_factory=router.new_session)


# =========================================================================
# 1. JSON API calls
# =========================================================================


class TestRequestUploadTicket:
    def test_sends_body_and_parses_ticket(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/upload-url",
            FakeResponse(
                payload=envelope(
                    {
                        "uploadUrl": "https://storage.test/put/abc",
                        "objectKey": "uploads/abc/a.pdf",
                        "expiresAt": "2030-01-01T00:00:00Z",
                    }
                )
            ),
        )

        ticket = client.request_upload_ticket("a.pdf", MimeType.PDF, 1234)

        assert ticket.upload_url == "https://storage.test/put/abc"
        assert ticket.object_key == "uploads/abc/a.pdf"
        assert ticket.expires_at is not None
        assert not ticket.is_expired()
        sent = router.requests[0]
        assert sent["json"] == {
            "filename": "a.pdf",
            "contentType": "application/pdf",
            "sizeBytes": 1234,
        }
        assert sent["timeout"] == 30.0

    def test_api_session_carries_key(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/upload-url",
            FakeResponse(payload=envelope({"uploadUrl": "u", "objectKey": "k"})),
        )
        client.request_upload_ticket("a.pdf", MimeType.PDF, 1)
        session = router.requests[0]["session"]
        assert session.headers["X-API-Key"] == API_KEY
        assert session.headers["Content-Type"] == "application/json"

    def test_malformed_data_is_remote_error(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/upload-url",
            FakeResponse(payload=envelope({"objectKey": "k"})),
        )
        with pytest.raises(RemoteError, match="Failed to generate upload URL"):
            client.request_upload_ticket("a.pdf", MimeType.PDF, 1)


class TestRegisterAndFetch:
    def test_register_file_parses_record(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(
                status_code=201,
                payload=envelope(
                    {
                        "id": "f-1",
                        "filename": "a.pdf",
                        "fileFormat": "pdf",
                        "fileType": "original",
                        "status": "uploaded",
                        "fileSize": 1234,
                        "objectKey": "uploads/abc/a.pdf",
                        "createdAt": "2024-05-01T10:00:00.000Z",
                    }
                ),
            ),
        )

        record = client.register_file("a.pdf", "uploads/abc/a.pdf")

        assert record.id == "f-1"
        assert record.size == 1234
        assert record.status is FileStatus.UPLOADED
        assert record.created_at is not None
        assert router.requests[0]["json"] == {
            "filename": "a.pdf",
            "objectKey": "uploads/abc/a.pdf",
        }

    def test_unknown_enum_values_are_tolerated(self, client, router):
        router.add(
            "GET",
            f"{BASE_URL}/files/f-2",
            FakeResponse(
                payload=envelope({"id": "f-2", "filename": "x", "status": "archived"})
            ),
        )
        record = client.fetch_record("f-2")
        assert record.status is None

    def test_fetch_unknown_id_is_not_found(self, client, router):
        router.add(
            "GET",
            f"{BASE_URL}/files/missing",
            FakeResponse(
                status_code=404,
                reason="Not Found",
                payload={"success": False, "message": "File not found"},
            ),
        )
        with pytest.raises(NotFoundError) as exc_info:
            client.fetch_record("missing")
        assert exc_info.value.category is ErrorCategory.NOT_FOUND
        assert "File not found: missing" in str(exc_info.value)


class TestTriggerProcessing:
    @pytest.mark.parametrize(
        "model, body",
        [(AIModel.DOC_LUMEN, {"model": "doc-lumen"}), (None, {})],
    )
    def test_model_selector(self, client, router, model, body):
        router.add(
            "POST",
            f"{BASE_URL}/files/f-1/accessibility",
            FakeResponse(payload=envelope({"processedFileId": "f-9"})),
        )
        ticket = client.trigger_processing("f-1", model)
        assert ticket.processed_file_id == "f-9"
        assert router.requests[0]["json"] == body
        assert router.requests[0]["timeout"] == 300.0


class TestRequestDownloadTicket:
    def test_sends_expiry(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/f-9/download-url",
            FakeResponse(payload=envelope({"downloadUrl": "https://storage.test/g"})),
        )
        ticket = client.request_download_ticket("f-9", expires_in=600)
        assert ticket.download_url == "https://storage.test/g"
        assert router.requests[0]["json"] == {"expiresIn": 600}


# =========================================================================
# 2. Error translation
# =========================================================================


class TestErrorTranslation:
    @pytest.mark.parametrize(
        "status, category, text",
        [
            (401, ErrorCategory.AUTH, "Invalid API key or authentication failed"),
            (403, ErrorCategory.PERMISSION, "Access forbidden"),
            (404, ErrorCategory.NOT_FOUND, "API endpoint not found"),
            (429, ErrorCategory.RATE_LIMITED, "Rate limit exceeded"),
            (500, ErrorCategory.SERVER, "Server error"),
        ],
    )
    def test_well_known_statuses(self, client, router, status, category, text):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(status_code=status, reason="Error"),
        )
        with pytest.raises(RemoteError) as exc_info:
            client.register_file("a.pdf", "k")
        error = exc_info.value
        assert error.http_status == status
        assert error.category is category
        assert str(error).startswith("Failed to create file record: ")
        assert text in str(error)

    def test_other_status_keeps_server_message(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(
                status_code=422,
                reason="Unprocessable Entity",
                payload={"success": False, "error": {"message": "objectKey invalid"}},
            ),
        )
        with pytest.raises(RemoteError) as exc_info:
            client.register_file("a.pdf", "k")
        assert exc_info.value.category is ErrorCategory.OTHER
        assert str(exc_info.value) == "Failed to create file record: objectKey invalid"

    def test_success_false_on_2xx(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(payload={"success": False, "message": "Quota exhausted"}),
        )
        with pytest.raises(RemoteError, match="Quota exhausted"):
            client.register_file("a.pdf", "k")

    def test_missing_data_field(self, client, router):
        router.add(
            "POST", f"{BASE_URL}/files", FakeResponse(payload={"success": True})
        )
        with pytest.raises(RemoteError, match="no data"):
            client.register_file("a.pdf", "k")

    def test_non_json_response(self, client, router):
        router.add("POST", f"{BASE_URL}/files", FakeResponse(payload=None))
        with pytest.raises(RemoteError, match="not a JSON envelope"):
            client.register_file("a.pdf", "k")

    def test_connection_error_is_transfer_error(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            requests.ConnectionError("connection refused"),
        )
        with pytest.raises(TransferError) as exc_info:
            client.register_file("a.pdf", "k")
        error = exc_info.value
        assert isinstance(error, PerfectWorksClientError)
        assert isinstance(error.original_exception, requests.ConnectionError)
        assert "no response from server" in str(error)
        assert "(Original: ConnectionError: connection refused)" in str(error)


# =========================================================================
# 3. Signed URL transfers
# =========================================================================


class TestUpload:
    def test_puts_raw_bytes_without_api_key(self, client, router, tmp_path: Path):
        source = tmp_path / "a.pdf"
        source.write_bytes(b"%PDF-1.7 bytes")
        router.add("PUT", "https://storage.test/put/abc", FakeResponse())

        client.upload_bytes(
            UploadTicket("https://storage.test/put/abc", "k"), source, MimeType.PDF
        )

        sent = router.requests[0]
        assert sent["body"] == b"%PDF-1.7 bytes"
        assert sent["headers"] == {
            "Content-Type": "application/pdf",
            "Content-Length": "14",
        }
        assert sent["timeout"] == 60.0
        assert "X-API-Key" not in sent["session"].headers

    def test_storage_rejection(self, client, router, tmp_path: Path):
        source = tmp_path / "a.html"
        source.write_bytes(b"<html></html>")
        router.add(
            "PUT",
            "https://storage.test/put/abc",
            FakeResponse(status_code=403, reason="Forbidden"),
        )
        with pytest.raises(TransferError) as exc_info:
            client.upload_bytes(
                UploadTicket("https://storage.test/put/abc", "k"),
                source,
                MimeType.HTML,
            )
        assert exc_info.value.http_status == 403
        assert "HTTP 403" in str(exc_info.value)

    def test_missing_local_file(self, client, tmp_path: Path):
        with pytest.raises(TransferError, match="for upload"):
            client.upload_bytes(
                UploadTicket("https://storage.test/put/abc", "k"),
                tmp_path / "gone.pdf",
                MimeType.PDF,
            )


class TestDownload:
    URL = "https://storage.test/get/f-9"

    def test_writes_file_and_creates_parents(self, client, router, tmp_path: Path):
        response = FakeResponse(chunks=[b"%PDF-", b"accessible"])
        router.add("GET", self.URL, response)
        target = tmp_path / "out" / "nested" / "a.pdf"

        client.download_bytes(DownloadTicket(self.URL), target)

        assert target.read_bytes() == b"%PDF-accessible"
        assert response.closed
        assert router.requests[0]["stream"] is True
        assert "X-API-Key" not in router.requests[0]["session"].headers

    def test_error_status_creates_nothing(self, client, router, tmp_path: Path):
        router.add("GET", self.URL, FakeResponse(status_code=410, reason="Gone"))
        target = tmp_path / "a.pdf"
        with pytest.raises(TransferError, match="HTTP 410"):
            client.download_bytes(DownloadTicket(self.URL), target)
        assert not target.exists()

    def test_interrupted_stream_keeps_existing_file(
        self, client, router, tmp_path: Path
    ):
        target = tmp_path / "a.pdf"
        target.write_bytes(b"previous result")
        router.add(
            "GET",
            self.URL,
            FakeResponse(
                chunks=[b"partial"],
                stream_error=requests.ConnectionError("reset by peer"),
            ),
        )

        with pytest.raises(TransferError):
            client.download_bytes(DownloadTicket(self.URL), target)

        assert target.read_bytes() == b"previous result"
        assert list(tmp_path.iterdir()) == [target]


class TestSessions:
    def test_sessions_are_per_thread(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(payload=envelope({"id": "f-1", "filename": "a.pdf"})),
        )
        client.register_file("a.pdf", "k")
        client.register_file("a.pdf", "k")
        assert len(router.sessions) == 1

        worker = threading.Thread(target=client.register_file, args=("a.pdf", "k"))
        worker.start()
        worker.join()
        assert len(router.sessions) == 2

    def test_close_releases_sessions_of_finished_threads(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(payload=envelope({"id": "f-1", "filename": "a.pdf"})),
        )
        workers = [
            threading.Thread(target=client.register_file, args=("a.pdf", "k"))
            for _ in range(3)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        assert len(router.sessions) == 3

        client.close()

        assert all(session.closed for session in router.sessions)

    def test_client_is_usable_after_close(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files",
            FakeResponse(payload=envelope({"id": "f-1", "filename": "a.pdf"})),
        )
        client.register_file("a.pdf", "k")
        client.close()
        client.register_file("a.pdf", "k")

        assert len(router.sessions) == 2
        assert router.sessions[0].closed
        assert not router.sessions[1].closed
        assert router.requests[-1]["session"] is router.sessions[1]
        assert router.sessions[1].headers["X-API-Key"] == API_KEY


class TestAnalyzeFile:
    def test_returns_record_with_analysis(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/f-1/analysis",
            FakeResponse(
                payload=envelope(
                    {
                        "id": "f-1",
                        "filename": "a.pdf",
                        "status": "analyzed",
                        "analysisResult": {
                            "analysedAt": "2024-05-01T10:00:00.000Z",
                            "results": {"success": True, "overallScore": 87},
                        },
                    }
                )
            ),
        )

        record = client.analyze_file("f-1", force_reanalysis=True)

        assert record.id == "f-1"
        assert record.analysis_result["results"]["overallScore"] == 87
        assert router.requests[0]["json"] == {"forceReanalysis": True}
        assert router.requests[0]["timeout"] == 300.0

    def test_unknown_id_is_not_found(self, client, router):
        router.add(
            "POST",
            f"{BASE_URL}/files/nope/analysis",
            FakeResponse(status_code=404, reason="Not Found"),
        )
        with pytest.raises(NotFoundError) as exc_info:
            client.analyze_file("nope")
        assert "Failed to analyze file" in str(exc_info.value)
        assert "File not found: nope" in str(exc_info.value)


def test_mask_api_key():
    assert mask_api_key(API_KEY) == "pw_live_..."
    assert mask_api_key("short") == "****"
