"""PerfectWorks API client implementation.

This module provides a high-level interface for the PerfectWorks file API,
covering the seven calls of the accessibility workflow: signed upload URL,
upload, file record creation, accessibility processing, record lookup,
signed download URL and download. JSON responses use the envelope
``{success, message, data}``; ``data`` is unwrapped and parsed into domain
models.
"""

from collections.abc import Callable
import logging
from pathlib import Path
import threading
from typing import Any

import requests

from ..domain.config import ApiConfig
from ..domain.models import (
    AIModel,
    DownloadTicket,
    MimeType,
    ProcessingTicket,
    RemoteFileRecord,
    UploadTicket,
)
from .exceptions import NotFoundError, RemoteError, TransferError
from .temp_file_utils import atomic_output_file
from .workflow_client import WorkflowClient

logger = logging.getLogger(__name__)


def mask_api_key(api_key: str) -> str:
    """Mask an API key for logging, keeping only the first 8 characters."""
    return api_key[:8] + "..." if len(api_key) > 8 else "****"


class PerfectWorksClient(WorkflowClient):
    """Client for the PerfectWorks accessibility file API.

    Each worker thread gets its own pair of ``requests.Session`` objects: one
    for the API (carrying the X-API-Key header) and one for signed storage
    URLs, which must not receive the API key. Sessions are never shared
    between concurrently running pipelines. The client keeps track of every
    session it opens; ``close()`` releases them once a batch is done.

    Example:
        >>> config = ApiConfig(api_key="your-key")
        >>> client = PerfectWorksClient(config)
        >>> ticket = client.request_upload_ticket("doc.pdf", MimeType.PDF, 1024)
        >>> client.upload_bytes(ticket, Path("doc.pdf"), MimeType.PDF)
        >>> record = client.register_file("doc.pdf", ticket.object_key)
    """

    # Chunk size for streaming downloads to disk (in bytes)
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        config: ApiConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        """Initialize the PerfectWorks client.

        Args:
            config: API configuration with key, base URL and timeouts.
            session_factory: Callable creating HTTP sessions. Called lazily,
                twice per worker thread.
        """
        self.config = config
        self._session_factory = session_factory
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()
        logger.debug(
            f"PerfectWorksClient initialized (base_url: {config.base_url}, "
            f"api_key: {mask_api_key(config.api_key)})"
        )

    def _new_session(self) -> requests.Session:
        session = self._session_factory()
        with self._sessions_lock:
            self._sessions.append(session)
        return session

    def _api_session(self) -> requests.Session:
        session = getattr(self._local, "api_session", None)
        if session is None:
            session = self._new_session()
            session.headers.update(
                {
                    "X-API-Key": self.config.api_key,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                }
            )
            self._local.api_session = session
        return session

    def _transfer_session(self) -> requests.Session:
        session = getattr(self._local, "transfer_session", None)
        if session is None:
            session = self._new_session()
            self._local.transfer_session = session
        return session

    def close(self) -> None:
        """Close every session created so far.

        Later calls open fresh sessions, so the client can be reused after
        closing.
        """
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
            self._local = threading.local()
        for session in sessions:
            session.close()
        if sessions:
            logger.debug(f"Closed {len(sessions)} HTTP session(s)")

    @staticmethod
    def _parse_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _extract_message(payload: Any) -> str | None:
        """Pull a server message out of an envelope or error body."""
        if not isinstance(payload, dict):
            return None
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        return None

    def _request(
        self,
        method: str,
        endpoint: str,
        context: str,
        timeout: float,
        body: dict[str, Any] | None = None,
        not_found_detail: str | None = None,
    ) -> Any:
        """Centralized API request handler.

        Sends the request, translates failures and unwraps the response
        envelope.

        Args:
            method: HTTP method.
            endpoint: Path relative to the base URL (e.g. "/files").
            context: Operation description used as the error message prefix.
            timeout: Request timeout in seconds.
            body: Optional JSON body.
            not_found_detail: Message to use for a 404 instead of the generic
                "endpoint not found" description.

        Returns:
            The envelope's ``data`` value.

        Raises:
            TransferError: If no response was received.
            NotFoundError: On 404.
            RemoteError: On any other non-2xx status, ``success: false`` or a
                malformed envelope.
        """
        url = f"{self.config.base_url}{endpoint}"
        try:
            response = self._api_session().request(
                method, url, json=body, timeout=timeout
            )
        except requests.RequestException as e:
            error_msg = f"{context}: no response from server"
            logger.debug(f"API request failed: {method} {endpoint} - {e}")
            raise TransferError(error_msg, original_exception=e) from e

        logger.debug(f"API request: {method} {endpoint} -> {response.status_code}")
        payload = self._parse_json(response)

        if not response.ok:
            server_message = self._extract_message(payload) or response.reason
            if response.status_code == 404:
                raise NotFoundError(
                    context,
                    http_status=404,
                    server_message=server_message,
                    detail=not_found_detail,
                )
            raise RemoteError(
                context,
                http_status=response.status_code,
                server_message=server_message,
            )

        if not isinstance(payload, dict):
            raise RemoteError(
                context,
                http_status=response.status_code,
                server_message="Response is not a JSON envelope",
            )
        if payload.get("success") is False:
            raise RemoteError(
                context,
                http_status=response.status_code,
                server_message=self._extract_message(payload)
                or "Request was not successful",
            )
        if "data" not in payload:
            raise RemoteError(
                context,
                http_status=response.status_code,
                server_message="Response envelope has no data",
            )
        return payload["data"]

    def _parse(self, context: str, parser: Callable[[Any], Any], data: Any) -> Any:
        try:
            return parser(data)
        except (KeyError, TypeError) as e:
            raise RemoteError(
                context,
                server_message=f"Unexpected response data: missing {e}",
                original_exception=e,
            ) from e

    # Step 1
    def request_upload_ticket(
        self, filename: str, mime_type: MimeType, size_bytes: int
    ) -> UploadTicket:
        context = "Failed to generate upload URL"
        data = self._request(
            "POST",
            "/files/upload-url",
            context,
            self.config.metadata_timeout,
            body={
                "filename": filename,
                "contentType": mime_type.value,
                "sizeBytes": size_bytes,
            },
        )
        return self._parse(context, UploadTicket.from_api, data)

    # Step 2
    def upload_bytes(
        self, ticket: UploadTicket, local_path: Path, mime_type: MimeType
    ) -> None:
        local_path = Path(local_path)
        try:
            size = local_path.stat().st_size
            with local_path.open("rb") as body:
                response = self._transfer_session().put(
                    ticket.upload_url,
                    data=body,
                    headers={
                        "Content-Type": mime_type.value,
                        "Content-Length": str(size),
                    },
                    timeout=self.config.transfer_timeout,
                )
        except requests.RequestException as e:
            raise TransferError("Failed to upload file", original_exception=e) from e
        except OSError as e:
            raise TransferError(
                f"Failed to read {local_path.name} for upload", original_exception=e
            ) from e

        if not response.ok:
            raise TransferError(
                f"Failed to upload file: HTTP {response.status_code} "
                f"{response.reason}",
                http_status=response.status_code,
            )
        logger.debug(f"Uploaded {local_path.name} ({size} bytes)")

    # Step 3
    def register_file(self, filename: str, object_key: str) -> RemoteFileRecord:
        context = "Failed to create file record"
        data = self._request(
            "POST",
            "/files",
            context,
            self.config.metadata_timeout,
            body={"filename": filename, "objectKey": object_key},
        )
        return self._parse(context, RemoteFileRecord.from_api, data)

    # Step 4
    def trigger_processing(
        self, file_id: str, model: AIModel | None = None
    ) -> ProcessingTicket:
        context = "Failed to process file for accessibility"
        body: dict[str, Any] = {}
        if model is not None:
            body["model"] = model.value
        data = self._request(
            "POST",
            f"/files/{file_id}/accessibility",
            context,
            self.config.processing_timeout,
            body=body,
        )
        return self._parse(context, ProcessingTicket.from_api, data)

    # Step 5
    def fetch_record(self, file_id: str) -> RemoteFileRecord:
        context = "Failed to get file details"
        data = self._request(
            "GET",
            f"/files/{file_id}",
            context,
            self.config.metadata_timeout,
            not_found_detail=f"File not found: {file_id}",
        )
        return self._parse(context, RemoteFileRecord.from_api, data)

    # Step 6
    def request_download_ticket(
        self, file_id: str, expires_in: int = 3600
    ) -> DownloadTicket:
        context = "Failed to generate download URL"
        data = self._request(
            "POST",
            f"/files/{file_id}/download-url",
            context,
            self.config.metadata_timeout,
            body={"expiresIn": expires_in},
        )
        return self._parse(context, DownloadTicket.from_api, data)

    # Step 7
    def download_bytes(self, ticket: DownloadTicket, output_path: Path) -> None:
        output_path = Path(output_path)
        try:
            response = self._transfer_session().get(
                ticket.download_url,
                stream=True,
                timeout=self.config.transfer_timeout,
            )
        except requests.RequestException as e:
            raise TransferError(
                "Failed to download file", original_exception=e
            ) from e

        try:
            if not response.ok:
                raise TransferError(
                    f"Failed to download file: HTTP {response.status_code} "
                    f"{response.reason}",
                    http_status=response.status_code,
                )
            with atomic_output_file(output_path) as handle:
                for chunk in response.iter_content(
                    chunk_size=self.DOWNLOAD_CHUNK_SIZE
                ):
                    if chunk:
                        handle.write(chunk)
        except requests.RequestException as e:
            raise TransferError(
                "Failed to download file", original_exception=e
            ) from e
        except OSError as e:
            raise TransferError(
                f"Failed to write {output_path}", original_exception=e
            ) from e
        finally:
            response.close()

        logger.debug(f"Downloaded result to {output_path}")

    def analyze_file(
        self, file_id: str, force_reanalysis: bool = False
    ) -> RemoteFileRecord:
        """Run the server-side accessibility audit for a file.

        Not part of the processing workflow. The audit is stored on the file
        record and returned in its ``analysis_result`` field.

        Args:
            file_id: Id of a registered file.
            force_reanalysis: Re-run the audit even if results already exist.

        Raises:
            NotFoundError: If the id is unknown.
            RemoteError: If the server cannot analyze the file.
        """
        context = "Failed to analyze file"
        data = self._request(
            "POST",
            f"/files/{file_id}/analysis",
            context,
            self.config.processing_timeout,
            body={"forceReanalysis": force_reanalysis},
            not_found_detail=f"File not found: {file_id}",
        )
        return self._parse(context, RemoteFileRecord.from_api, data)
