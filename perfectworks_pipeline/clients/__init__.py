"""External API clients (PerfectWorks).

This module provides the workflow client interface, the HTTP client for the
PerfectWorks file API and the custom exception classes used for error
handling.
"""

from .exceptions import (
    ErrorCategory,
    NotFoundError,
    PerfectWorksClientError,
    RemoteError,
    TransferError,
)
from .perfectworks_client import PerfectWorksClient, mask_api_key
from .temp_file_utils import atomic_output_file
from .workflow_client import WorkflowClient

__all__ = [
    "ErrorCategory",
    "NotFoundError",
    "PerfectWorksClient",
    "PerfectWorksClientError",
    "RemoteError",
    "TransferError",
    "WorkflowClient",
    "atomic_output_file",
    "mask_api_key",
]
