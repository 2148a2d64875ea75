"""Domain models and configuration schemas

This module provides the domain layer for the PerfectWorks Accessibility
Pipeline, including type-safe configuration schemas, domain models, file
classification and batch report aggregation.
"""

from .config import (
    ApiConfig,
    AppConfig,
    ConfigError,
    PathsConfig,
    ProcessingConfig,
    register_configs,
)
from .exceptions import PreconditionError, UnsupportedTypeError
from .file_classifier import classify, inspect_file, scan_input
from .models import (
    AIModel,
    BatchReport,
    ClassifiedFile,
    DownloadTicket,
    FileAnalysis,
    FileKind,
    PipelineOutcome,
    PipelineStage,
    ProcessingTicket,
    RemoteFileRecord,
    UploadTicket,
    WorkItem,
)
from .report import build_report

__all__ = [
    "ApiConfig",
    "AppConfig",
    "ConfigError",
    "PathsConfig",
    "ProcessingConfig",
    "register_configs",
    "PreconditionError",
    "UnsupportedTypeError",
    "classify",
    "inspect_file",
    "scan_input",
    "AIModel",
    "BatchReport",
    "ClassifiedFile",
    "DownloadTicket",
    "FileAnalysis",
    "FileKind",
    "PipelineOutcome",
    "PipelineStage",
    "ProcessingTicket",
    "RemoteFileRecord",
    "UploadTicket",
    "WorkItem",
    "build_report",
]
