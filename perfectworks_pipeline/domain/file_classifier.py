"""File classification and input scanning.

Files are classified purely by extension (case-insensitive); there is no
content sniffing. Directory inputs are expanded one level deep, files only.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import os
from pathlib import Path

from .exceptions import PreconditionError
from .models import ClassifiedFile, FileAnalysis, FileKind

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = frozenset({".pdf"})
MARKUP_EXTENSIONS = frozenset({".html", ".htm"})

# Upper bound for concurrent stat calls while scanning a directory
SCAN_WORKERS = 8


def classify(path: str | Path) -> FileKind:
    """Return the logical kind of a file from its extension."""
    suffix = Path(path).suffix.lower()
    if suffix in DOCUMENT_EXTENSIONS:
        return FileKind.DOCUMENT
    if suffix in MARKUP_EXTENSIONS:
        return FileKind.MARKUP
    return FileKind.UNSUPPORTED


def inspect_file(path: str | Path) -> ClassifiedFile:
    """Classify a file and collect its size.

    For markup files the decoded text length is computed as well. Undecodable
    bytes are replaced rather than rejected, the count is informational only.

    Raises:
        OSError: If the file cannot be stat'ed or read.
    """
    path = Path(path)
    kind = classify(path)
    size = path.stat().st_size
    char_count = None
    if kind is FileKind.MARKUP:
        char_count = len(path.read_text(encoding="utf-8", errors="replace"))
    return ClassifiedFile(path=path, kind=kind, size_bytes=size, char_count=char_count)


def _list_directory_files(directory: Path) -> list[Path]:
    with os.scandir(directory) as entries:
        return sorted(
            (Path(entry.path) for entry in entries if entry.is_file()),
            key=lambda p: p.name,
        )


def scan_input(input_path: str | Path) -> FileAnalysis:
    """Analyze a single file or the top level of a directory.

    Subdirectories are not recursed into. Entries in a directory are
    inspected concurrently and returned in name order.

    Args:
        input_path: File or directory to analyze.

    Returns:
        FileAnalysis grouping the discovered files by kind.

    Raises:
        PreconditionError: If the path does not exist or is neither a
            regular file nor a directory.
    """
    path = Path(input_path)
    if not path.exists():
        raise PreconditionError(f"Input path does not exist: {path}")

    if path.is_file():
        files = [path]
    elif path.is_dir():
        files = _list_directory_files(path)
    else:
        raise PreconditionError(
            f"Input path is neither a file nor a directory: {path}"
        )

    logger.debug(f"Inspecting {len(files)} file(s) under {path}")
    if len(files) > 1:
        with ThreadPoolExecutor(max_workers=min(SCAN_WORKERS, len(files))) as pool:
            inspected = list(pool.map(inspect_file, files))
    else:
        inspected = [inspect_file(f) for f in files]

    analysis = FileAnalysis()
    for info in inspected:
        if info.kind is FileKind.DOCUMENT:
            analysis.documents.append(info)
        elif info.kind is FileKind.MARKUP:
            analysis.markup.append(info)
        else:
            logger.debug(f"Skipping unsupported file type: {info.path.name}")
            analysis.unsupported.append(info)
    return analysis
