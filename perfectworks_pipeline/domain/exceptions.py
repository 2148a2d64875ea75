"""Domain-level exceptions for the PerfectWorks Accessibility Pipeline.

Client-side failures live in ``perfectworks_pipeline.clients.exceptions``.
The exceptions here describe problems with the caller's input rather than
with the remote service.
"""

from pathlib import Path


class PreconditionError(Exception):
    """Invalid invocation detected before any work is scheduled.

    Raised for a missing input path, an existing output file without
    ``force`` or duplicate output paths. These errors are fatal for the
    whole invocation and always occur before any network activity.
    """


class UnsupportedTypeError(Exception):
    """A queued file's extension is not a supported document or markup type.

    Unlike ``PreconditionError`` this is a per-item failure: the single-item
    pipeline converts it into a failed outcome before any network call.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.extension = self.path.suffix.lower()
        super().__init__(
            f"Unsupported file type: {self.extension or '(no extension)'} "
            f"({self.path.name})"
        )
