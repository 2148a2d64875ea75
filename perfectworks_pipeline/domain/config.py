"""
Configuration dataclasses for the PerfectWorks Accessibility Pipeline.

This module defines type-safe configuration schemas using Python dataclasses.
These schemas are registered with Hydra to enable validation and IDE autocomplete
support for configuration values.
"""

from dataclasses import dataclass, field

from hydra.core.config_store import ConfigStore

from .models import AIModel

DEFAULT_BASE_URL = "https://api.perfectworks.io/api/v0"

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10


class ConfigError(Exception):
    """Configuration error for the PerfectWorks Accessibility Pipeline.

    Raised when configuration values are invalid or inconsistent. Using a
    dedicated exception type makes it easier to distinguish configuration
    problems from other runtime errors.
    """


@dataclass
class ApiConfig:
    """Configuration for the PerfectWorks API connection.

    Timeouts come in three tiers: metadata calls (upload URL, file record,
    download URL), binary transfers to and from signed storage URLs, and the
    accessibility processing call which blocks until the server finishes.
    """

    api_key: str = ""
    """PerfectWorks API key, sent in the X-API-Key header. Defaults to the
    PERFECTWORKS_API_KEY environment variable in conf/config.yaml."""

    base_url: str = DEFAULT_BASE_URL
    """API base URL. Override for development or testing."""

    metadata_timeout: float = 30.0
    """Timeout in seconds for short JSON metadata requests."""

    transfer_timeout: float = 60.0
    """Timeout in seconds for file uploads and downloads."""

    processing_timeout: float = 300.0
    """Timeout in seconds for the accessibility processing request. Processing
    is synchronous from the client's point of view and can take minutes."""

    download_expires_in: int = 3600
    """Lifetime in seconds requested for signed download URLs."""

    def __post_init__(self) -> None:
        """Validate API key, base URL and timeouts."""
        if not self.api_key or not self.api_key.strip():
            raise ConfigError(
                "api_key is required and cannot be empty. "
                "Pass api.api_key=<key> or set PERFECTWORKS_API_KEY."
            )
        if not self.base_url or not self.base_url.strip():
            raise ConfigError("base_url cannot be empty")
        self.base_url = self.base_url.rstrip("/")
        for name in ("metadata_timeout", "transfer_timeout", "processing_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be greater than 0")
        if self.download_expires_in <= 0:
            raise ConfigError("download_expires_in must be greater than 0")


@dataclass
class PathsConfig:
    """Input and output locations.

    When input is a file, output is the target file path. When input is a
    directory, output is a directory and each supported file keeps its name.
    """

    input: str = ""
    """Input file or directory path."""

    output: str = ""
    """Output file or directory path."""

    def __post_init__(self) -> None:
        if not self.input or not self.input.strip():
            raise ConfigError("paths.input is required. Pass paths.input=<path>.")
        if not self.output or not self.output.strip():
            raise ConfigError("paths.output is required. Pass paths.output=<path>.")


@dataclass
class ProcessingConfig:
    """Configuration for batch processing behavior."""

    concurrency: int = 3
    """Number of files processed in parallel per wave (1-10)."""

    force: bool = False
    """Overwrite existing output files. Without it an existing output file
    aborts the run before any upload."""

    model: str = ""
    """Accessibility model for document (PDF) inputs. Empty uses the server
    default. Ignored for HTML inputs."""

    verbose: bool = False
    """Enable debug logging and per-step progress lines."""

    dry_run: bool = False
    """Only analyze the input and show what would be processed."""

    def __post_init__(self) -> None:
        """Validate concurrency bounds and model name."""
        if not MIN_CONCURRENCY <= self.concurrency <= MAX_CONCURRENCY:
            raise ConfigError(
                f"concurrency must be between {MIN_CONCURRENCY} and "
                f"{MAX_CONCURRENCY}, got {self.concurrency}"
            )
        if self.model:
            valid = [m.value for m in AIModel]
            if self.model not in valid:
                raise ConfigError(
                    f"Unknown model '{self.model}'. Options: {', '.join(valid)}"
                )

    @property
    def ai_model(self) -> AIModel | None:
        """Selected model as an enum member, or None for the server default."""
        return AIModel(self.model) if self.model else None


@dataclass
class AppConfig:
    """Top-level application configuration.

    Combines all configuration groups into a single type-safe configuration
    object built from the Hydra-composed config in main.py.
    """

    api: ApiConfig
    """PerfectWorks API configuration."""

    paths: PathsConfig
    """Input/output path configuration."""

    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    """Processing behavior configuration."""


@dataclass
class ApiSchema:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    metadata_timeout: float = 30.0
    transfer_timeout: float = 60.0
    processing_timeout: float = 300.0
    download_expires_in: int = 3600


@dataclass
class PathsSchema:
    input: str = ""
    output: str = ""


@dataclass
class ProcessingSchema:
    concurrency: int = 3
    force: bool = False
    model: str = ""
    verbose: bool = False
    dry_run: bool = False


@dataclass
class AppSchema:
    """Structured schema Hydra validates the YAML and overrides against.

    The schema mirrors AppConfig without validation hooks, so a partially
    specified command line still composes and the precise error comes from
    the AppConfig dataclasses.
    """

    api: ApiSchema = field(default_factory=ApiSchema)
    paths: PathsSchema = field(default_factory=PathsSchema)
    processing: ProcessingSchema = field(default_factory=ProcessingSchema)


def register_configs() -> None:
    """Register structured configs with Hydra.

    This function must be called before Hydra initializes to enable type-safe
    configuration validation and IDE autocomplete support.
    """
    cs = ConfigStore.instance()
    cs.store(name="base_config", node=AppSchema)
