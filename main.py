"""Main entry point for the PerfectWorks Accessibility Pipeline."""

import logging
import sys

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from perfectworks_pipeline.cli.commands import analyze_command, process_command
from perfectworks_pipeline.clients.perfectworks_client import PerfectWorksClient
from perfectworks_pipeline.clients.workflow_client import WorkflowClient
from perfectworks_pipeline.domain.config import (
    ApiConfig,
    AppConfig,
    ConfigError,
    PathsConfig,
    ProcessingConfig,
    register_configs,
)
from perfectworks_pipeline.domain.exceptions import PreconditionError
from perfectworks_pipeline.utils.logging import setup_logging

# Structured configs must be in the ConfigStore before @hydra.main composes
register_configs()


def build_app_config(cfg: DictConfig) -> AppConfig:
    """Convert the composed Hydra config into a validated AppConfig.

    Relative paths are resolved against the directory the command was
    launched from.

    Raises:
        ConfigError: If any configuration value is invalid.
    """
    paths = PathsConfig(**cfg.paths)
    return AppConfig(
        api=ApiConfig(**cfg.api),
        paths=PathsConfig(
            input=to_absolute_path(paths.input),
            output=to_absolute_path(paths.output),
        ),
        processing=ProcessingConfig(**cfg.processing),
    )


def run(
    app_cfg: AppConfig,
    logger: logging.Logger,
    client: WorkflowClient | None = None,
) -> int:
    """Route to the dry-run analysis or the processing command.

    Args:
        app_cfg: Validated application configuration.
        logger: Logger instance.
        client: Workflow client to use. Built from ``app_cfg.api`` when None.

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete
        failure, 3 for configuration, precondition or fatal errors
    """
    try:
        if app_cfg.processing.dry_run:
            return analyze_command(app_cfg, logger)

        if client is None:
            logger.debug("Initializing PerfectWorks client...")
            client = PerfectWorksClient(app_cfg.api)
        return process_command(app_cfg, logger, client)

    except PreconditionError as e:
        logger.error(f"Cannot start processing: {e}")
        return 3
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 3


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entry point for the pipeline.

    Exits with 0 for success, 1 for partial failure, 2 for complete failure
    and 3 for configuration, precondition or fatal errors.

    Args:
        cfg: Hydra configuration object
    """
    verbose = bool(cfg.processing.get("verbose", False))
    logger = setup_logging(verbose=verbose)

    try:
        app_cfg = build_app_config(cfg)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(3)

    sys.exit(run(app_cfg, logger))


if __name__ == "__main__":
    main()
