"""Pipeline orchestration and batch scheduling"""

from perfectworks_pipeline.orchestration.pipeline import BatchPipeline, split_into_waves
from perfectworks_pipeline.orchestration.processor import FileProcessor

__all__ = ["BatchPipeline", "FileProcessor", "split_into_waves"]
