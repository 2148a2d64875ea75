"""Command-line interface components for the PerfectWorks Accessibility Pipeline.

This package provides command implementations that handle the dry-run
analysis and the processing workflow. Commands are called from the main entry
point after configuration validation and client initialization.
"""

from .commands import analyze_command, plan_work_items, process_command

__all__ = ["analyze_command", "plan_work_items", "process_command"]
