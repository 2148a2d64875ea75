"""
PerfectWorks Accessibility Pipeline

Batch-convert local PDF and HTML files into accessible versions through the
PerfectWorks file API, with bounded concurrency and per-file error isolation.
"""

__version__ = "0.1.0"
