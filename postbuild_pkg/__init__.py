"""
Postbuild - post-processing for static site build output.

Postbuild walks a build output directory and minifies JavaScript, HTML and
CSS in place, writes gzip and brotli pre-compressed siblings, deletes
leftover artifacts such as source maps, and prints a consolidated report.
"""

__version__ = "1.0.0"

from .config import ConfigurationError, PipelineConfig, ProcessorKind
from .core import PostBuild
from .file_filter import FileFilter
from .manager import ProcessorManager
from .report import ReportProcessor
from .stats import ProcessingStats

__all__ = [
    'ConfigurationError',
    'FileFilter',
    'PipelineConfig',
    'PostBuild',
    'ProcessingStats',
    'ProcessorKind',
    'ProcessorManager',
    'ReportProcessor',
]
