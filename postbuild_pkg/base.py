"""
Common behaviour for the file processors.
"""

import logging
import os

from .config import ProcessorConfig
from .file_filter import FileFilter
from .stats import ProcessingStats, format_bytes


class BaseProcessor:
    """
    A processor transforms (or removes) files below a target directory and
    reports what it did through a ``ProcessingStats`` record.
    """

    name = 'processor'
    label = 'Processing'

    def __init__(self, config: ProcessorConfig, file_filter: FileFilter):
        self.config = config
        self.file_filter = file_filter
        self.logger = logging.getLogger(f'Postbuild.{type(self).__name__}')

    def new_stats(self) -> ProcessingStats:
        return ProcessingStats.for_sizes(self.name)

    def process(self, target_dir: str) -> ProcessingStats:
        stats = self.new_stats()
        if not self.config.enabled:
            self.logger.info(f"{self.label} skipped (disabled)")
            return stats

        try:
            self.run(target_dir, stats)
        except Exception as e:
            self.logger.error(f"{self.label} failed: {e}")
            stats.errors.append(str(e))
        return stats

    def run(self, target_dir: str, stats: ProcessingStats) -> None:
        raise NotImplementedError

    def find_candidates(self, target_dir: str):
        return self.file_filter.find_files(target_dir, self.config.extensions, self.config.ignore_patterns)

    def record_failure(self, stats: ProcessingStats, file_path: str, target_dir: str, message: str) -> None:
        self.logger.warning(f"  Failed: {os.path.relpath(file_path, target_dir)} - {message}")
        stats.errors.append(f"{file_path}: {message}")

    def log_size_summary(self, stats: ProcessingStats) -> None:
        sizes = stats.sizes
        self.logger.info(f"{self.label} completed! Processed {stats.file_count} files")
        self.logger.info(
            f"Stats: {format_bytes(sizes.original_size)} -> {format_bytes(sizes.compressed_size)} "
            f"(saved {format_bytes(sizes.saved)}, {sizes.percent_saved:.1f}%)"
        )
        if stats.errors:
            self.logger.warning(f"Encountered {len(stats.errors)} errors")
