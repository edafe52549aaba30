"""
Pre-compressed sibling artifacts (``.gz`` / ``.br``) for static hosting.
"""

import gzip
import os

import brotli

from .base import BaseProcessor
from .config import BROTLI_LEVELS, COMPRESSED_ARTIFACT_PATTERNS, GZIP_LEVELS, ConfigurationError
from .stats import format_bytes

ALGORITHMS = {
    # algorithm: (file extension, valid levels)
    'gzip': ('gz', GZIP_LEVELS),
    'brotli': ('br', BROTLI_LEVELS),
}


class CompressionProcessor(BaseProcessor):
    """
    Writes ``<file>.<ext>`` next to every eligible file that is at least
    ``min_size`` bytes long. Originals are left untouched.
    """

    def __init__(self, config, file_filter):
        super().__init__(config, file_filter)
        algorithm = (config.algorithm or '').lower()
        if algorithm not in ALGORITHMS:
            raise ConfigurationError(f"Unsupported compression algorithm: {config.algorithm}")
        self.algorithm = algorithm
        self.output_extension, levels = ALGORITHMS[algorithm]
        if config.level not in levels:
            raise ConfigurationError(
                f"Invalid {algorithm} level {config.level} (expected {levels.start}-{levels.stop - 1})"
            )
        self.name = algorithm
        self.label = f"{algorithm.upper()} compression"

    def compress(self, data: bytes) -> bytes:
        if self.algorithm == 'gzip':
            return gzip.compress(data, compresslevel=self.config.level, mtime=0)
        return brotli.compress(data, quality=self.config.level)

    def run(self, target_dir, stats):
        self.logger.info(f"Generating {self.algorithm.upper()} compressed files...")
        files = [path for path in self.find_candidates(target_dir) if self._is_large_enough(path)]
        self.logger.info(f"Found {len(files)} files to compress")

        for file_path in files:
            self.process_file(file_path, target_dir, stats)

        if stats.file_count:
            self.log_size_summary(stats)
        else:
            self.logger.info(f"No files found that need {self.algorithm} compression")

    def find_candidates(self, target_dir):
        ignore_patterns = tuple(self.config.ignore_patterns) + COMPRESSED_ARTIFACT_PATTERNS
        return self.file_filter.find_files(target_dir, self.config.extensions, ignore_patterns)

    def _is_large_enough(self, file_path):
        try:
            return os.path.getsize(file_path) >= self.config.min_size
        except OSError:
            return False

    def process_file(self, file_path, target_dir, stats):
        output_file = f"{file_path}.{self.output_extension}"
        try:
            with open(file_path, 'rb') as f:
                content = f.read()
            compressed = self.compress(content)
            with open(output_file, 'wb') as f:
                f.write(compressed)
        except Exception as e:
            self.record_failure(stats, file_path, target_dir, str(e))
            return

        stats.sizes.original_size += len(content)
        stats.sizes.compressed_size += len(compressed)
        stats.file_count += 1

        if self.config.is_verbose:
            savings = len(content) - len(compressed)
            percent = savings / len(content) * 100 if content else 0
            self.logger.info(
                f"  {os.path.relpath(file_path, target_dir)} -> {os.path.basename(output_file)} "
                f"({format_bytes(len(content))} -> {format_bytes(len(compressed))}, -{percent:.1f}%)"
            )
