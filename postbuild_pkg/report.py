"""
Consolidated statistics report for a pipeline run.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from .config import ReportingConfig
from .stats import ProcessingStats, format_bytes

DISPLAY_NAMES = {
    'javascript': 'JavaScript minification',
    'html': 'HTML minification',
    'css': 'CSS minification',
    'cleanup': 'File cleanup',
    'gzip': 'Gzip compression',
    'brotli': 'Brotli compression',
}

LOW_JS_SAVINGS_PERCENT = 20
LOW_COMPRESSION_PERCENT = 10


class ReportProcessor:
    """Collects per-processor stats and renders the final summary."""

    def __init__(self, config: Optional[ReportingConfig] = None):
        self.config = config or ReportingConfig()
        self.all_stats: Dict[str, ProcessingStats] = {}
        self.logger = logging.getLogger('Postbuild.ReportProcessor')

    def add_stats(self, name: str, stats: ProcessingStats) -> None:
        """Store the stats for ``name``, replacing any earlier entry."""
        self.all_stats[str(name)] = stats

    def generate_report(self) -> Optional[str]:
        """
        Render the report, log it and return the text.

        Returns:
            The report text, or None when reporting is disabled
        """
        if not self.config.enabled:
            return None

        lines = ['', 'Post-build optimization report:', '=' * 50]

        total_original = 0
        total_compressed = 0
        total_files = 0
        total_errors = 0

        for name, stats in self.all_stats.items():
            if stats.file_count <= 0:
                continue
            lines.extend(self._processor_lines(name, stats))
            if stats.sizes is not None:
                total_original += stats.sizes.original_size
                total_compressed += stats.sizes.compressed_size
            total_files += stats.file_count
            total_errors += len(stats.errors)

        lines.append('')
        lines.append('Overall:')
        lines.append(f"  Total files processed: {total_files}")
        if total_original > 0:
            saved = total_original - total_compressed
            lines.append(f"  Size: {format_bytes(total_original)} -> {format_bytes(total_compressed)}")
            lines.append(f"  Total space saved: {format_bytes(saved)} ({saved / total_original * 100:.1f}%)")
        if total_errors > 0:
            lines.append(f"  Total errors: {total_errors}")

        lines.append('')
        lines.append('Recommendations:')
        lines.extend(f"  - {tip}" for tip in self.recommendations())

        report = '\n'.join(lines)
        for line in lines:
            self.logger.info(line)
        return report

    def _processor_lines(self, name: str, stats: ProcessingStats) -> List[str]:
        lines = ['', f"{DISPLAY_NAMES.get(name, name)}:", f"  Files processed: {stats.file_count}"]

        if stats.sizes is not None:
            sizes = stats.sizes
            lines.append(f"  Before: {format_bytes(sizes.original_size)}")
            lines.append(f"  After: {format_bytes(sizes.compressed_size)}")
            lines.append(f"  Space saved: {format_bytes(sizes.saved)} ({sizes.percent_saved:.1f}%)")
        if stats.cleanup is not None:
            lines.append(f"  Directories removed: {stats.cleanup.dir_count}")

        if stats.errors:
            lines.append(f"  Errors: {len(stats.errors)}")
            if self.config.show_file_details:
                limit = self.config.max_errors_shown
                lines.extend(f"    * {error}" for error in stats.errors[:limit])
                if len(stats.errors) > limit:
                    lines.append(f"    * ... and {len(stats.errors) - limit} more errors")
        return lines

    def recommendations(self) -> List[str]:
        tips = []
        js = self._active('javascript')
        html = self._active('html')
        precompressed = [stats for stats in (self._active('gzip'), self._active('brotli')) if stats]

        if js and js.sizes is not None and js.sizes.percent_saved < LOW_JS_SAVINGS_PERCENT:
            tips.append("JavaScript savings are low, check for already minified third-party bundles")
        for stats in precompressed:
            if stats.sizes is not None and stats.sizes.percent_saved < LOW_COMPRESSION_PERCENT:
                tips.append(f"{stats.name} compression ratio is low, consider excluding binary or pre-compressed assets")
        if html and not precompressed:
            tips.append("HTML is minified, consider enabling gzip/brotli pre-compression as well")
        if precompressed:
            tips.append("Pre-compressed files generated, enable static compression in your web server "
                        "(nginx: gzip_static on; brotli_static on;)")
        if any(stats.errors for stats in self.all_stats.values()):
            tips.append("Some files failed to process, rerun with --verbose for details")
        tips.append("Regularly review bundle sizes and remove unused dependencies")
        return tips

    def _active(self, name: str) -> Optional[ProcessingStats]:
        stats = self.all_stats.get(name)
        if stats is not None and stats.file_count > 0:
            return stats
        return None

    def to_dict(self) -> Dict[str, Any]:
        processors = {name: stats.to_dict() for name, stats in self.all_stats.items()}
        sized = [stats.sizes for stats in self.all_stats.values() if stats.sizes is not None and stats.file_count > 0]
        return {
            'processors': processors,
            'totals': {
                'file_count': sum(stats.file_count for stats in self.all_stats.values()),
                'original_size': sum(sizes.original_size for sizes in sized),
                'compressed_size': sum(sizes.compressed_size for sizes in sized),
                'errors': sum(len(stats.errors) for stats in self.all_stats.values()),
            },
            'recommendations': self.recommendations(),
        }

    def write_json(self, path: str) -> str:
        """Write the machine readable report and return its absolute path."""
        path = os.path.abspath(path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)
        except (IOError, OSError) as e:
            raise IOError(f"Error writing report file {path}: {e}")
        self.logger.info(f"JSON report written to {path}")
        return path
