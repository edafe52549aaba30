"""
Builds the enabled processors from configuration and runs them in order.
"""

import logging
import os
from typing import Dict, List

from .base import BaseProcessor
from .cleanup import CleanupProcessor
from .compression import CompressionProcessor
from .config import ConfigurationError, PipelineConfig, ProcessorConfig, ProcessorKind
from .file_filter import FileFilter
from .minify import CSSProcessor, HTMLProcessor, JavaScriptProcessor
from .report import ReportProcessor
from .stats import ProcessingStats


def create_processor(kind: ProcessorKind, config: ProcessorConfig, file_filter: FileFilter) -> BaseProcessor:
    if kind is ProcessorKind.JAVASCRIPT:
        return JavaScriptProcessor(config, file_filter)
    elif kind is ProcessorKind.HTML:
        return HTMLProcessor(config, file_filter)
    elif kind is ProcessorKind.CSS:
        return CSSProcessor(config, file_filter)
    elif kind is ProcessorKind.CLEANUP:
        return CleanupProcessor(config, file_filter)
    elif kind in (ProcessorKind.GZIP, ProcessorKind.BROTLI):
        return CompressionProcessor(config, file_filter)
    raise ConfigurationError(f"No processor implementation for '{kind.value}'")


class ProcessorManager:
    """
    Owns the ordered set of enabled processors. A processor that fails to
    build or crashes while running is recorded as a failure and the
    remaining processors still run.
    """

    def __init__(self, config: PipelineConfig, file_filter: FileFilter, report_processor: ReportProcessor):
        self.config = config
        self.file_filter = file_filter
        self.report_processor = report_processor
        self.logger = logging.getLogger('Postbuild.ProcessorManager')
        self.processors: Dict[ProcessorKind, ProcessorConfig] = {}
        self.initialize_processors()

    def initialize_processors(self) -> None:
        for kind in ProcessorKind:
            processor_config = self.config.processors.get(kind)
            if processor_config is not None and processor_config.enabled:
                self.processors[kind] = processor_config.merged_with(self.config.global_config)

    def get_enabled_processors(self) -> List[str]:
        return [kind.value for kind in self.processors]

    def is_processor_enabled(self, name) -> bool:
        try:
            return ProcessorKind.from_name(name) in self.processors
        except ConfigurationError:
            return False

    def target_path(self, processor_config: ProcessorConfig, cwd: str, dist_path: str) -> str:
        return os.path.abspath(os.path.join(cwd, processor_config.path or dist_path))

    def run_all(self, cwd: str, dist_path: str) -> Dict[str, ProcessingStats]:
        """
        Run every enabled processor in order.

        Args:
            cwd: Directory relative target paths are resolved against
            dist_path: Default target directory for processors without a path override

        Returns:
            Mapping of processor name to its stats (failure stubs included)
        """
        results: Dict[str, ProcessingStats] = {}

        for kind, processor_config in self.processors.items():
            name = kind.value
            try:
                self.logger.info(f"\nRunning {name} processor...")
                processor = create_processor(kind, processor_config, self.file_filter)
                stats = processor.process(self.target_path(processor_config, cwd, dist_path))
            except Exception as e:
                self.logger.error(f"{name} processor failed: {e}", exc_info=self.config.global_config.verbose)
                results[name] = ProcessingStats.failure(name, str(e))
                continue

            results[name] = stats
            self.report_processor.add_stats(name, stats)

        return results

    def run_processor(self, name, cwd: str, dist_path: str) -> ProcessingStats:
        """Run one enabled processor on demand; configuration errors propagate."""
        kind = ProcessorKind.from_name(name)
        if kind not in self.processors:
            raise ConfigurationError(f"Processor '{kind.value}' is not enabled")

        processor_config = self.processors[kind]
        processor = create_processor(kind, processor_config, self.file_filter)
        stats = processor.process(self.target_path(processor_config, cwd, dist_path))
        self.report_processor.add_stats(kind.value, stats)
        return stats
