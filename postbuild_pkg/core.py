import logging
import os
import sys
import time
from datetime import datetime

from .config import PipelineConfig
from .file_filter import FileFilter
from .manager import ProcessorManager
from .report import ReportProcessor


class PostBuild:
    """Runs the configured processors over a build output directory."""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.setup_logging()

        global_config = config.global_config
        self.cwd = global_config.base_path
        self.dist_path = os.path.abspath(os.path.join(self.cwd, global_config.dist_path))

        self.file_filter = FileFilter(global_config.ignore_patterns)
        self.report_processor = ReportProcessor(config.reporting)
        self.processor_manager = ProcessorManager(config, self.file_filter, self.report_processor)

    def setup_logging(self):
        """Set up logging configuration."""
        verbose = self.config.global_config.verbose
        self.logger = logging.getLogger('Postbuild')
        self.logger.setLevel(logging.DEBUG if verbose else logging.INFO)

        if not self.logger.handlers:
            # Console handler, plain messages on stdout
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            log_dir = self.config.global_config.log_dir
            if log_dir:
                # File handler for all logs
                os.makedirs(log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('postbuild_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(log_dir, log_filename), encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)

    def run(self, only=None):
        """
        Run every enabled processor (or just ``only``), then report.

        Returns a mapping of processor name to ``ProcessingStats``.
        """
        start_time = time.time()
        self.logger.info(f"Start running pipeline: {self.config.target}")
        self.logger.info(f"Current workdir: {self.cwd}")
        self.logger.info(f"Default dist path: {self.dist_path}\n")

        if only:
            stats = self.processor_manager.run_processor(only, self.cwd, self.dist_path)
            results = {stats.name: stats}
        else:
            enabled = self.processor_manager.get_enabled_processors()
            self.logger.info(f"Enabled processors: {', '.join(enabled) or 'none'}")
            results = self.processor_manager.run_all(self.cwd, self.dist_path)

        self.logger.info("\nGenerating processing report...")
        self.report_processor.generate_report()
        if self.config.reporting.json_path:
            self.report_processor.write_json(os.path.join(self.cwd, self.config.reporting.json_path))

        elapsed = time.time() - start_time
        self.logger.info(f"\nPipeline completed in {elapsed:.3f} seconds, ran {len(results)} processors")
        return results
