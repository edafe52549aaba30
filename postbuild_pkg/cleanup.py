"""
Removal of unwanted build artifacts and of the directories they leave empty.
"""

import errno
import os
from concurrent.futures import ThreadPoolExecutor

from .base import BaseProcessor
from .file_filter import sort_deepest_first
from .stats import ProcessingStats

# Directory removal errors that only mean "nothing to do here".
_IGNORED_DIR_ERRNOS = {errno.ENOENT, errno.EACCES, errno.EPERM, errno.ENOTEMPTY, errno.EEXIST}


class CleanupProcessor(BaseProcessor):
    """
    Deletes files matching ``config.patterns`` with at most
    ``config.concurrency`` deletions in flight, then prunes candidate
    directories deepest first.
    """

    name = 'cleanup'
    label = 'File cleanup'

    def new_stats(self):
        return ProcessingStats.for_cleanup(self.name)

    def run(self, target_dir, stats):
        self.logger.info("Cleaning up temporary files...")
        target_dir = os.path.abspath(target_dir)

        files, folders = self.discover(target_dir)
        self.logger.info(f"Found {len(files)} files to delete")
        self.logger.info(f"Found {len(folders)} folders to check")

        if files:
            self.delete_files(files, target_dir, stats)

        if self.config.remove_empty_dirs and folders:
            self.remove_empty_directories(folders, target_dir, stats)

        self.log_results(target_dir, stats)

    def discover(self, target_dir):
        """Collect matched files and candidate folders across all patterns."""
        files = {}
        folders = set()
        for pattern in self.config.patterns:
            matched_files, matched_folders = self.file_filter.find_files_and_folders_by_pattern(target_dir, pattern)
            files.update(dict.fromkeys(matched_files))
            folders.update(matched_folders)
        return list(files), sort_deepest_first(folders)

    def delete_files(self, files, target_dir, stats):
        with ThreadPoolExecutor(max_workers=self.config.concurrency) as executor:
            futures = [(path, executor.submit(self._delete_file, path)) for path in files]
            for path, future in futures:
                try:
                    deleted = future.result()
                except OSError as e:
                    self.logger.warning(f"  Unable to delete {path}: {e}")
                    stats.errors.append(f"{path}: {e}")
                    continue
                if not deleted:
                    continue
                stats.cleanup.deleted_files.append(path)
                stats.file_count += 1
                if self.config.is_verbose:
                    self.logger.info(f"  Deleted: {os.path.relpath(path, target_dir)}")

    @staticmethod
    def _delete_file(path):
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        return True

    def remove_empty_directories(self, directories, target_dir, stats):
        """
        Remove each directory that is empty by the time it is reached.

        ``directories`` must be ordered deepest first; a parent is only
        examined after all of its candidate children.
        """
        self.logger.info(f"Checking {len(directories)} potentially empty directories...")
        root = os.path.realpath(target_dir)

        for directory in directories:
            if os.path.realpath(directory) == root or directory == os.path.dirname(directory):
                continue
            try:
                if not os.path.isdir(directory) or os.listdir(directory):
                    continue
                os.rmdir(directory)
            except OSError as e:
                if e.errno not in _IGNORED_DIR_ERRNOS:
                    self.logger.warning(f"  Unable to delete directory {directory}: {e}")
                    stats.errors.append(f"Directory {directory}: {e}")
                continue

            stats.cleanup.deleted_dirs.append(directory)
            if self.config.is_verbose:
                self.logger.info(f"  Deleted empty directory: {os.path.relpath(directory, target_dir)}")

    def log_results(self, target_dir, stats):
        deleted_files = stats.cleanup.deleted_files
        deleted_dirs = stats.cleanup.deleted_dirs
        if not deleted_files and not deleted_dirs:
            self.logger.info("No files to clean up were found")
            return

        parts = []
        if deleted_files:
            parts.append(f"{len(deleted_files)} files")
        if deleted_dirs:
            parts.append(f"{len(deleted_dirs)} empty directories")
        self.logger.info(f"File cleanup completed! Deleted {' and '.join(parts)}")

        # Verbose runs already listed every path as it was removed
        if not self.config.is_verbose:
            for path in deleted_files[:10]:
                self.logger.info(f"    {os.path.relpath(path, target_dir)}")
            if len(deleted_files) > 10:
                self.logger.info(f"    ... and {len(deleted_files) - 10} more files")
            for path in deleted_dirs[:5]:
                self.logger.info(f"    {os.path.relpath(path, target_dir)}/")
            if len(deleted_dirs) > 5:
                self.logger.info(f"    ... and {len(deleted_dirs) - 5} more directories")

        if stats.errors:
            self.logger.warning(f"Encountered {len(stats.errors)} errors")
