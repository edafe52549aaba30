"""
Directory walking and glob matching shared by every processor.
"""

import fnmatch
import logging
import os
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger('Postbuild.FileFilter')


def _split(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.replace('\\', '/').split('/') if part and part != '.')


def _match_segment(pattern: str, name: str) -> bool:
    # Hidden entries only match patterns that spell out the leading dot.
    if name.startswith('.') and not pattern.startswith('.'):
        return False
    return fnmatch.fnmatchcase(name, pattern)


@lru_cache(maxsize=4096)
def _match_parts(pattern_parts: Tuple[str, ...], path_parts: Tuple[str, ...]) -> bool:
    if not pattern_parts:
        return not path_parts
    head = pattern_parts[0]
    if head == '**':
        if _match_parts(pattern_parts[1:], path_parts):
            return True
        return (bool(path_parts)
                and not path_parts[0].startswith('.')
                and _match_parts(pattern_parts, path_parts[1:]))
    if not path_parts:
        return False
    return _match_segment(head, path_parts[0]) and _match_parts(pattern_parts[1:], path_parts[1:])


def glob_match(pattern: str, path: str) -> bool:
    """
    Match a forward-slash path against a glob pattern.

    ``**`` spans any number of segments, ``*`` stays within one segment.
    """
    return _match_parts(_split(pattern), _split(path))


class FileFilter:
    """Answers "is this path ignored" and "which files match" for a tree."""

    def __init__(self, global_ignore_patterns: Optional[Iterable[str]] = None):
        self.global_ignore_patterns = tuple(global_ignore_patterns or ())

    def should_ignore(self, file_path: str, patterns: Optional[Sequence[str]] = None, base_path: str = '') -> bool:
        """
        Check whether a path is excluded by the global or the given patterns.

        Args:
            file_path: Path to test
            patterns: Processor specific ignore patterns
            base_path: Directory the relative path is computed from

        Returns:
            True if the relative path or the bare file name matches a pattern
        """
        all_patterns = self.global_ignore_patterns + tuple(patterns or ())
        if not all_patterns:
            return False

        relative_path = os.path.relpath(file_path, base_path) if base_path else file_path
        normalized = relative_path.replace(os.sep, '/')
        name = os.path.basename(file_path)

        return any(glob_match(pattern, normalized) or glob_match(pattern, name) for pattern in all_patterns)

    def matches_extensions(self, file_name: str, extensions: Optional[Sequence[str]]) -> bool:
        if not extensions:
            return True
        lowered = file_name.lower()
        for ext in extensions:
            ext = ext.lower()
            if '*' in ext or '?' in ext:
                if fnmatch.fnmatchcase(lowered, ext):
                    return True
                continue
            if not ext.startswith('.'):
                ext = '.' + ext
            if lowered.endswith(ext):
                return True
        return False

    def find_files(self, directory: str, extensions: Optional[Sequence[str]] = None,
                   ignore_patterns: Optional[Sequence[str]] = None, base_path: Optional[str] = None) -> List[str]:
        """
        Recursively collect files under ``directory`` with a wanted extension.

        Ignored directories are not descended into. A missing directory
        yields an empty list.
        """
        base_path = base_path or directory
        results = []

        if not os.path.isdir(directory):
            return results

        for entry in self._scan(directory):
            full_path = os.path.abspath(entry.path)
            if self.should_ignore(full_path, ignore_patterns, base_path):
                continue
            if self._is_dir(entry):
                results.extend(self.find_files(full_path, extensions, ignore_patterns, base_path))
            elif self.matches_extensions(entry.name, extensions):
                results.append(full_path)

        return results

    def find_files_by_pattern(self, base_dir: str, pattern: str) -> List[str]:
        """Return absolute paths of files whose path relative to ``base_dir`` matches ``pattern``."""
        files, _ = self._search_pattern(base_dir, pattern)
        return files

    def find_files_and_folders_by_pattern(self, base_dir: str, pattern: str) -> Tuple[List[str], List[str]]:
        """
        Find matching files plus every directory that may become empty
        once they are gone.

        Folders are the ancestors of each matched file (``base_dir`` itself
        excluded) and any directory the pattern matched directly. They come
        back deepest first so children are always examined before parents.

        Returns:
            Tuple of (files, folders)
        """
        base_dir = os.path.abspath(base_dir)
        files, matched_dirs = self._search_pattern(base_dir, pattern)

        folders = set(matched_dirs)
        for file_path in files:
            parent = os.path.dirname(file_path)
            while parent != base_dir and parent.startswith(base_dir + os.sep):
                if parent in folders:
                    break
                folders.add(parent)
                parent = os.path.dirname(parent)

        return files, sort_deepest_first(folders)

    def _search_pattern(self, base_dir: str, pattern: str) -> Tuple[List[str], List[str]]:
        base_dir = os.path.abspath(base_dir)
        files = []
        dirs = []

        def search(directory):
            for entry in self._scan(directory):
                full_path = os.path.abspath(entry.path)
                relative = os.path.relpath(full_path, base_dir).replace(os.sep, '/')
                if self._is_dir(entry):
                    if glob_match(pattern, relative):
                        dirs.append(full_path)
                    search(full_path)
                elif glob_match(pattern, relative) or glob_match(pattern, entry.name):
                    files.append(full_path)

        if os.path.isdir(base_dir):
            search(base_dir)
        return files, dirs

    def _scan(self, directory: str) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as entries:
                return sorted(entries, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Unable to read directory {directory}: {e}")
            return []

    @staticmethod
    def _is_dir(entry: os.DirEntry) -> bool:
        try:
            return entry.is_dir(follow_symlinks=False)
        except OSError:
            return False


def path_depth(path: str) -> int:
    return len(_split(os.path.normpath(path)))


def sort_deepest_first(paths: Iterable[str]) -> List[str]:
    """Order directories by descending segment depth, ties by path."""
    return sorted(set(paths), key=lambda path: (-path_depth(path), path))
