"""
Statistics records returned by every processor.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SizeStats:
    """Byte totals for processors that rewrite or compress content."""
    original_size: int = 0
    compressed_size: int = 0

    @property
    def saved(self) -> int:
        return self.original_size - self.compressed_size

    @property
    def percent_saved(self) -> float:
        if self.original_size <= 0:
            return 0.0
        return self.saved / self.original_size * 100


@dataclass
class CleanupStats:
    """Paths removed by the cleanup processor."""
    deleted_files: List[str] = field(default_factory=list)
    deleted_dirs: List[str] = field(default_factory=list)

    @property
    def dir_count(self) -> int:
        return len(self.deleted_dirs)


@dataclass
class ProcessingStats:
    """
    Accumulator owned by a single processor run.

    ``file_count`` only counts items that were processed successfully;
    failures are appended to ``errors`` instead.
    """
    name: str
    file_count: int = 0
    errors: List[str] = field(default_factory=list)
    sizes: Optional[SizeStats] = None
    cleanup: Optional[CleanupStats] = None

    @classmethod
    def for_sizes(cls, name: str) -> 'ProcessingStats':
        return cls(name=name, sizes=SizeStats())

    @classmethod
    def for_cleanup(cls, name: str) -> 'ProcessingStats':
        return cls(name=name, cleanup=CleanupStats())

    @classmethod
    def failure(cls, name: str, message: str) -> 'ProcessingStats':
        """Stub recorded when a processor could not run at all."""
        return cls(name=name, errors=[message])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.name,
            'file_count': self.file_count,
            'errors': list(self.errors),
        }
        if self.sizes is not None:
            data['original_size'] = self.sizes.original_size
            data['compressed_size'] = self.sizes.compressed_size
            data['saved'] = self.sizes.saved
            data['percent_saved'] = round(self.sizes.percent_saved, 1)
        if self.cleanup is not None:
            data['deleted_files'] = list(self.cleanup.deleted_files)
            data['deleted_dirs'] = list(self.cleanup.deleted_dirs)
        return data


def format_bytes(num_bytes: int) -> str:
    """Render a byte count as a short human readable string, e.g. ``1.5 KB``."""
    if num_bytes == 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    sign = '-' if num_bytes < 0 else ''
    value = float(abs(num_bytes))
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{sign}{round(value, 2):g} {units[index]}"
