"""
Typed configuration for the post-build pipeline.

The raw settings dictionary (see ``settings.py``) is converted exactly once
into these frozen records, which are then handed to each component.
"""

import copy
import enum
import logging
import os
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger('Postbuild.Config')

GZIP_LEVELS = range(0, 10)
BROTLI_LEVELS = range(0, 12)


class ConfigurationError(ValueError):
    """Raised for configuration that cannot be acted on."""


class ProcessorKind(enum.Enum):
    """Every processor the pipeline knows, in run order."""
    JAVASCRIPT = 'javascript'
    HTML = 'html'
    CSS = 'css'
    CLEANUP = 'cleanup'
    GZIP = 'gzip'
    BROTLI = 'brotli'

    @classmethod
    def from_name(cls, name) -> 'ProcessorKind':
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            known = ', '.join(kind.value for kind in cls)
            raise ConfigurationError(f"Unknown processor '{name}' (known: {known})") from None


@dataclass(frozen=True)
class GlobalConfig:
    base_path: str = field(default_factory=os.getcwd)
    dist_path: str = 'dist'
    verbose: bool = False
    ignore_patterns: Tuple[str, ...] = ()
    log_dir: Optional[str] = None


@dataclass(frozen=True)
class ProcessorConfig:
    """Options shared by every processor kind."""
    enabled: bool = False
    path: Optional[str] = None
    extensions: Tuple[str, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()
    verbose: Optional[bool] = None
    base_path: str = ''

    @property
    def is_verbose(self) -> bool:
        return bool(self.verbose)

    def merged_with(self, global_config: GlobalConfig) -> 'ProcessorConfig':
        """Layer these options over the pipeline-wide ones."""
        verbose = global_config.verbose if self.verbose is None else self.verbose
        return replace(self, verbose=verbose, base_path=global_config.base_path)


@dataclass(frozen=True)
class MinifyConfig(ProcessorConfig):
    minifier_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'minifier_options', MappingProxyType(dict(self.minifier_options)))


@dataclass(frozen=True)
class CompressionConfig(ProcessorConfig):
    algorithm: str = 'gzip'
    level: int = 9
    min_size: int = 1024

    def __post_init__(self):
        if isinstance(self.min_size, bool) or not isinstance(self.min_size, int) or self.min_size < 0:
            raise ConfigurationError(f"min_size must be a non-negative integer, got {self.min_size!r}")
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ConfigurationError(f"level must be an integer, got {self.level!r}")


@dataclass(frozen=True)
class CleanupConfig(ProcessorConfig):
    patterns: Tuple[str, ...] = ()
    concurrency: int = 10
    remove_empty_dirs: bool = True

    def __post_init__(self):
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be a positive integer, got {self.concurrency!r}")


@dataclass(frozen=True)
class ReportingConfig:
    enabled: bool = True
    show_file_details: bool = True
    max_errors_shown: int = 3
    json_path: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.max_errors_shown, bool) or not isinstance(self.max_errors_shown, int) \
                or self.max_errors_shown < 0:
            raise ConfigurationError(f"max_errors_shown must be a non-negative integer, got {self.max_errors_shown!r}")


CONFIG_TYPES = {
    ProcessorKind.JAVASCRIPT: MinifyConfig,
    ProcessorKind.HTML: MinifyConfig,
    ProcessorKind.CSS: MinifyConfig,
    ProcessorKind.CLEANUP: CleanupConfig,
    ProcessorKind.GZIP: CompressionConfig,
    ProcessorKind.BROTLI: CompressionConfig,
}

# Pre-compressed siblings are never inputs to a compression pass.
COMPRESSED_ARTIFACT_PATTERNS = ('**/*.gz', '**/*.br')

_COMPRESSIBLE = ['.js', '.css', '.html', '.xml', '.json', '.svg']

# Kind specific defaults, applied under every processor section.
PROCESSOR_DEFAULTS = {
    ProcessorKind.JAVASCRIPT: {
        'extensions': ['.js', '.mjs'],
        'ignore_patterns': [
            '**/_astro/**',
            '**/lib/**/*.js',
            '**/*.min.js',
            '**/vendor/**',
            '**/tracker*.js',
        ],
        'minifier_options': {
            'keep_bang_comments': False,
        },
    },
    ProcessorKind.HTML: {
        'extensions': ['.html'],
        'ignore_patterns': [
            '**/_astro/**',
            '**/temp/**',
            '**/*.template.html',
        ],
        'minifier_options': {
            'remove_comments': True,
            'remove_empty_space': True,
            'reduce_boolean_attributes': True,
            'minify_js': True,
            'minify_css': True,
        },
    },
    ProcessorKind.CSS: {
        'extensions': ['.css'],
        'ignore_patterns': [
            '**/_astro/**',
            '**/*.min.css',
        ],
        'minifier_options': {},
    },
    ProcessorKind.CLEANUP: {
        'concurrency': 10,
        'remove_empty_dirs': True,
        'patterns': [
            '**/*.map',
            '**/.DS_Store',
            '**/Thumbs.db',
            '**/desktop.ini',
            '**/*.tmp',
        ],
    },
    ProcessorKind.GZIP: {
        'algorithm': 'gzip',
        'level': 9,
        'min_size': 1024,
        'extensions': list(_COMPRESSIBLE),
        'ignore_patterns': [
            '**/_astro/**',
            '**/*.min.js',
            '**/*.min.css',
            '**/lib/**',
        ] + list(COMPRESSED_ARTIFACT_PATTERNS),
    },
    ProcessorKind.BROTLI: {
        'algorithm': 'brotli',
        'level': 11,
        'min_size': 1024,
        'extensions': list(_COMPRESSIBLE),
        'ignore_patterns': [
            '**/_astro/**',
            '**/*.min.js',
            '**/*.min.css',
        ] + list(COMPRESSED_ARTIFACT_PATTERNS),
    },
}

_SEQUENCE_FIELDS = ('extensions', 'ignore_patterns', 'patterns')


def default_section(kind: ProcessorKind) -> Dict[str, Any]:
    """A fresh, mutable copy of the defaults for ``kind``."""
    return copy.deepcopy(PROCESSOR_DEFAULTS[kind])


def default_config(kind: ProcessorKind) -> ProcessorConfig:
    """Disabled configuration for ``kind`` carrying its default options."""
    return _build_processor_config(kind, {})


@dataclass(frozen=True)
class PipelineConfig:
    target: str = 'compression'
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    processors: Mapping[ProcessorKind, ProcessorConfig] = field(default_factory=dict)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)

    def __post_init__(self):
        object.__setattr__(self, 'processors', MappingProxyType(dict(self.processors)))

    def processor(self, kind: ProcessorKind) -> ProcessorConfig:
        return self.processors.get(kind) or default_config(kind)

    @classmethod
    def from_dict(cls, settings: Dict[str, Any], target: str = 'compression') -> 'PipelineConfig':
        """
        Build the typed configuration from a merged settings dictionary.

        Keys missing from a processor section fall back to that kind's
        entry in ``PROCESSOR_DEFAULTS``.

        Args:
            settings: Settings as produced by ``PostbuildSettings``
            target: Name of the run target the settings were resolved for

        Returns:
            PipelineConfig instance
        """
        global_section = settings.get('global') or {}
        global_config = GlobalConfig(
            base_path=os.path.abspath(global_section.get('base_path') or os.getcwd()),
            dist_path=global_section.get('dist_path') or 'dist',
            verbose=bool(global_section.get('verbose', False)),
            ignore_patterns=tuple(global_section.get('ignore_patterns') or ()),
            log_dir=global_section.get('log_dir'),
        )

        processors = {}
        for kind in ProcessorKind:
            section = settings.get(kind.value)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise ConfigurationError(f"Section '{kind.value}' must be a mapping")
            processors[kind] = _build_processor_config(kind, section)

        reporting_section = settings.get('reporting') or {}
        reporting = ReportingConfig(
            enabled=bool(reporting_section.get('enabled', True)),
            show_file_details=bool(reporting_section.get('show_file_details', True)),
            max_errors_shown=reporting_section.get('max_errors_shown', 3),
            json_path=reporting_section.get('json_path'),
        )

        return cls(target=target, global_config=global_config, processors=processors, reporting=reporting)


def _build_processor_config(kind: ProcessorKind, section: Dict[str, Any]) -> ProcessorConfig:
    config_type = CONFIG_TYPES[kind]
    known = {f.name for f in fields(config_type)} - {'base_path'}
    options = default_section(kind)
    for key, value in section.items():
        if key not in known:
            logger.warning(f"Ignoring unknown option '{key}' in '{kind.value}' section")
            continue
        if isinstance(value, dict) and isinstance(options.get(key), dict):
            value = {**options[key], **value}
        options[key] = value

    kwargs = {}
    for key, value in options.items():
        if key in _SEQUENCE_FIELDS:
            value = (value,) if isinstance(value, str) else tuple(value or ())
        kwargs[key] = value
    try:
        return config_type(**kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Invalid '{kind.value}' configuration: {e}") from e
