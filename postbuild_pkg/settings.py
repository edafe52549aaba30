#!/usr/bin/env python3
"""
Settings loader for the postbuild pipeline.
Supports configuration from postbuild.yml, postbuild.yaml, or postbuild.json files.
"""

import copy
import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

from .config import ConfigurationError, PipelineConfig, ProcessorKind, default_section

logger = logging.getLogger('Postbuild.Settings')

DEFAULT_TARGET = 'compression'


def _section(kind, enabled):
    """Default section for a processor kind, led by its enabled flag."""
    section = {'enabled': enabled}
    section.update(default_section(kind))
    return section


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``base`` with ``override`` merged in, recursing into mappings."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class PostbuildSettings:
    """Load and manage pipeline configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'global': {
            'base_path': None,
            'dist_path': 'dist',
            'verbose': False,
            'log_dir': None,
            'ignore_patterns': [
                '**/node_modules/**',
                '**/.git/**',
                '**/.*',
                '**/Thumbs.db',
                '**/.DS_Store',
            ],
        },
        'javascript': _section(ProcessorKind.JAVASCRIPT, enabled=True),
        'html': _section(ProcessorKind.HTML, enabled=True),
        'css': _section(ProcessorKind.CSS, enabled=False),
        'cleanup': _section(ProcessorKind.CLEANUP, enabled=True),
        'gzip': _section(ProcessorKind.GZIP, enabled=True),
        'brotli': _section(ProcessorKind.BROTLI, enabled=False),
        'reporting': {
            'enabled': True,
            'show_file_details': True,
            'max_errors_shown': 3,
            'json_path': None,
        },
        # Named run targets, merged over everything above
        'targets': {
            'compression': {},
            'cleanup': {
                'javascript': {'enabled': False},
                'html': {'enabled': False},
                'css': {'enabled': False},
                'gzip': {'enabled': False},
                'brotli': {'enabled': False},
                'cleanup': {
                    'enabled': True,
                    'path': '.',
                    'concurrency': 20,
                    'remove_empty_dirs': True,
                    'patterns': ['.astro/**', 'dist/**'],
                },
            },
            'cdn': {
                'gzip': {'level': 6, 'min_size': 2048},
                'brotli': {'enabled': True},
            },
        },
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['postbuild.yml', 'postbuild.yaml', 'postbuild.json']

    def __init__(self, config_dir: str = None, config_file: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
            config_file: Explicit configuration file, skips discovery when given.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_file_path = config_file

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        An explicitly requested file must exist and parse; a discovered
        file that fails to load only produces a warning.

        Returns:
            Dictionary of configuration settings
        """
        if self.config_file_path:
            loaded_settings = self._load_config_file(self.config_file_path)
            self.settings = deep_merge(self.settings, loaded_settings)
            logger.info(f"Loaded configuration from: {os.path.relpath(self.config_file_path)}")
            return copy.deepcopy(self.settings)

        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    # Merge with defaults, giving preference to loaded settings
                    self.settings = deep_merge(self.settings, loaded_settings)
                    logger.info(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError, OSError) as e:
                logger.warning(f"Warning: Failed to load config file {config_file}: {e}")

        return copy.deepcopy(self.settings)

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        if file_ext not in ['.yml', '.yaml', '.json']:
            raise ValueError(f"Unsupported config file format: {file_ext}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    loaded = yaml.safe_load(f) or {}
                else:
                    loaded = json.load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping at the top level")
        return loaded

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'postbuild.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        sample_config = copy.deepcopy(self.DEFAULT_SETTINGS)
        del sample_config['targets']
        del sample_config['global']['base_path']

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Postbuild Configuration File\n")
                    f.write("# Every section is optional; omitted keys keep their defaults.\n")
                    f.write("# Glob syntax: '**' spans directories, '*' stays within one name.\n\n")
                    for section, values in sample_config.items():
                        f.write(yaml.safe_dump({section: values}, default_flow_style=False, sort_keys=False))
                        f.write("\n")
                    f.write("# Named targets selected with --target, merged over the settings above\n")
                    f.write("# targets:\n")
                    f.write("#   cdn:\n")
                    f.write("#     gzip:\n")
                    f.write("#       level: 6\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(self.settings)
        global_section = merged.setdefault('global', {})

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is None:
                continue
            if key == 'dir':
                global_section['dist_path'] = value
            elif key == 'verbose' and value:
                global_section['verbose'] = True
            elif key == 'quiet' and value:
                global_section['verbose'] = False
            elif key == 'json_report':
                merged.setdefault('reporting', {})['json_path'] = value

        return merged

    def apply_target(self, settings: Dict[str, Any], target: str) -> Dict[str, Any]:
        """
        Merge the overrides of a named run target into ``settings``.

        Raises:
            ConfigurationError: If the target is not defined
        """
        targets = settings.get('targets') or {}
        if target not in targets:
            known = ', '.join(sorted(targets))
            raise ConfigurationError(f"Unknown target '{target}' (known: {known})")
        resolved = deep_merge(settings, targets[target] or {})
        resolved.pop('targets', None)
        return resolved

    def build_config(self, args_dict: Dict[str, Any] = None, target: str = DEFAULT_TARGET) -> PipelineConfig:
        """Resolve the final typed configuration for one run."""
        merged = self.merge_with_args(args_dict or {})
        resolved = self.apply_target(merged, target)
        return PipelineConfig.from_dict(resolved, target=target)
