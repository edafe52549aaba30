#!/usr/bin/env python3
"""
Command-line interface for postbuild - build output optimizer.
"""

import os
import sys
import argparse
from typing import List, Optional

from . import __version__
from .config import ProcessorKind
from .core import PostBuild
from .settings import DEFAULT_TARGET, PostbuildSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Postbuild - minify, pre-compress and clean build output')
    parser.add_argument('-T', '--target', type=str,
                        default=os.environ.get('POSTBUILD_TARGET', DEFAULT_TARGET),
                        help='Run target defined in the configuration (compression, cleanup, cdn, ...)')
    parser.add_argument('-d', '--dir', type=str,
                        help='Build output directory to process')
    parser.add_argument('-c', '--config', type=str,
                        help='Configuration file (defaults to postbuild.yml/.yaml/.json in the current directory)')
    parser.add_argument('--only', type=str, choices=[kind.value for kind in ProcessorKind],
                        help='Run a single enabled processor')
    parser.add_argument('--json-report', type=str,
                        help='Also write the report as JSON to this path')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Log every processed file')
    parser.add_argument('-q', '--quiet', action='store_true', default=None,
                        help='Disable verbose logging even if the configuration enables it')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Handle init command
    if args.init:
        try:
            config_path = PostbuildSettings().create_sample_config(args.init)
        except (IOError, OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Created sample configuration file: {config_path}")
        return

    try:
        settings_loader = PostbuildSettings(config_file=args.config)
        settings_loader.load_settings()

        # Command line arguments take precedence
        args_dict = {k: v for k, v in vars(args).items() if v is not None}
        config = settings_loader.build_config(args_dict, target=args.target)

        PostBuild(config).run(only=args.only)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
