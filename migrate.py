#!/usr/bin/env python3
"""
Blog to Markdown Migration Tool - Main CLI Entry Point

This script provides the command-line interface for exporting a blog database
to Markdown posts with front matter, locally stored images and rewritten
internal links.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

# Add project root to Python path for flat imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

# Project imports
from config_loader import ConfigLoader, ConfigurationError, get_nested
from logger import setup_logging, log_section, log_config
from models import ExportSettings, NameIndex
from fetchers import ExportFetcher, FetcherError
from orchestrator import MigrationOrchestrator

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Export a blog database to Markdown posts with front matter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export using config.yaml in the current directory
  python migrate.py

  # Explicit configuration file
  python migrate.py --config blog.yaml

  # Everything from the environment
  DB_NAME=export/blog.nsf BASE_URL=https://blog.example.com/ \\
  TARGET_BASE_DIR=site/docs python migrate.py

  # Preview the filename mapping without writing anything
  python migrate.py --dry-run

  # Verbose logging
  python migrate.py -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--database',
        type=str,
        help='Exported database directory (overrides source.database / DB_NAME)'
    )

    parser.add_argument(
        '--collection',
        type=str,
        help='Collection to export (default: vContent2)'
    )

    parser.add_argument(
        '--base-url',
        type=str,
        help='Base URL the blog was served from (overrides BASE_URL)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output base directory (overrides TARGET_BASE_DIR)'
    )

    parser.add_argument(
        '--author',
        type=str,
        help='Author listed in the front matter of every post'
    )

    parser.add_argument(
        '--html-output',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Also write the repaired HTML of every post next to it'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Build the name index only and print it; nothing is written'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Write log output to this file as well'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """
    Load, overlay and validate configuration.

    Precedence: YAML file < environment variables < CLI arguments.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
        FileNotFoundError: If an explicitly given config file doesn't exist
    """
    config_path = args.config or DEFAULT_CONFIG_PATH

    config = ConfigLoader.load(config_path, required=args.config is not None)
    config = ConfigLoader.apply_env_overrides(config)
    config = ConfigLoader.merge_with_args(config, args)

    ConfigLoader.validate(config)
    return config


def run_migration(settings: ExportSettings, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the export passes."""
    logger.info("Starting migration pipeline")

    try:
        fetcher = ExportFetcher(settings, logger)
        orchestrator = MigrationOrchestrator(settings, fetcher, logger)

        if args.dry_run:
            logger.info("Dry-run mode: building name index only")
            name_index = orchestrator.build_index()
            _print_index_preview(name_index)
            logger.info("Dry-run complete. No changes made.")
            return 0

        stats = orchestrator.run()

        failed = stats.get('documents_failed', 0)
        if failed > 0:
            logger.warning(f"Migration completed with {failed} failed documents")
            for key in orchestrator.get_failed_keys():
                logger.warning(f"  - {key}")
            return 1

        logger.info("Migration completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.error("Migration interrupted by user")
        return 130
    except FetcherError as e:
        logger.error(f"Failed to read documents: {e}")
        return 1
    except Exception as e:
        logger.error(f"Migration failed: {str(e)}", exc_info=True)
        return 1


def _print_index_preview(name_index: NameIndex) -> None:
    """Print the key -> filename mapping built in pass 1."""
    print("\n" + "=" * 60)
    print("MIGRATION PREVIEW (DRY RUN)")
    print("=" * 60)
    print(f"\nDocuments to export: {len(name_index)}")

    print("\nFilename Mapping:")
    print("-" * 60)
    for key in sorted(name_index):
        print(f"  {key} -> {name_index[key]}")

    print("\n" + "=" * 60)


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        # Configuration errors are reported before any corpus or filesystem access
        config = load_configuration(args)

        # An explicit -v wins over the configured level
        level = None if args.verbose else get_nested(config, 'logging.level')
        logger = setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=level
        )

        log_section("Blog to Markdown Migration Tool")
        logger.info(f"Version: {__version__}")

        settings = ExportSettings.from_config(config)
        log_config(settings)

        return run_migration(settings, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ConfigurationError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except yaml.YAMLError as e:
        print(f"ERROR: Invalid configuration file: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
