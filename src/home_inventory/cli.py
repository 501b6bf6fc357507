"""Command line entry point: back up or restore the inventory catalog."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .backup import (
    BackupController, BackupEngine, PathMapper, RestoreEngine, StatusKind, backup_file_name
)
from .common import ConfigLoader, setup_logging
from .common.errors import ConfigurationError, StorageError
from .config import InventoryConfig
from .storage import open_repository

APP_NAME = "home-inventory"

logger = logging.getLogger(__package__ or __name__)


def _build_controller(config: InventoryConfig, repository) -> BackupController:
    path_mapper = PathMapper(Path(config.storage.files_dir))
    backup_engine = BackupEngine(
        repository,
        path_mapper,
        compression_level=config.backup.compression_level,
    )
    restore_engine = RestoreEngine(
        repository,
        path_mapper,
        temp_parent=Path(config.storage.cache_dir),
    )
    return BackupController(backup_engine, restore_engine)


def _resolve_output(config: InventoryConfig, output: Optional[Path], output_dir: Optional[Path]) -> Path:
    if output is not None:
        return output
    directory = output_dir if output_dir is not None else Path.cwd()
    return directory / backup_file_name(prefix=config.backup.file_prefix)


def run_command(args: argparse.Namespace, config: InventoryConfig) -> int:
    """Run the selected backup or restore command.
    
    Returns:
        Exit code (0 for success)
    """
    logger.info(f"Catalog database: {config.storage.database_path}")
    logger.info(f"Image storage: {config.storage.files_dir}")
    
    try:
        repository = open_repository(Path(config.storage.database_path))
    except StorageError as e:
        logger.error(f"Cannot open catalog: {e.message}")
        return 1
    
    try:
        with _build_controller(config, repository) as controller:
            if args.command == "backup":
                destination = _resolve_output(config, args.output, args.output_dir)
                logger.info(f"Writing backup to {destination}")
                status = controller.backup(destination)
            else:
                logger.info(f"Restoring from {args.archive}")
                status = controller.restore(args.archive)
    finally:
        repository.close()
    
    if status.kind is StatusKind.SUCCEEDED:
        logger.info(status.message)
        return 0
    logger.error(status.message)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Back up or restore the home inventory catalog"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--database",
        type=Path,
        help="Catalog database path (overrides config)"
    )
    parser.add_argument(
        "--files-dir",
        type=Path,
        help="Private image storage directory (overrides config)"
    )
    
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    backup_parser = subparsers.add_parser("backup", help="Write the catalog to a zip archive")
    target = backup_parser.add_mutually_exclusive_group()
    target.add_argument("--output", "-o", type=Path, help="Archive file to write")
    target.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for an archive named inventory_backup_<timestamp>.zip"
    )
    
    restore_parser = subparsers.add_parser("restore", help="Merge a backup archive into the catalog")
    restore_parser.add_argument("archive", type=Path, help="Backup archive to restore")
    
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    
    loader = ConfigLoader(app_name=APP_NAME, config_class=InventoryConfig)
    try:
        config = loader.load(defaults_path=args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2
    
    overrides = {}
    if args.database:
        overrides["database_path"] = str(args.database)
    if args.files_dir:
        overrides["files_dir"] = str(args.files_dir)
    if overrides:
        config = config.model_copy(update={"storage": config.storage.model_copy(update=overrides)})
    
    setup_logging(
        level=config.logging.level,
        format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )
    
    return run_command(args, config)


if __name__ == "__main__":
    sys.exit(main())
