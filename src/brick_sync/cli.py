"""
Command Line Entry Point

Collects the source and destination folders, configures logging and runs the
sync engine until it is stopped.

Author: brick-sync Project
License: MIT
"""

import argparse
import os
import signal
import sys
from typing import Callable, List, Optional

from .config.config_loader import ConfigLoader
from .config.schema import Config
from .core.sync_engine import SyncEngine
from .sync_engine.ledger import LedgerPersistenceError
from .sync_engine.poller import PollCancelledError
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

SOURCE_PROMPT = "Enter source folder (e.g. D:\\): "
DESTINATION_PROMPT = "Enter destination folder (e.g. U:\\): "


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="brick-sync",
        description="Copy .uf2 files from a removable volume, each content at most once"
    )
    ap.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    ap.add_argument("--source", type=str, default=None, help="Source folder (prompted for if omitted)")
    ap.add_argument("--destination", type=str, default=None, help="Destination folder (prompted for if omitted)")
    ap.add_argument("--once", action="store_true", help="Run one pass and exit")
    ap.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING, ERROR")
    return ap


def resolve_roots(
    config: Config,
    source: Optional[str] = None,
    destination: Optional[str] = None,
    prompt: Optional[Callable[[str], str]] = None
) -> Config:
    """
    Fill in absolute source/destination roots, asking for whatever is missing.

    Relative answers are resolved against the current working directory.
    """
    prompt = prompt or input
    source = source or config.sync.source_root or prompt(SOURCE_PROMPT)
    destination = destination or config.sync.destination_root or prompt(DESTINATION_PROMPT)

    if not source.strip() or not destination.strip():
        raise ValueError("Source and destination folders are required")

    config.sync.source_root = os.path.abspath(source.strip())
    config.sync.destination_root = os.path.abspath(destination.strip())
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader(args.config).load()
        if args.log_level:
            config.logging.log_level = args.log_level.upper()
        config = resolve_roots(config, args.source, args.destination)
    except (ValueError, OSError, EOFError, KeyboardInterrupt) as e:
        print(f"Error: {str(e) or type(e).__name__}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=config.logging.log_level,
        log_to_file=config.logging.log_to_file,
        log_file_path=config.logging.log_file_path,
        log_rotation_size=config.logging.log_rotation_size,
        log_retention_count=config.logging.log_retention_count,
        json_format=config.logging.json_format
    )

    engine = SyncEngine.from_config(config)

    def _on_signal(_sig, _frm):
        logger.info("Received stop signal")
        engine.stop()

    signal.signal(signal.SIGTERM, _on_signal)
    signal.signal(signal.SIGINT, _on_signal)

    try:
        if args.once:
            result = engine.run_pass()
            logger.info(f"Pass complete: {len(result.copied)} copied, {len(result.skipped)} skipped")
        else:
            engine.run_forever()
    except PollCancelledError:
        pass
    except (LedgerPersistenceError, OSError) as e:
        logger.error(f"Fatal: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
