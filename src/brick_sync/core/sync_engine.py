"""
Sync Engine

Core synchronization logic: lists the source volume, fingerprints every
matching file, copies content the device ledger has not seen yet and records
each transfer immediately after the destination write completes.

Author: brick-sync Project
License: MIT
"""

import os
import threading
from pathlib import Path
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum

from ..utils.logger import get_logger
from ..utils.file_ops import (
    COLLISION_OVERWRITE,
    calculate_content_hash,
    resolve_collision_path
)
from ..config.schema import Config
from ..sync_engine.ledger import (
    LEDGER_FILENAME,
    DeviceLedger,
    LedgerPersistenceError,
    LedgerStore
)
from ..sync_engine.poller import AvailabilityPoller, PollCancelledError

logger = get_logger(__name__)


class SyncStatus(Enum):
    """Outcome of one file within a pass."""
    COPIED = "copied"
    SKIPPED_DUPLICATE = "skipped_duplicate"


class SyncResult:
    """Result of a file sync operation."""

    def __init__(
        self,
        source_path: str,
        status: SyncStatus,
        file_hash: str,
        destination_path: Optional[str] = None,
        size_bytes: int = 0,
        previous_date: Optional[datetime] = None
    ):
        """
        Initialize sync result.

        Args:
            source_path: Name of the file in the source root
            status: Sync status
            file_hash: Content fingerprint
            destination_path: Where the content was written (if copied)
            size_bytes: File size
            previous_date: When the content was first transferred (if skipped)
        """
        self.source_path = source_path
        self.status = status
        self.file_hash = file_hash
        self.destination_path = destination_path
        self.size_bytes = size_bytes
        self.previous_date = previous_date
        self.timestamp = datetime.now()

    def __repr__(self) -> str:
        return f"SyncResult(source={self.source_path}, status={self.status.value})"


class PassResult:
    """Everything that happened during one pass over the source root."""

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.results: List[SyncResult] = []

    @property
    def copied(self) -> List[SyncResult]:
        return [r for r in self.results if r.status == SyncStatus.COPIED]

    @property
    def skipped(self) -> List[SyncResult]:
        return [r for r in self.results if r.status == SyncStatus.SKIPPED_DUPLICATE]

    def __repr__(self) -> str:
        return (
            f"PassResult(device={self.device_id}, copied={len(self.copied)}, "
            f"skipped={len(self.skipped)})"
        )


class SyncEngine:
    """
    Core synchronization engine.

    Runs passes over the source root until stopped. Per file the destination
    is written first and the ledger second, so an interruption can only ever
    cause a redundant copy, never a recorded transfer that did not happen.
    """

    def __init__(
        self,
        source_root: str,
        destination_root: str,
        extension: str = ".uf2",
        ledger_filename: str = LEDGER_FILENAME,
        poller: Optional[AvailabilityPoller] = None,
        ledger_store: Optional[LedgerStore] = None,
        collision_strategy: str = COLLISION_OVERWRITE,
        pass_interval: float = 1.0,
        fatal_ledger_errors: bool = False,
        stop_event: Optional[threading.Event] = None
    ):
        """
        Initialize sync engine.

        Args:
            source_root: Absolute path of the source volume
            destination_root: Absolute path of the destination directory
            extension: Case-sensitive suffix of files to transfer
            ledger_filename: Ledger file name inside source_root
            poller: Availability poller (shares the engine's stop event if created here;
                a supplied poller must own the stop_event, if one is also given)
            ledger_store: Ledger persistence
            collision_strategy: "overwrite" or "rename"
            pass_interval: Seconds to wait between passes
            fatal_ledger_errors: Re-raise ledger save failures out of run_forever()
            stop_event: Event used to stop run_forever() and cancel polls
        """
        self.source_root = source_root
        self.destination_root = destination_root
        self.extension = extension
        self.ledger_filename = ledger_filename
        self.ledger_path = os.path.join(source_root, ledger_filename)
        self.collision_strategy = collision_strategy
        self.pass_interval = pass_interval
        self.fatal_ledger_errors = fatal_ledger_errors

        if poller is not None and stop_event is not None and stop_event is not poller.stop_event:
            raise ValueError("stop_event must be the poller's stop_event")

        self._stop_event = stop_event or (poller.stop_event if poller else threading.Event())
        self.poller = poller or AvailabilityPoller(stop_event=self._stop_event)
        self.ledger_store = ledger_store or LedgerStore()

        self.stats = self._empty_stats()

        logger.info(f"SyncEngine initialized ({source_root} -> {destination_root})")

    @classmethod
    def from_config(
        cls,
        config: Config,
        stop_event: Optional[threading.Event] = None
    ) -> "SyncEngine":
        """Build an engine from loaded configuration with resolved roots."""
        sync = config.sync
        if not sync.source_root or not sync.destination_root:
            raise ValueError("Source and destination roots must be set")

        stop_event = stop_event or threading.Event()
        poller = AvailabilityPoller(
            source_interval=sync.poll_source_interval,
            destination_interval=sync.poll_destination_interval,
            stop_event=stop_event
        )
        return cls(
            source_root=sync.source_root,
            destination_root=sync.destination_root,
            extension=sync.extension,
            ledger_filename=sync.ledger_filename,
            poller=poller,
            collision_strategy=sync.collision_strategy,
            pass_interval=sync.pass_interval,
            fatal_ledger_errors=sync.fatal_ledger_errors,
            stop_event=stop_event
        )

    @staticmethod
    def _empty_stats() -> Dict:
        return {
            "passes": 0,
            "files_copied": 0,
            "duplicates_skipped": 0,
            "errors": 0,
            "bytes_copied": 0
        }

    def run_pass(self) -> PassResult:
        """
        Run one pass over the source root.

        Returns:
            PassResult describing each matching file

        Raises:
            OSError: If a listed source file cannot be read
            LedgerPersistenceError: If the ledger cannot be saved
            PollCancelledError: If stop() is called while polling
        """
        entries = self.poller.poll_read_directory(self.source_root)
        ledger = self.ledger_store.load(self.ledger_path)
        pass_result = PassResult(ledger.device_id)

        for name in entries:
            if not name.endswith(self.extension) or name == self.ledger_filename:
                continue

            source_path = os.path.join(self.source_root, name)
            if not os.path.isfile(source_path):
                logger.debug(f"Ignoring non-file entry {name}")
                continue

            with open(source_path, 'rb') as f:
                content = f.read()

            pass_result.results.append(self._sync_content(ledger, name, content))

        self.stats["passes"] += 1
        return pass_result

    def _sync_content(self, ledger: DeviceLedger, name: str, content: bytes) -> SyncResult:
        """Copy and record content unless the ledger already has it."""
        file_hash = calculate_content_hash(content)

        previous = ledger.find(file_hash)
        if previous is not None:
            logger.info(f"{name} already copied ({previous.date.astimezone():%Y-%m-%d %H:%M:%S})")
            self.stats["duplicates_skipped"] += 1
            return SyncResult(
                source_path=name,
                status=SyncStatus.SKIPPED_DUPLICATE,
                file_hash=file_hash,
                size_bytes=len(content),
                previous_date=previous.date
            )

        dest_path = self.poller.poll_write_file(
            Path(self.destination_root) / name,
            content,
            resolve=lambda path: resolve_collision_path(path, content, self.collision_strategy)
        )

        ledger.record(name, file_hash)
        self.ledger_store.save(self.ledger_path, ledger)
        logger.info(f"Copied {name} -> {dest_path}")

        self.stats["files_copied"] += 1
        self.stats["bytes_copied"] += len(content)

        return SyncResult(
            source_path=name,
            status=SyncStatus.COPIED,
            file_hash=file_hash,
            destination_path=str(dest_path),
            size_bytes=len(content)
        )

    def run_forever(self) -> None:
        """
        Run passes until stop() is called.

        A failed pass is logged and the next pass starts from a fresh listing.
        """
        logger.info("Sync loop started")

        while not self._stop_event.is_set():
            try:
                self.run_pass()
            except PollCancelledError:
                break
            except LedgerPersistenceError as e:
                self.stats["errors"] += 1
                logger.error(f"Ledger save failed: {e}")
                if self.fatal_ledger_errors:
                    raise
            except OSError as e:
                self.stats["errors"] += 1
                logger.error(f"Pass aborted: {e}")

            self._stop_event.wait(self.pass_interval)

        logger.info("Sync loop stopped")

    def stop(self) -> None:
        """Stop run_forever() and cancel any poll in progress."""
        logger.info("Stopping sync engine...")
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def get_stats(self) -> Dict:
        """Get sync statistics."""
        return self.stats.copy()

    def reset_stats(self):
        """Reset statistics counters."""
        self.stats = self._empty_stats()
        logger.info("Statistics reset")
