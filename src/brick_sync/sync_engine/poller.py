"""
Availability Poller

Blocking retry loops that wait out unmounted, missing or write-locked volumes.
Neither poll gives up on its own; the only way out short of success is the
stop event.

Author: brick-sync Project
License: MIT
"""

import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..utils.file_ops import write_file_bytes
from ..utils.logger import get_logger

logger = get_logger(__name__)

POLL_SOURCE_INTERVAL = 1.0
POLL_DESTINATION_INTERVAL = 1.0


class PollCancelledError(Exception):
    """Raised when a poll is abandoned because a stop was requested."""


class AvailabilityPoller:
    """
    Retry-until-success polls with a fixed delay between attempts.

    There is no attempt cap and no backoff growth.
    """

    def __init__(
        self,
        source_interval: float = POLL_SOURCE_INTERVAL,
        destination_interval: float = POLL_DESTINATION_INTERVAL,
        stop_event: Optional[threading.Event] = None
    ):
        """
        Initialize poller.

        Args:
            source_interval: Seconds between directory listing attempts
            destination_interval: Seconds between write attempts
            stop_event: Event that cancels any wait in progress when set
        """
        self.source_interval = source_interval
        self.destination_interval = destination_interval
        self.stop_event = stop_event or threading.Event()

    def _wait(self, interval: float) -> None:
        if self.stop_event.wait(interval):
            raise PollCancelledError("Polling stopped")

    def _check_stopped(self) -> None:
        if self.stop_event.is_set():
            raise PollCancelledError("Polling stopped")

    def poll_read_directory(self, path: Union[str, Path]) -> List[str]:
        """
        List a directory, retrying until it can be listed.

        Failures are not inspected; any OSError means try again later.

        Returns:
            Entry names in the order the filesystem reports them
        """
        count = 0
        while True:
            self._check_stopped()
            count += 1
            logger.info(f"Poll read {path} ({count})")
            try:
                return os.listdir(path)
            except OSError:
                pass
            self._wait(self.source_interval)

    def poll_write_file(
        self,
        path: Union[str, Path],
        content: bytes,
        resolve: Optional[Callable[[Path], Path]] = None
    ) -> Path:
        """
        Write content to path, retrying until the write succeeds.

        Args:
            path: Intended destination file
            content: Bytes to write
            resolve: Maps the intended path to the one actually written. It is
                called again on every attempt, since the destination may only
                appear (with whatever it already holds) after several tries.

        Returns:
            Path the content was written to
        """
        path = Path(path)
        count = 0
        while True:
            self._check_stopped()
            count += 1
            logger.info(f"Poll write {path} ({count})")
            try:
                target = resolve(path) if resolve else path
                write_file_bytes(target, content)
                return target
            except OSError as e:
                logger.error(f"Write to {path} failed: {e}")
            self._wait(self.destination_interval)
