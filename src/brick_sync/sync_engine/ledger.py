"""
Device Ledger

Per-volume record of every file content already transferred off the source
volume. The ledger lives on the source volume itself, so re-inserting the same
volume finds its own history and a freshly formatted one starts empty.

Author: brick-sync Project
License: MIT
"""

import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from ..utils.logger import get_logger

logger = get_logger(__name__)

LEDGER_FILENAME = ".mindstorms-utilities.device.yml"


class LedgerPersistenceError(Exception):
    """Raised when the ledger cannot be written back to the source volume."""


class TransferRecord(BaseModel):
    """One completed transfer. Unknown keys are kept and written back."""

    model_config = ConfigDict(extra="allow")

    date: datetime = Field(strict=True)
    path: StrictStr
    hash: StrictStr

    def to_document(self) -> dict:
        return {"date": self.date, "path": self.path, "hash": self.hash, **(self.model_extra or {})}


class DeviceLedger(BaseModel):
    """
    Transfer history of one source volume.

    The log is keyed by content hash; insertion order is kept for people
    reading the file. Keys written by other tools survive a load/save cycle.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    device_id: StrictStr = Field(alias="deviceId")
    log: List[TransferRecord]

    @classmethod
    def new(cls) -> "DeviceLedger":
        """Create an empty ledger with a freshly generated device id."""
        return cls(device_id=str(uuid.uuid4()), log=[])

    def find(self, file_hash: str) -> Optional[TransferRecord]:
        """Return the record for file_hash, or None if it was never transferred."""
        for item in self.log:
            if item.hash == file_hash:
                return item
        return None

    def record(
        self,
        path: str,
        file_hash: str,
        date: Optional[datetime] = None
    ) -> TransferRecord:
        """Append a transfer record and return it."""
        item = TransferRecord(
            date=date or datetime.now(timezone.utc),
            path=path,
            hash=file_hash
        )
        self.log.append(item)
        return item

    def to_document(self) -> dict:
        """Plain mapping in on-disk key order."""
        return {
            "deviceId": self.device_id,
            "log": [item.to_document() for item in self.log],
            **(self.model_extra or {})
        }


class LedgerStore:
    """
    Loads and persists device ledgers as YAML.

    load() never fails: an unreadable or malformed ledger is replaced by a
    fresh one, which at worst causes files to be copied again.
    """

    def load(self, path: Union[str, Path]) -> DeviceLedger:
        """
        Read and validate the ledger at path.

        Args:
            path: Ledger file location

        Returns:
            The stored ledger, or a newly created and persisted empty one
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            ledger = DeviceLedger.model_validate(data)
            logger.debug(f"Loaded ledger {ledger.device_id} with {len(ledger.log)} entries")
            return ledger
        # pydantic's ValidationError and UnicodeDecodeError are both ValueErrors
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Ledger at {path} unusable, starting a new one: {type(e).__name__}")
            logger.debug(f"Ledger load error: {e}")

        ledger = DeviceLedger.new()
        self.save(path, ledger)
        logger.info(f"Created ledger {ledger.device_id} at {path}")
        return ledger

    def save(self, path: Union[str, Path], ledger: DeviceLedger) -> None:
        """
        Replace the ledger file at path with the full contents of ledger.

        Raises:
            LedgerPersistenceError: If the file cannot be written
        """
        path = Path(path)
        tmp_path = path.with_name(path.name + ".tmp")

        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(
                    ledger.to_document(),
                    f,
                    default_flow_style=False,
                    sort_keys=False
                )
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            raise LedgerPersistenceError(f"Could not save ledger to {path}: {e}") from e
