"""
Unit Tests for the Device Ledger

Tests ledger persistence, round-trips and self-healing on bad input.

Author: brick-sync Project
License: MIT
"""

import pytest
import yaml
from datetime import datetime, timezone
from unittest.mock import patch

from brick_sync.sync_engine.ledger import (
    DeviceLedger,
    LedgerPersistenceError,
    LedgerStore,
    TransferRecord
)


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / ".mindstorms-utilities.device.yml"


class TestDeviceLedger:
    """Test suite for the in-memory ledger."""

    def test_new_ledger(self):
        """Test a new ledger is empty with a generated id."""
        ledger = DeviceLedger.new()

        assert ledger.log == []
        assert isinstance(ledger.device_id, str)
        assert len(ledger.device_id) == 36

    def test_new_ledgers_have_distinct_ids(self):
        """Test device ids are unique."""
        assert DeviceLedger.new().device_id != DeviceLedger.new().device_id

    def test_record_and_find(self):
        """Test recorded hashes can be found again."""
        ledger = DeviceLedger.new()
        item = ledger.record("a.uf2", "abc123")

        assert ledger.find("abc123") is item
        assert ledger.find("xyz789") is None
        assert item.date.tzinfo is not None

    def test_record_preserves_order(self):
        """Test insertion order is kept."""
        ledger = DeviceLedger.new()
        ledger.record("b.uf2", "h2")
        ledger.record("a.uf2", "h1")

        assert [item.path for item in ledger.log] == ["b.uf2", "a.uf2"]

    def test_document_uses_on_disk_keys(self):
        """Test serialized mapping uses camelCase deviceId."""
        ledger = DeviceLedger.new()
        ledger.record("a.uf2", "h1")

        document = ledger.to_document()

        assert list(document) == ["deviceId", "log"]
        assert document["log"][0]["path"] == "a.uf2"
        assert isinstance(document["log"][0]["date"], datetime)


class TestLedgerRoundTrip:
    """Test suite for save/load."""

    @pytest.mark.parametrize("count", [0, 1, 25])
    def test_round_trip(self, store, ledger_path, count):
        """Test save then load preserves id and records."""
        ledger = DeviceLedger.new()
        for i in range(count):
            ledger.record(f"file{i}.uf2", f"{i:0128x}")

        store.save(ledger_path, ledger)
        loaded = store.load(ledger_path)

        assert loaded.device_id == ledger.device_id
        assert [(r.path, r.hash) for r in loaded.log] == [(r.path, r.hash) for r in ledger.log]

    def test_timestamp_round_trip(self, store, ledger_path):
        """Test timestamps come back as the same instant."""
        ledger = DeviceLedger.new()
        when = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
        ledger.record("a.uf2", "h1", date=when)

        store.save(ledger_path, ledger)
        loaded = store.load(ledger_path)

        assert loaded.log[0].date == when

    def test_file_is_human_readable_yaml(self, store, ledger_path):
        """Test on-disk layout."""
        ledger = DeviceLedger.new()
        ledger.record("a.uf2", "h1")
        store.save(ledger_path, ledger)

        data = yaml.safe_load(ledger_path.read_text(encoding="utf-8"))

        assert data["deviceId"] == ledger.device_id
        assert data["log"][0]["path"] == "a.uf2"
        assert data["log"][0]["hash"] == "h1"

    def test_save_overwrites(self, store, ledger_path):
        """Test save fully replaces previous content."""
        first = DeviceLedger.new()
        first.record("a.uf2", "h1")
        store.save(ledger_path, first)

        second = DeviceLedger.new()
        store.save(ledger_path, second)

        loaded = store.load(ledger_path)
        assert loaded.device_id == second.device_id
        assert loaded.log == []

    def test_save_leaves_no_temp_file(self, store, ledger_path):
        """Test the temporary file is renamed into place."""
        store.save(ledger_path, DeviceLedger.new())

        assert [p.name for p in ledger_path.parent.iterdir()] == [ledger_path.name]


class TestLedgerSelfHealing:
    """Test suite for recovery from missing or malformed ledgers."""

    def test_missing_file_creates_ledger(self, store, ledger_path):
        """Test a missing ledger is created and persisted."""
        ledger = store.load(ledger_path)

        assert ledger.log == []
        assert ledger_path.exists()
        assert store.load(ledger_path).device_id == ledger.device_id

    @pytest.mark.parametrize("content", [
        "deviceId: abc\n",
        "deviceId: abc\nlog: not-a-list\n",
        "deviceId: abc\nlog:\n  - path: a.uf2\n    hash: h1\n",
        "deviceId: abc\nlog:\n  - date: 2024-01-01 10:00:00\n    path: 5\n    hash: h1\n",
        "deviceId: abc\nlog:\n  - date: not a date\n    path: a.uf2\n    hash: h1\n",
        "deviceId: 42\nlog: []\n",
        "log: []\n",
        "- just\n- a list\n",
        "",
        "{{{ not yaml",
    ])
    def test_invalid_ledger_is_replaced(self, store, ledger_path, content):
        """Test malformed ledgers yield a fresh, persisted ledger."""
        ledger_path.write_text(content, encoding="utf-8")

        ledger = store.load(ledger_path)

        assert ledger.device_id != "abc"
        assert ledger.log == []
        on_disk = yaml.safe_load(ledger_path.read_text(encoding="utf-8"))
        assert on_disk == {"deviceId": ledger.device_id, "log": []}

    def test_binary_garbage_is_replaced(self, store, ledger_path):
        """Test undecodable bytes are treated as corruption."""
        ledger_path.write_bytes(b"\xff\xfe\x00\x81garbage")

        ledger = store.load(ledger_path)

        assert ledger.log == []

    def test_valid_hand_written_ledger(self, store, ledger_path):
        """Test a ledger written by hand with a YAML timestamp loads."""
        ledger_path.write_text(
            "deviceId: abc\n"
            "log:\n"
            "  - date: 2024-01-01T10:00:00.500000+00:00\n"
            "    path: a.uf2\n"
            "    hash: h1\n",
            encoding="utf-8"
        )

        ledger = store.load(ledger_path)

        assert ledger.device_id == "abc"
        assert ledger.find("h1").path == "a.uf2"

    def test_unknown_keys_survive_save(self, store, ledger_path):
        """Test keys written by other tools are carried through a transfer."""
        ledger_path.write_text(
            "deviceId: abc\n"
            "label: robot kit 3\n"
            "log:\n"
            "  - date: 2024-01-01T10:00:00+00:00\n"
            "    path: a.uf2\n"
            "    hash: h1\n"
            "    size: 512\n",
            encoding="utf-8"
        )

        ledger = store.load(ledger_path)
        ledger.record("b.uf2", "h2")
        store.save(ledger_path, ledger)

        data = yaml.safe_load(ledger_path.read_text(encoding="utf-8"))
        assert data["label"] == "robot kit 3"
        assert data["log"][0]["size"] == 512
        assert list(data["log"][1]) == ["date", "path", "hash"]
        assert store.load(ledger_path).find("h1").path == "a.uf2"


class TestLedgerPersistenceFailure:
    """Test suite for save failures."""

    def test_save_into_missing_directory(self, store, tmp_path):
        """Test save wraps OSError."""
        with pytest.raises(LedgerPersistenceError):
            store.save(tmp_path / "gone" / "ledger.yml", DeviceLedger.new())

    def test_load_propagates_failed_recreation(self, store, ledger_path):
        """Test a fresh ledger that cannot be saved surfaces the error."""
        with patch("brick_sync.sync_engine.ledger.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(LedgerPersistenceError, match="read-only"):
                store.load(ledger_path)


class TestTransferRecord:
    """Test suite for record validation."""

    def test_string_date_rejected(self):
        """Test dates must be real datetimes."""
        with pytest.raises(ValueError):
            TransferRecord(date="2024-01-01", path="a.uf2", hash="h1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
