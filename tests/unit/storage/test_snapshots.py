"""SnapshotStorageのユニットテスト。"""

import json
from pathlib import Path

import pytest

from mender.models.errors import StorageError
from mender.storage.service import (
    PARTIAL_RULE_SET_PREFIX,
    RULE_SET_PREFIX,
    SnapshotStorage,
    read_data_file,
)


class TestSnapshotStorage:
    async def test_write_snapshot_creates_data_dir(self, storage: SnapshotStorage) -> None:
        path = await storage.write_snapshot([{"name": "r"}], RULE_SET_PREFIX)
        assert path.parent == storage.data_dir
        assert path.name.startswith("analysis_")
        assert json.loads(path.read_text(encoding="utf-8")) == [{"name": "r"}]

    async def test_names_sort_in_write_order(self, storage: SnapshotStorage) -> None:
        written = [await storage.write_snapshot({"n": i}, RULE_SET_PREFIX) for i in range(3)]
        assert storage.list_snapshots(RULE_SET_PREFIX) == written

    async def test_prunes_old_snapshots(self, workspace: Path) -> None:
        storage = SnapshotStorage(data_dir=workspace / ".mender", max_snapshots=5)
        for i in range(7):
            await storage.write_snapshot({"n": i}, RULE_SET_PREFIX)
        snapshots = storage.list_snapshots(RULE_SET_PREFIX)
        assert len(snapshots) == 5
        assert json.loads(snapshots[0].read_text(encoding="utf-8")) == {"n": 2}

    async def test_prefixes_are_independent(self, storage: SnapshotStorage) -> None:
        await storage.write_snapshot({"kind": "full"}, RULE_SET_PREFIX)
        await storage.write_snapshot({"kind": "partial"}, PARTIAL_RULE_SET_PREFIX)
        assert len(storage.list_snapshots(RULE_SET_PREFIX)) == 1
        assert len(storage.list_snapshots(PARTIAL_RULE_SET_PREFIX)) == 1
        assert await storage.load_latest(RULE_SET_PREFIX) == {"kind": "full"}

    async def test_load_latest_returns_newest(self, storage: SnapshotStorage) -> None:
        await storage.write_snapshot({"n": 1}, RULE_SET_PREFIX)
        await storage.write_snapshot({"n": 2}, RULE_SET_PREFIX)
        assert await storage.load_latest(RULE_SET_PREFIX) == {"n": 2}

    async def test_load_latest_without_snapshots(self, storage: SnapshotStorage) -> None:
        assert await storage.load_latest(RULE_SET_PREFIX) is None

    async def test_load_latest_raises_on_corrupt_file(self, storage: SnapshotStorage) -> None:
        path = await storage.write_snapshot({"n": 1}, RULE_SET_PREFIX)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            await storage.load_latest(RULE_SET_PREFIX)

    async def test_ignores_unrelated_files(self, storage: SnapshotStorage) -> None:
        storage.data_dir.mkdir(parents=True)
        (storage.data_dir / "analysis_notes.json").write_text("{}", encoding="utf-8")
        assert storage.list_snapshots(RULE_SET_PREFIX) == []

    async def test_write_snapshot_raises_for_unserializable_content(self, storage: SnapshotStorage) -> None:
        with pytest.raises(StorageError):
            await storage.write_snapshot({"value": object()}, RULE_SET_PREFIX)


class TestReadDataFile:
    def test_reads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "output.yaml"
        path.write_text("- name: r\n  violations: {}\n", encoding="utf-8")
        assert read_data_file(path) == [{"name": "r", "violations": {}}]

    def test_reads_json(self, tmp_path: Path) -> None:
        path = tmp_path / "solution.json"
        path.write_text('{"diff": ""}', encoding="utf-8")
        assert read_data_file(path) == {"diff": ""}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError):
            read_data_file(tmp_path / "missing.yaml")

    def test_unparseable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StorageError):
            read_data_file(path)
