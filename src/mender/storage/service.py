"""解析結果・ソリューションのスナップショットをワークスペースに保存するストレージサービス。"""

import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from mender.models.errors import StorageError

LOG = logging.getLogger(__name__)

RULE_SET_PREFIX = "analysis"
PARTIAL_RULE_SET_PREFIX = "partial_analysis"
SOLUTION_PREFIX = "solution"


class SnapshotStorage:
    """ワークスペースのドットフォルダにスナップショットを保存する。

    ファイル名は <prefix>_<UTCタイムスタンプ>.json とし、辞書順が保存順と一致する。
    接頭辞ごとに新しいものからmax_snapshots件を残し、古いものは削除する。
    """

    def __init__(self, data_dir: Path, max_snapshots: int = 5) -> None:
        self._data_dir = data_dir
        self._max_snapshots = max_snapshots
        self._last_stamp = ""

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _pattern(self, prefix: str) -> re.Pattern[str]:
        return re.compile(rf"^{re.escape(prefix)}_\d{{8}}T\d{{12}}\.json$")

    def _next_stamp(self) -> str:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%f")
        # 同一マイクロ秒内の連続保存でも順序を保つ
        if stamp <= self._last_stamp:
            stamp = f"{int(self._last_stamp[9:]) + 1:012d}"
            stamp = self._last_stamp[:9] + stamp
        self._last_stamp = stamp
        return stamp

    def list_snapshots(self, prefix: str) -> list[Path]:
        """接頭辞に一致するスナップショットを古い順に返す。"""
        if not self._data_dir.exists():
            return []
        pattern = self._pattern(prefix)
        return sorted(p for p in self._data_dir.iterdir() if p.is_file() and pattern.match(p.name))

    async def write_snapshot(self, content: Any, prefix: str) -> Path:
        """スナップショットを書き込み、古いものを削除する。

        Args:
            content: JSONシリアライズ可能なデータ。
            prefix: スナップショットの種類を表す接頭辞。

        Returns:
            書き込んだファイルのパス。

        Raises:
            StorageError: 書き込みに失敗した場合。
        """
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            path = self._data_dir / f"{prefix}_{self._next_stamp()}.json"
            path.write_text(json.dumps(content, indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {prefix} snapshot: {e}") from e
        LOG.debug("Wrote snapshot %s", path.name)
        self._prune(prefix)
        return path

    def _prune(self, prefix: str) -> None:
        snapshots = self.list_snapshots(prefix)
        for path in snapshots[: max(len(snapshots) - self._max_snapshots, 0)]:
            path.unlink(missing_ok=True)
            LOG.debug("Pruned snapshot %s", path.name)

    async def load_latest(self, prefix: str) -> Any | None:
        """最新のスナップショットを読み込む。存在しない場合はNone。

        Raises:
            StorageError: 最新のスナップショットが読み込めない場合。
        """
        snapshots = self.list_snapshots(prefix)
        if not snapshots:
            return None
        latest = snapshots[-1]
        try:
            return json.loads(latest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read snapshot {latest.name}: {e}") from e


def read_data_file(path: Path) -> Any:
    """利用者が選択した解析結果・ソリューションのファイルを読み込む（YAML/JSON）。

    Raises:
        StorageError: ファイルが存在しない、または解析できない場合。
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise StorageError(f"File not found: {path}") from None
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise StorageError(f"Failed to parse {path.name}: {e}") from e
