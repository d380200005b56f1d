"""解析結果の取り込み・マージと、課題ツリー・診断マーカーの提供を行うサービス。"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from mender.engine.aggregate import IssueAggregator
from mender.engine.diagnostics import build_diagnostics
from mender.engine.merge import count_incidents_on_paths, merge_rule_sets
from mender.models.analysis import RuleSet, dump_rule_sets
from mender.models.diagnostics import Diagnostic
from mender.models.errors import MenderError
from mender.models.issues import IssueTree
from mender.models.state import RuleSetsCleared, RuleSetsLoaded, RuleSetsMerged
from mender.models.validation import NormalizedResults
from mender.services.store import StateStore
from mender.storage.overlay import OverlayFileSystem
from mender.storage.service import PARTIAL_RULE_SET_PREFIX, RULE_SET_PREFIX, SnapshotStorage
from mender.validators.results import check_workspace_scope, normalize_rule_sets

LOG = logging.getLogger(__name__)


class AnalysisService:
    """解析結果の取り込みとマージを行う。

    マージは1つずつ直列に実行し、完了した結果のみを状態として公開する。
    """

    def __init__(
        self,
        store: StateStore,
        storage: SnapshotStorage,
        overlay: OverlayFileSystem,
        workspace_root: Path,
    ) -> None:
        self._store = store
        self._storage = storage
        self._overlay = overlay
        self._workspace_root = workspace_root
        self._merge_lock = asyncio.Lock()
        self._aggregator = IssueAggregator()

    @property
    def rule_sets(self) -> tuple[RuleSet, ...]:
        return self._store.state.rule_sets

    def _normalize(self, payload: Any) -> NormalizedResults:
        normalized = normalize_rule_sets(payload)
        check_workspace_scope(normalized.rule_sets, self._workspace_root)
        return normalized

    async def _persist(self, rule_sets: Sequence[RuleSet], prefix: str) -> None:
        try:
            await self._storage.write_snapshot(dump_rule_sets(rule_sets), prefix)
        except MenderError as e:
            # 永続化の失敗で解析結果の反映は止めない
            LOG.warning("Could not persist %s snapshot: %s", prefix, e)

    async def load_rule_sets(self, payload: Any) -> NormalizedResults:
        """全体解析の結果を読み込み、蓄積済みの結果を置き換える。

        既存の変更候補と仮想オーバーレイの内容は破棄される。

        Args:
            payload: RuleSetの配列（YAML/JSONから読み込んだ生データ）。

        Returns:
            正規化済みの解析結果。

        Raises:
            IngestionError: ペイロードが不正な場合。
            PathScopeError: ワークスペース外のファイルを参照している場合。
        """
        normalized = self._normalize(payload)
        async with self._merge_lock:
            self._store.dispatch(RuleSetsLoaded(rule_sets=tuple(normalized.rule_sets)))
            self._overlay.remove_all()
            await self._persist(normalized.rule_sets, RULE_SET_PREFIX)
        LOG.info("Loaded %d rule set(s)", len(normalized.rule_sets))
        return normalized

    async def merge_partial(self, payload: Any, scope_file_paths: Sequence[str]) -> NormalizedResults:
        """部分解析の結果を蓄積済みの結果にマージする。

        Args:
            payload: 部分解析の結果（RuleSetの配列）。
            scope_file_paths: 解析リクエストに含めたファイルのURI。

        Returns:
            正規化済みの部分解析結果。

        Raises:
            IngestionError: ペイロードが不正な場合。
            PathScopeError: ワークスペース外のファイルを参照している場合。
        """
        normalized = self._normalize(payload)
        async with self._merge_lock:
            before = count_incidents_on_paths(self.rule_sets, scope_file_paths)
            merged = merge_rule_sets(self.rule_sets, normalized.rule_sets, scope_file_paths)
            self._store.dispatch(RuleSetsMerged(rule_sets=tuple(merged)))
            after = count_incidents_on_paths(merged, scope_file_paths)
            await self._persist(normalized.rule_sets, PARTIAL_RULE_SET_PREFIX)
            await self._persist(merged, RULE_SET_PREFIX)
        LOG.info(
            "Merged partial analysis of %d file(s): %d incident(s) before, %d after",
            len(scope_file_paths),
            before,
            after,
        )
        return normalized

    async def clean(self) -> None:
        """蓄積済みの解析結果を破棄する。"""
        async with self._merge_lock:
            self._store.dispatch(RuleSetsCleared())

    async def restore(self) -> list[RuleSet] | None:
        """最新のスナップショットから解析結果を復元する。

        Raises:
            StorageError: スナップショットが読み込めない場合。
            IngestionError: スナップショットの内容が不正な場合。
        """
        payload = await self._storage.load_latest(RULE_SET_PREFIX)
        if payload is None:
            return None
        normalized = normalize_rule_sets(payload)
        async with self._merge_lock:
            self._store.dispatch(RuleSetsLoaded(rule_sets=tuple(normalized.rule_sets)))
        LOG.info("Restored %d rule set(s) from snapshot", len(normalized.rule_sets))
        return normalized.rule_sets

    def issue_tree(self) -> IssueTree:
        return self._aggregator.tree_for(self._store.state)

    def diagnostics(self) -> dict[str, list[Diagnostic]]:
        return build_diagnostics(self.rule_sets)
