"""ファイルからの解析結果・ソリューションの読み込みと、保存済み状態の復元。"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from mender.models.errors import IngestionError, MenderError, PathScopeError
from mender.models.validation import LoadedFiles, SkippedFile
from mender.services.analysis import AnalysisService
from mender.services.solution import SolutionService
from mender.storage.service import SOLUTION_PREFIX, SnapshotStorage, read_data_file
from mender.validators.results import is_rule_set_payload

LOG = logging.getLogger(__name__)


def _is_solution_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and ("changes" in payload or "diff" in payload)


class ResultsLoader:
    """利用者が選択したファイルを種類ごとに判別し、エンジンに読み込む。"""

    def __init__(
        self,
        analysis_service: AnalysisService,
        solution_service: SolutionService,
        storage: SnapshotStorage,
    ) -> None:
        self._analysis = analysis_service
        self._solution = solution_service
        self._storage = storage

    async def load_files(self, paths: Sequence[str | Path]) -> LoadedFiles:
        """ファイルを読み込み、解析結果とソリューションをそれぞれ1つずつ取り込む。

        解析結果を先に取り込み、その後にソリューションを取り込む。同じ種類の
        ファイルが複数ある場合は最初のものを採用する。解析結果がワークスペース外を
        参照している場合はerrorsに記録し、ソリューションの読み込みは続ける。

        Args:
            paths: YAMLまたはJSONファイルのパス。

        Returns:
            読み込み結果。

        Raises:
            IngestionError: 読み込めるファイルが1つもない場合。
            PathScopeError: 解析結果がワークスペース外のファイルを参照しており、
                ソリューションも選択されていない場合。
        """
        report = LoadedFiles()
        analysis: tuple[str, Any] | None = None
        solution: tuple[str, Any] | None = None

        for path in map(Path, paths):
            try:
                payload = read_data_file(path)
            except MenderError as e:
                report.skipped.append(SkippedFile(path=str(path), reason=str(e)))
                continue

            if is_rule_set_payload(payload):
                if analysis is None:
                    analysis = (str(path), payload)
                    continue
                reason = "another analysis results file was already selected"
            elif _is_solution_payload(payload):
                if solution is None:
                    solution = (str(path), payload)
                    continue
                reason = "another solution file was already selected"
            else:
                reason = "neither analysis results nor a solution"
            report.skipped.append(SkippedFile(path=str(path), reason=reason))

        if analysis is None and solution is None:
            raise IngestionError(
                "Failed to load data from the selected file(s)",
                details=[f"{s.path}: {s.reason}" for s in report.skipped],
            )

        scope_error: PathScopeError | None = None
        if analysis is not None:
            try:
                normalized = await self._analysis.load_rule_sets(analysis[1])
            except PathScopeError as e:
                # ソリューションの読み込みは続ける
                scope_error = e
                report.errors.append(f"{analysis[0]}: {e}")
                LOG.error("Not loading %s: %s", analysis[0], e)
            else:
                report.analysis_file = analysis[0]
                report.rule_set_count = len(normalized.rule_sets)
                report.dropped_incidents = normalized.dropped_count
        if solution is not None:
            result = await self._solution.load_solution(solution[1])
            report.solution_file = solution[0]
            report.change_count = len(result.changes)

        if scope_error is not None and not report.loaded_anything:
            raise scope_error
        for skipped in report.skipped:
            LOG.warning("Skipped %s: %s", skipped.path, skipped.reason)
        return report

    async def restore_state(self) -> tuple[bool, bool]:
        """データフォルダの最新スナップショットから解析結果とソリューションを復元する。

        Returns:
            (解析結果を復元したか, ソリューションを復元したか) のタプル。

        Raises:
            StorageError: スナップショットが読み込めない場合。
            IngestionError: スナップショットの内容が不正な場合。
        """
        rule_sets = await self._analysis.restore()
        payload = await self._storage.load_latest(SOLUTION_PREFIX)
        if payload is not None:
            await self._solution.load_solution(payload, persist=False)
        return rule_sets is not None, payload is not None
