"""修正提案（ソリューション）の取り込みと、変更候補の適用・破棄を管理するサービス。"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Literal

from mender.engine.patch import apply_diff
from mender.engine.translate import parse_solution, translate_solution
from mender.models.errors import ChangeNotFoundError, InvalidTransitionError, MenderError, PatchApplyError
from mender.models.solution import BatchResult, FileFailure, LoadSolutionResult, LocalChange
from mender.models.state import ChangesTransitioned, SolutionLoaded
from mender.services.store import StateStore
from mender.storage.overlay import OverlayFileSystem
from mender.storage.service import SOLUTION_PREFIX, SnapshotStorage
from mender.storage.workspace import WorkspaceFileSystem

LOG = logging.getLogger(__name__)


def _failure(uri: str, error: Exception) -> FileFailure:
    return FileFailure(uri=uri, error=type(error).__name__, message=str(error))


class SolutionService:
    """変更候補のライフサイクル（pending → applied / discarded）を管理する。

    applyは提案内容を即座に実ファイルへ書き込む。discardは実ファイルに触れず、
    仮想オーバーレイの内容を元の内容に戻す。同一ファイルへの操作は直列化する。
    """

    def __init__(
        self,
        store: StateStore,
        storage: SnapshotStorage,
        overlay: OverlayFileSystem,
        workspace: WorkspaceFileSystem,
    ) -> None:
        self._store = store
        self._storage = storage
        self._overlay = overlay
        self._workspace = workspace
        self._file_locks: dict[str, asyncio.Lock] = {}

    def _get_file_lock(self, uri: str) -> asyncio.Lock:
        """ファイル単位のasyncio.Lockを取得する。"""
        if uri not in self._file_locks:
            self._file_locks[uri] = asyncio.Lock()
        return self._file_locks[uri]

    @property
    def workspace_root(self) -> Path:
        return self._workspace.root

    def changes(self) -> list[LocalChange]:
        return list(self._store.state.local_changes)

    def pending_changes(self) -> list[LocalChange]:
        return self._store.state.pending_changes()

    def get_change(self, original_uri: str) -> LocalChange:
        """変更候補を取得する。

        Raises:
            ChangeNotFoundError: 変更候補が存在しない場合。
        """
        change = self._store.state.find_change(original_uri)
        if change is None:
            raise ChangeNotFoundError(original_uri)
        return change

    async def load_solution(self, raw: Any, *, persist: bool = True) -> LoadSolutionResult:
        """ソリューションを読み込み、提案内容を仮想オーバーレイに書き込む。

        既存の変更候補は全て置き換えられる。diffが適用できないファイルについては
        diffテキストそのものがオーバーレイに書き込まれ、失敗として報告される。
        そのような変更候補はfallbackとして記録され、適用できない。

        Args:
            raw: ソリューションのペイロード。
            persist: スナップショットとして保存するかどうか。

        Returns:
            変更候補とファイル単位の失敗一覧。

        Raises:
            IngestionError: ペイロードが不正な場合。
        """
        solution = parse_solution(raw)
        if persist:
            try:
                await self._storage.write_snapshot(solution.model_dump(mode="json", by_alias=True), SOLUTION_PREFIX)
            except MenderError as e:
                LOG.warning("Could not persist solution snapshot: %s", e)

        changes = translate_solution(solution, self.workspace_root, self._overlay.scheme)
        self._overlay.remove_all()
        for change in changes:
            self._overlay.create_directories_if_needed(change.modified_uri)

        results = await asyncio.gather(*(self._write_proposed(change) for change in changes))
        failures = [failure for failure in results if failure is not None]
        failed_uris = {failure.uri for failure in failures}
        changes = [
            change.model_copy(update={"fallback": True}) if change.original_uri in failed_uris else change
            for change in changes
        ]

        self._store.dispatch(SolutionLoaded(solution=solution, changes=tuple(changes)))
        LOG.info("Loaded solution with %d change(s), %d failure(s)", len(changes), len(failures))
        return LoadSolutionResult(changes=changes, failures=failures, errors=list(solution.errors))

    async def _write_proposed(self, change: LocalChange) -> FileFailure | None:
        async with self._get_file_lock(change.original_uri):
            try:
                original = await self._workspace.read_text(change.original_uri)
            except MenderError as e:
                LOG.error("Cannot read %s to apply solution diff: %s", change.original_uri, e)
                await self._overlay.write_file(change.modified_uri, change.diff.encode("utf-8"))
                return _failure(change.original_uri, e)

            outcome = apply_diff(original, change.diff, change.original_uri)
            await self._overlay.write_file(change.modified_uri, outcome.content.encode("utf-8"))
            if not outcome.applied:
                return FileFailure(uri=change.original_uri, error="PatchApplyError", message=outcome.error or "")
            return None

    async def proposed_content(self, original_uri: str) -> str:
        """変更候補の提案内容を仮想オーバーレイから返す。"""
        change = self.get_change(original_uri)
        return await self._overlay.read_text(change.modified_uri)

    async def original_content(self, read_only_uri: str) -> str:
        """読み取り専用スキームのURIから元のファイル内容を返す。"""
        return await self._workspace.read_original(read_only_uri)

    def _require_pending(self, original_uri: str, requested: str) -> LocalChange:
        change = self.get_change(original_uri)
        if not change.is_pending:
            raise InvalidTransitionError(original_uri, change.state, requested)
        return change

    async def _commit(self, original_uri: str) -> LocalChange:
        async with self._get_file_lock(original_uri):
            change = self._require_pending(original_uri, "apply")
            if change.fallback:
                raise PatchApplyError(original_uri, "proposed content is the unapplied solution diff")
            content = await self._overlay.read_text(change.modified_uri)
            await self._workspace.write_text(change.original_uri, content)
            updated = change.model_copy(update={"state": "applied"})
            self._store.dispatch(ChangesTransitioned(updates=(updated,)))
        return updated

    async def _revert(self, original_uri: str) -> LocalChange:
        async with self._get_file_lock(original_uri):
            change = self._require_pending(original_uri, "discard")
            try:
                original = await self._workspace.read_text(change.original_uri)
            except MenderError as e:
                # 元の内容が読めない場合は提案内容を残さない
                LOG.warning("Cannot restore overlay for %s, removing it: %s", original_uri, e)
                await self._overlay.delete(change.modified_uri)
            else:
                await self._overlay.write_file(change.modified_uri, original.encode("utf-8"))
            updated = change.model_copy(update={"state": "discarded"})
            self._store.dispatch(ChangesTransitioned(updates=(updated,)))
        return updated

    async def apply(self, original_uri: str) -> LocalChange:
        """変更候補を適用し、提案内容を実ファイルに書き込む。

        Raises:
            ChangeNotFoundError: 変更候補が存在しない場合。
            InvalidTransitionError: 変更候補がpendingでない場合。
            PatchApplyError: diffが適用できなかった変更候補の場合。
            FileOperationError: 実ファイルへの書き込みに失敗した場合。
        """
        return await self._commit(original_uri)

    async def discard(self, original_uri: str) -> LocalChange:
        """変更候補を破棄する。実ファイルは変更しない。

        元の内容が読めない場合もdiscardedに遷移し、オーバーレイの内容は削除する。

        Raises:
            ChangeNotFoundError: 変更候補が存在しない場合。
            InvalidTransitionError: 変更候補がpendingでない場合。
        """
        return await self._revert(original_uri)

    async def apply_all(self) -> BatchResult:
        """pendingの変更候補を全て適用する。"""
        return await self._run_batch("apply", self._commit)

    async def discard_all(self) -> BatchResult:
        """pendingの変更候補を全て破棄する。"""
        return await self._run_batch("discard", self._revert)

    async def _run_batch(
        self,
        action: Literal["apply", "discard"],
        operation: Callable[[str], Awaitable[LocalChange]],
    ) -> BatchResult:
        # ファイル同士は独立しているため並行に実行し、失敗はファイル単位で報告する
        uris = [change.original_uri for change in self.pending_changes()]
        outcomes = await asyncio.gather(*(operation(uri) for uri in uris), return_exceptions=True)

        result = BatchResult(action=action)
        for uri, outcome in zip(uris, outcomes, strict=True):
            if isinstance(outcome, MenderError):
                result.failed.append(_failure(uri, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(uri)

        LOG.info("%s all: %d succeeded, %d failed", action.capitalize(), len(result.succeeded), len(result.failed))
        return result
