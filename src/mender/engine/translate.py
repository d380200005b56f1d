"""ソリューションのペイロードをファイル単位の変更候補に変換する。"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mender.engine.patch import format_patch, parse_patch
from mender.models.errors import DiffParseError, IngestionError
from mender.models.solution import ChangeSetSolution, DiffSolution, LocalChange, Solution
from mender.uris import to_overlay_uri, workspace_file_uri

LOG = logging.getLogger(__name__)


def parse_solution(raw: Any) -> Solution:
    """ソリューションのペイロードを検証する。

    Args:
        raw: {errors, changes: [{original, modified, diff}]} または {diff} 形式のdict。

    Raises:
        IngestionError: どちらの形式にも当てはまらない場合。
    """
    if isinstance(raw, ChangeSetSolution | DiffSolution):
        return raw
    if not isinstance(raw, dict):
        raise IngestionError("Solution must be a mapping")

    try:
        if "changes" in raw:
            return ChangeSetSolution.model_validate(raw)
        if "diff" in raw:
            return DiffSolution.model_validate(raw)
    except ValidationError as e:
        raise IngestionError(
            "Solution is not well formed",
            details=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from None
    raise IngestionError("Solution must contain either 'changes' or 'diff'")


def _from_change_set(solution: ChangeSetSolution, workspace_root: Path, scheme: str) -> list[LocalChange]:
    # 追加・削除・リネームは未対応のため除外する
    return [
        LocalChange(
            original_uri=workspace_file_uri(change.original, workspace_root),
            modified_uri=to_overlay_uri(change.modified, scheme),
            diff=change.diff,
        )
        for change in solution.changes
        if change.original and change.modified and change.original == change.modified
    ]


def _from_diff(solution: DiffSolution, workspace_root: Path, scheme: str) -> list[LocalChange]:
    try:
        patches = parse_patch(solution.diff)
    except DiffParseError as e:
        raise IngestionError(f"Solution diff cannot be parsed: {e}") from None

    changes: list[LocalChange] = []
    for patch in patches:
        if not patch.is_in_place_modification:
            LOG.info("Skipping unsupported patch %s -> %s", patch.old_name, patch.new_name)
            continue
        relative_path = patch.old_path or ""
        changes.append(
            LocalChange(
                original_uri=workspace_file_uri(relative_path, workspace_root),
                modified_uri=to_overlay_uri(relative_path, scheme),
                diff=format_patch(patch),
            )
        )
    return changes


def translate_solution(solution: Solution, workspace_root: Path, scheme: str) -> list[LocalChange]:
    """ソリューションを変更候補のリストに変換する。

    同じファイルに対する変更が複数ある場合は最初のものを採用する。
    全ての変更候補はpending状態で生成される。
    """
    if isinstance(solution, ChangeSetSolution):
        candidates = _from_change_set(solution, workspace_root, scheme)
    else:
        candidates = _from_diff(solution, workspace_root, scheme)

    changes: list[LocalChange] = []
    seen: set[str] = set()
    for change in candidates:
        if change.original_uri in seen:
            LOG.warning("Dropping duplicate change for %s", change.original_uri)
            continue
        seen.add(change.original_uri)
        changes.append(change)
    return changes
