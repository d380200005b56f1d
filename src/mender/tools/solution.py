"""修正提案（ソリューション）のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from mender.models.errors import MenderError
from mender.models.solution import LocalChange
from mender.services.solution import SolutionService
from mender.tools.errors import error_response
from mender.uris import to_read_only_uri


def _change_to_dict(change: LocalChange) -> dict[str, Any]:
    return {
        "original_uri": change.original_uri,
        "modified_uri": change.modified_uri,
        "state": change.state,
        "fallback": change.fallback,
    }


def register_solution_tools(mcp: FastMCP, solution_service: SolutionService, *, read_only_scheme: str) -> None:
    """ソリューション関連のMCPツールを登録する。"""

    @mcp.tool()
    async def load_solution(solution: dict[str, Any]) -> dict[str, Any]:
        """修正提案を読み込み、ファイルごとの変更候補を作成する。

        既存の変更候補は全て置き換えられます。diffが適用できなかったファイルは
        failuresに含まれ、提案内容としてdiffテキストがそのまま表示されます。

        Args:
            solution: {"changes": [{"original", "modified", "diff"}], "encountered_errors": [...]}
                または {"diff": "<unified diff>", "encountered_errors": [...]} 形式。
        """
        try:
            result = await solution_service.load_solution(solution)
            return {
                "changes": [_change_to_dict(c) for c in result.changes],
                "failures": [f.model_dump() for f in result.failures],
                "errors": result.errors,
            }
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def list_changes(pending_only: bool = False) -> dict[str, Any]:
        """変更候補の一覧を取得する。

        Args:
            pending_only: Trueの場合、未処理（pending）の変更候補のみを返す。
        """
        changes = solution_service.pending_changes() if pending_only else solution_service.changes()
        return {"changes": [_change_to_dict(c) for c in changes]}

    @mcp.tool()
    async def get_change_diff(original_uri: str) -> dict[str, Any]:
        """変更候補のdiffと、変更前後の内容を取得する。

        Args:
            original_uri: 対象ファイルのURI（file://...）。
        """
        try:
            change = solution_service.get_change(original_uri)
            return {
                **_change_to_dict(change),
                "diff": change.diff,
                "original": await solution_service.original_content(
                    to_read_only_uri(original_uri, read_only_scheme)
                ),
                "proposed": await solution_service.proposed_content(original_uri),
            }
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def apply_change(original_uri: str) -> dict[str, Any]:
        """変更候補を適用し、提案内容を実ファイルに書き込む。

        Args:
            original_uri: 対象ファイルのURI（file://...）。
        """
        try:
            return _change_to_dict(await solution_service.apply(original_uri))
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def discard_change(original_uri: str) -> dict[str, Any]:
        """変更候補を破棄する。実ファイルは変更されません。

        Args:
            original_uri: 対象ファイルのURI（file://...）。
        """
        try:
            return _change_to_dict(await solution_service.discard(original_uri))
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def apply_all_changes() -> dict[str, Any]:
        """未処理の変更候補を全て適用する。失敗したファイルはfailedに含まれます。"""
        return (await solution_service.apply_all()).model_dump()

    @mcp.tool()
    async def discard_all_changes() -> dict[str, Any]:
        """未処理の変更候補を全て破棄する。"""
        return (await solution_service.discard_all()).model_dump()
