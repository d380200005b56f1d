"""ツールのエラー応答の組み立て。"""

from typing import Any

from mender.models.errors import IngestionError


def error_response(e: Exception) -> dict[str, Any]:
    """例外をツールの応答形式に変換する。

    Returns:
        {"error": 例外クラス名, "message": メッセージ} 。IngestionErrorで
        詳細がある場合は "details" も含む。
    """
    result: dict[str, Any] = {"error": type(e).__name__, "message": str(e)}
    if isinstance(e, IngestionError) and e.details:
        result["details"] = e.details
    return result
