"""Menderのカスタム例外クラス。"""


class MenderError(Exception):
    """Menderの基底例外クラス。"""


class IngestionError(MenderError):
    """解析結果・ソリューションのペイロードが不正な場合の例外。

    バッチ全体を拒否し、状態は変更しない。
    """

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class PathScopeError(MenderError):
    """解析結果がワークスペース外のファイルを参照している場合の例外。"""

    def __init__(self, uris: list[str]) -> None:
        preview = ", ".join(uris[:3])
        more = f" (and {len(uris) - 3} more)" if len(uris) > 3 else ""
        super().__init__(
            f"Analysis results point to files outside of the workspace: {preview}{more}. "
            "Re-run the analysis for this workspace or fix the paths in the results."
        )
        self.uris = uris


class DiffParseError(MenderError):
    """unified diffの解析に失敗した場合の例外。"""


class PatchApplyError(MenderError):
    """diffが現在のファイル内容に適用できない場合の例外。"""

    def __init__(self, uri: str, reason: str) -> None:
        super().__init__(f"Failed to apply solution diff for {uri}: {reason}")
        self.uri = uri
        self.reason = reason


class FileOperationError(MenderError):
    """実ファイルの読み書きに失敗した場合の例外。"""

    def __init__(self, uri: str, reason: str) -> None:
        super().__init__(f"File operation failed for {uri}: {reason}")
        self.uri = uri
        self.reason = reason


class ChangeNotFoundError(MenderError):
    """指定されたファイルに対する変更候補が存在しない場合の例外。"""

    def __init__(self, uri: str) -> None:
        super().__init__(f"No proposed change for: {uri}")
        self.uri = uri


class InvalidTransitionError(MenderError):
    """変更候補の状態遷移が許可されていない場合の例外。"""

    def __init__(self, uri: str, current: str, requested: str) -> None:
        super().__init__(f"Cannot {requested} change for {uri}: change is already {current}")
        self.uri = uri
        self.current = current
        self.requested = requested


class OverlayFileNotFoundError(MenderError):
    """仮想オーバーレイ上にファイルが存在しない場合の例外。"""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Overlay file not found: {uri}")
        self.uri = uri


class StorageError(MenderError):
    """スナップショット保存・読み込みのエラー。"""
