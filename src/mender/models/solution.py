"""ソリューション（修正提案）と変更候補のデータモデル。"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ChangeState = Literal["pending", "applied", "discarded"]


class Change(BaseModel):
    """ソリューションに含まれる1ファイル分の変更（相対パスとunified diff）。"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # 変更前の相対パス。新規作成の場合は空
    original: str
    # 変更後の相対パス。削除の場合は空
    modified: str
    diff: str


class ChangeSetSolution(BaseModel):
    """original/modified/diff の組のリストで表現されたソリューション。"""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    kind: Literal["changes"] = "changes"
    errors: list[str] = Field(default_factory=list, alias="encountered_errors")
    changes: list[Change]
    scope: dict[str, Any] | None = None


class DiffSolution(BaseModel):
    """複数ファイル分のunified diffを連結した1つの文字列で表現されたソリューション。"""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    kind: Literal["diff"] = "diff"
    diff: str
    errors: list[str] = Field(default_factory=list, alias="encountered_errors")
    modified_files: list[str] = Field(default_factory=list)


Solution = ChangeSetSolution | DiffSolution


class LocalChange(BaseModel):
    """ファイル単位の変更候補。

    状態はpending → applied / discarded の一方向にのみ遷移する。
    """

    model_config = ConfigDict(frozen=True)

    original_uri: str
    modified_uri: str
    diff: str
    state: ChangeState = "pending"
    # diffが適用できず、オーバーレイにdiffテキストそのものが入っている
    fallback: bool = False

    @property
    def is_pending(self) -> bool:
        return self.state == "pending"


class PatchOutcome(BaseModel):
    """diff適用の結果。

    適用に失敗した場合、contentには元のdiffテキストがそのまま入る。
    """

    model_config = ConfigDict(frozen=True)

    content: str
    applied: bool
    error: str | None = None


class FileFailure(BaseModel):
    """ファイル単位の失敗情報。"""

    uri: str
    error: str
    message: str


class LoadSolutionResult(BaseModel):
    """ソリューション読み込みの結果。"""

    changes: list[LocalChange]
    failures: list[FileFailure] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    """一括適用・一括破棄の結果。"""

    action: Literal["apply", "discard"]
    succeeded: list[str] = Field(default_factory=list)
    failed: list[FileFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
