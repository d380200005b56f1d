"""解析結果の正規化・検証に関するデータモデル。"""

from pydantic import BaseModel, Field

from mender.models.analysis import RuleSet


class IncidentIssue(BaseModel):
    """正規化の際に除外されたIncidentの情報。"""

    rule_set: str | None
    violation_id: str
    index: int
    reason: str


class NormalizedResults(BaseModel):
    """正規化済みのRuleSetと、除外されたIncidentの一覧。"""

    rule_sets: list[RuleSet]
    issues: list[IncidentIssue] = Field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.issues)


class SkippedFile(BaseModel):
    """読み込み対象から除外されたファイル。"""

    path: str
    reason: str


class LoadedFiles(BaseModel):
    """利用者が選択したファイル群の読み込み結果。"""

    analysis_file: str | None = None
    solution_file: str | None = None
    rule_set_count: int = 0
    dropped_incidents: int = 0
    change_count: int = 0
    skipped: list[SkippedFile] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def loaded_anything(self) -> bool:
        return self.analysis_file is not None or self.solution_file is not None
