"""エンジン状態とアクションのデータモデル。"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from mender.models.analysis import RuleSet
from mender.models.solution import ChangeSetSolution, DiffSolution, LocalChange

AnySolution = Annotated[ChangeSetSolution | DiffSolution, Field(discriminator="kind")]


class EngineState(BaseModel):
    """購読者に配信されるイミュータブルな状態スナップショット。

    versionは状態が変わるたびに増加する。
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    rule_sets: tuple[RuleSet, ...] = ()
    local_changes: tuple[LocalChange, ...] = ()
    solution: AnySolution | None = None
    solution_errors: tuple[str, ...] = ()

    def pending_changes(self) -> list[LocalChange]:
        return [c for c in self.local_changes if c.is_pending]

    def find_change(self, original_uri: str) -> LocalChange | None:
        for change in self.local_changes:
            if change.original_uri == original_uri:
                return change
        return None


class RuleSetsLoaded(BaseModel):
    """解析結果全体の置き換え。既存の変更候補は無効になる。"""

    model_config = ConfigDict(frozen=True)

    type: Literal["rule_sets_loaded"] = "rule_sets_loaded"
    rule_sets: tuple[RuleSet, ...]


class RuleSetsMerged(BaseModel):
    """部分解析のマージ結果の反映。"""

    model_config = ConfigDict(frozen=True)

    type: Literal["rule_sets_merged"] = "rule_sets_merged"
    rule_sets: tuple[RuleSet, ...]


class RuleSetsCleared(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["rule_sets_cleared"] = "rule_sets_cleared"


class SolutionLoaded(BaseModel):
    """新しいソリューションと、その変更候補一式。"""

    model_config = ConfigDict(frozen=True)

    type: Literal["solution_loaded"] = "solution_loaded"
    solution: AnySolution
    changes: tuple[LocalChange, ...]


class ChangesTransitioned(BaseModel):
    """変更候補の状態遷移（original_uri単位で置き換える）。"""

    model_config = ConfigDict(frozen=True)

    type: Literal["changes_transitioned"] = "changes_transitioned"
    updates: tuple[LocalChange, ...]


Action = RuleSetsLoaded | RuleSetsMerged | RuleSetsCleared | SolutionLoaded | ChangesTransitioned
