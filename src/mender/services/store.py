"""エンジン状態の単一の書き込み口。

状態はreducer（state, action）→ state' でのみ更新し、更新後のスナップショットを
購読者に配信する。
"""

import logging
from collections.abc import Callable

from mender.models.errors import ChangeNotFoundError, InvalidTransitionError
from mender.models.solution import LocalChange
from mender.models.state import (
    Action,
    ChangesTransitioned,
    EngineState,
    RuleSetsCleared,
    RuleSetsLoaded,
    RuleSetsMerged,
    SolutionLoaded,
)

LOG = logging.getLogger(__name__)

Listener = Callable[[EngineState], None]


def _transition(state: EngineState, updates: tuple[LocalChange, ...]) -> tuple[LocalChange, ...]:
    by_uri = {u.original_uri: u for u in updates}
    changes: list[LocalChange] = []
    for change in state.local_changes:
        update = by_uri.pop(change.original_uri, None)
        if update is None:
            changes.append(change)
            continue
        if not change.is_pending or update.state == "pending":
            raise InvalidTransitionError(change.original_uri, change.state, update.state)
        changes.append(change.model_copy(update={"state": update.state}))
    if by_uri:
        raise ChangeNotFoundError(next(iter(by_uri)))
    return tuple(changes)


def reduce(state: EngineState, action: Action) -> EngineState:
    """アクションを適用した新しい状態を返す。

    Raises:
        InvalidTransitionError: pending以外の変更候補を遷移させようとした場合。
        ChangeNotFoundError: 存在しない変更候補を遷移させようとした場合。
    """
    if isinstance(action, RuleSetsLoaded):
        update = {
            "rule_sets": tuple(action.rule_sets),
            "local_changes": (),
            "solution": None,
            "solution_errors": (),
        }
    elif isinstance(action, RuleSetsMerged):
        update = {"rule_sets": tuple(action.rule_sets)}
    elif isinstance(action, RuleSetsCleared):
        update = {"rule_sets": ()}
    elif isinstance(action, SolutionLoaded):
        update = {
            "solution": action.solution,
            "local_changes": tuple(action.changes),
            "solution_errors": tuple(action.solution.errors),
        }
    elif isinstance(action, ChangesTransitioned):
        update = {"local_changes": _transition(state, action.updates)}
    else:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    return state.model_copy(update={**update, "version": state.version + 1})


class StateStore:
    """状態を保持し、変更を購読者に通知する。"""

    def __init__(self, initial: EngineState | None = None) -> None:
        self._state = initial or EngineState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> EngineState:
        return self._state

    def dispatch(self, action: Action) -> EngineState:
        self._state = reduce(self._state, action)
        LOG.debug("State v%d after %s", self._state.version, action.type)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """購読者を登録し、登録解除用の関数を返す。"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
