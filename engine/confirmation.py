"""後方再配分の確認フロー（Idle / AwaitingConfirmation）。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from domain.models import (
    CommittedSplit,
    PendingConfirmation,
    PendingRedistribution,
    RedistributionPreview,
    WeeklySchedule,
)
from engine.redistribution import (
    SplitEditorError,
    commit_edit,
    compute_preview,
    parse_week_value,
)


class ConfirmationStateError(SplitEditorError):
    """現在の状態では許可されない遷移。"""


class ConfirmationBlockedError(SplitEditorError):
    """プレビューが負値を含む、または再配分先が無いため確定できない。"""


@dataclass(frozen=True)
class Idle:
    name: str = "idle"


@dataclass(frozen=True)
class AwaitingConfirmation:
    request: PendingRedistribution
    temp_value: int
    name: str = "awaiting_confirmation"

    @property
    def week_index(self) -> int:
        return self.request.week_index


ConfirmationState = Union[Idle, AwaitingConfirmation]


class ConfirmationStateMachine:
    """PendingConfirmation を受けて開き、confirm / cancel で Idle に戻る。

    確定済みスケジュールは保持しない。プレビューと確定は呼び出し側が渡す
    最新の schedule に対して毎回計算するため、途中のロック解除も反映される。
    """

    def __init__(self) -> None:
        self._state: ConfirmationState = Idle()

    @property
    def state(self) -> ConfirmationState:
        return self._state

    @property
    def is_open(self) -> bool:
        return isinstance(self._state, AwaitingConfirmation)

    @property
    def pending(self) -> Optional[PendingRedistribution]:
        if isinstance(self._state, AwaitingConfirmation):
            return self._state.request
        return None

    def _awaiting(self) -> AwaitingConfirmation:
        if not isinstance(self._state, AwaitingConfirmation):
            raise ConfirmationStateError("no redistribution is awaiting confirmation")
        return self._state

    def open(self, pending: PendingConfirmation) -> AwaitingConfirmation:
        if self.is_open:
            raise ConfirmationStateError("a redistribution is already awaiting confirmation")
        self._state = AwaitingConfirmation(
            request=pending.request, temp_value=pending.request.new_value
        )
        return self._state

    def set_temp_value(self, value: Union[str, int, None]) -> AwaitingConfirmation:
        current = self._awaiting()
        self._state = AwaitingConfirmation(
            request=current.request, temp_value=parse_week_value(value)
        )
        return self._state

    def preview(self, schedule: WeeklySchedule) -> RedistributionPreview:
        current = self._awaiting()
        return compute_preview(schedule, current.week_index, current.temp_value)

    def can_confirm(self, schedule: WeeklySchedule) -> bool:
        if not self.is_open:
            return False
        result = self.preview(schedule)
        return result.can_redistribute and not result.has_negative_values

    def confirm(self, schedule: WeeklySchedule) -> CommittedSplit:
        current = self._awaiting()
        result = compute_preview(schedule, current.week_index, current.temp_value)
        if not result.can_redistribute:
            raise ConfirmationBlockedError(
                "no unlocked earlier week is available; unlock one before confirming"
            )
        if result.has_negative_values:
            raise ConfirmationBlockedError("redistribution would make some weeks negative")
        # プレビューで提示した先行週だけに配分する
        committed = commit_edit(
            schedule,
            current.week_index,
            current.temp_value,
            allow_backward=True,
            targets=[t.week_index for t in result.eligible_targets],
        )
        if not isinstance(committed, CommittedSplit):
            raise ConfirmationStateError("backward redistribution did not commit")
        self._state = Idle()
        return committed

    def cancel(self) -> PendingRedistribution:
        current = self._awaiting()
        self._state = Idle()
        return current.request
