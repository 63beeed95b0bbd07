"""週次配分エディタの編集セッション。

確定済みスケジュールを保持し、オペレーター操作（週の編集、ロック解除、
後方再配分の確認/取消、均等配分へのリセット）を再配分エンジンと
確認ステートマシンへ振り分ける。確定のたびに on_split_change(new_split, new_locked) を呼ぶ。
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Union

from app.metrics import (
    SPLIT_BACKWARD_CANCELLATIONS_TOTAL,
    SPLIT_BACKWARD_CONFIRMATIONS_TOTAL,
    SPLIT_CLAMP_EVENTS_TOTAL,
    SPLIT_EDITS_TOTAL,
    SPLIT_RESETS_TOTAL,
    SPLIT_TARGET_WEEKS,
    SPLIT_WEEK_UNLOCKS_TOTAL,
)
from core.config import (
    SplitEditorParams,
    ValidationResult,
    load_split_editor_params,
    validate_weekly_schedule,
)
from domain.models import (
    CommittedSplit,
    PendingConfirmation,
    RedistributionPreview,
    WeeklySchedule,
)
from engine import redistribution as engine
from engine.confirmation import (
    ConfirmationBlockedError,
    ConfirmationStateError,
    ConfirmationStateMachine,
)
from planning.weekly_split import reset_to_even

SplitChangeCallback = Callable[[List[int], List[bool]], None]


class ClampRejectedError(engine.SplitEditorError):
    """前方再配分で0クランプが起き、設定により確定を拒否した。"""


class WeeklySplitEditorSession:
    def __init__(
        self,
        schedule: WeeklySchedule,
        on_split_change: Optional[SplitChangeCallback] = None,
        params: Optional[SplitEditorParams] = None,
    ) -> None:
        self._schedule = schedule
        self._on_split_change = on_split_change
        self.params = params or load_split_editor_params()
        self.machine = ConfirmationStateMachine()

    @property
    def schedule(self) -> WeeklySchedule:
        return self._schedule

    @property
    def awaiting_confirmation(self) -> bool:
        return self.machine.is_open

    def _apply(self, schedule: WeeklySchedule) -> None:
        self._schedule = schedule
        if self._on_split_change is not None:
            self._on_split_change(list(schedule.weekly_split), list(schedule.locked_weeks))
        summary = engine.split_summary(schedule)
        if abs(summary["difference"]) > self.params.sum_tolerance:
            logging.warning(
                "split_sum_mismatch",
                extra={"event": "split_sum_mismatch", **summary},
            )

    def _record_clamp(self, committed: CommittedSplit) -> None:
        if not committed.clamped:
            return
        SPLIT_CLAMP_EVENTS_TOTAL.labels(direction=committed.direction).inc()
        logging.warning(
            "split_clamped",
            extra={
                "event": "split_clamped",
                "direction": committed.direction,
                "target_weeks": committed.target_weeks,
            },
        )

    def _record_targets(self, committed: CommittedSplit) -> None:
        if committed.target_weeks:
            SPLIT_TARGET_WEEKS.labels(direction=committed.direction).observe(
                len(committed.target_weeks)
            )

    def _reject_while_open(self, action: str) -> None:
        # 確認待ちの間は確定済みスケジュールを動かさない
        if self.machine.is_open:
            raise ConfirmationStateError(
                f"cannot {action} while an edit is awaiting confirmation"
            )

    def edit_week(
        self, week_index: int, value: Union[str, int, None]
    ) -> Optional[Union[CommittedSplit, PendingConfirmation]]:
        """週の値を編集する。読み取り専用なら何もせず None を返す。

        後方再配分の確認待ちの間は ConfirmationStateError を送出する。
        """
        if self.params.read_only:
            logging.debug("split_edit_ignored_read_only", extra={"week_index": week_index})
            return None
        new_value = engine.parse_week_value(value)
        try:
            self._reject_while_open("edit a week")
            outcome = engine.commit_edit(self._schedule, week_index, new_value)
        except engine.SplitEditorError:
            logging.exception(
                "split_edit_failed",
                extra={"event": "split_edit_failed", "week_index": week_index},
            )
            raise

        if isinstance(outcome, PendingConfirmation):
            self.machine.open(outcome)
            SPLIT_EDITS_TOTAL.labels(outcome="pending").inc()
            logging.info(
                "split_edit_pending",
                extra={
                    "event": "split_edit_pending",
                    "week_index": week_index,
                    "new_value": new_value,
                },
            )
            return outcome

        if outcome.clamped and self.params.block_forward_clamp:
            SPLIT_EDITS_TOTAL.labels(outcome="rejected").inc()
            self._record_clamp(outcome)
            raise ClampRejectedError(
                f"editing week {week_index + 1} would clamp other weeks at zero"
            )

        self._record_clamp(outcome)
        self._record_targets(outcome)
        self._apply(outcome.schedule)
        SPLIT_EDITS_TOTAL.labels(outcome="committed").inc()
        logging.info(
            "split_edit_committed",
            extra={
                "event": "split_edit_committed",
                "week_index": week_index,
                "new_value": new_value,
                "direction": outcome.direction,
            },
        )
        return outcome

    def unlock_week(self, week_index: int) -> WeeklySchedule:
        """ロック解除は即時に確定する。

        確認待ちの間は編集中の週より前の週だけを解除できる。
        """
        if self.params.read_only:
            return self._schedule
        pending = self.machine.pending
        if pending is not None and week_index >= pending.week_index:
            logging.warning(
                "split_unlock_rejected",
                extra={
                    "event": "split_unlock_rejected",
                    "week_index": week_index,
                    "pending_week_index": pending.week_index,
                },
            )
            raise ConfirmationStateError(
                f"only weeks before week {pending.week_index + 1} can be unlocked "
                "while an edit is awaiting confirmation"
            )
        self._apply(engine.unlock_week(self._schedule, week_index))
        SPLIT_WEEK_UNLOCKS_TOTAL.inc()
        logging.info(
            "split_week_unlocked",
            extra={"event": "split_week_unlocked", "week_index": week_index},
        )
        return self._schedule

    def set_all_locks(self, locked: bool) -> WeeklySchedule:
        if self.params.read_only:
            return self._schedule
        self._reject_while_open("change locks")
        self._apply(engine.set_all_locks(self._schedule, locked))
        return self._schedule

    def reset(self) -> WeeklySchedule:
        """total_quantity を現在の週数へ均等配分し直し、全週のロックを外す。"""
        if self.params.read_only:
            return self._schedule
        self._reject_while_open("reset the split")
        self._apply(reset_to_even(self._schedule))
        SPLIT_RESETS_TOTAL.inc()
        logging.info(
            "split_reset",
            extra={
                "event": "split_reset",
                "weeks": self._schedule.weeks,
                "total_quantity": self._schedule.total_quantity,
            },
        )
        return self._schedule

    def set_pending_value(self, value: Union[str, int, None]) -> RedistributionPreview:
        self.machine.set_temp_value(value)
        return self.machine.preview(self._schedule)

    def preview(self) -> Optional[RedistributionPreview]:
        if not self.machine.is_open:
            return None
        return self.machine.preview(self._schedule)

    def confirm(self) -> CommittedSplit:
        pending = self.machine.pending
        try:
            committed = self.machine.confirm(self._schedule)
        except ConfirmationBlockedError as exc:
            logging.warning(
                "split_backward_blocked",
                extra={"event": "split_backward_blocked", "reason": str(exc)},
            )
            raise
        self._record_clamp(committed)
        self._record_targets(committed)
        self._apply(committed.schedule)
        SPLIT_BACKWARD_CONFIRMATIONS_TOTAL.inc()
        SPLIT_EDITS_TOTAL.labels(outcome="committed").inc()
        logging.info(
            "split_backward_confirmed",
            extra={
                "event": "split_backward_confirmed",
                "week_index": pending.week_index if pending else None,
                "target_weeks": committed.target_weeks,
            },
        )
        return committed

    def cancel(self) -> None:
        request = self.machine.cancel()
        SPLIT_BACKWARD_CANCELLATIONS_TOTAL.inc()
        logging.info(
            "split_backward_cancelled",
            extra={"event": "split_backward_cancelled", "week_index": request.week_index},
        )

    def summary(self) -> dict:
        return engine.split_summary(self._schedule)

    def validate(self) -> ValidationResult:
        return validate_weekly_schedule(
            self._schedule, sum_tolerance=self.params.sum_tolerance
        )
