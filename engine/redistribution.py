"""週次数量配分の再配分エンジン。

1週の値を編集するとその週をロックし、差分を未ロック週へ前方優先で配り直して
合計を total_quantity に保つ。前方に吸収先が無い場合は確認待ちを返す。
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple, Union

from domain.models import (
    CommittedSplit,
    LockedWeek,
    PendingConfirmation,
    PendingRedistribution,
    RedistributionPreview,
    RedistributionTarget,
    WeeklySchedule,
)


class SplitEditorError(Exception):
    """週次配分編集の基底例外。"""


class InvalidWeekIndexError(SplitEditorError, ValueError):
    pass


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_week_value(text: Union[str, int, float, None]) -> int:
    """オペレーター入力を整数化する。桁区切りを除去し、数値でなければ0。"""
    if text is None:
        return 0
    if isinstance(text, bool):
        return int(text)
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return int(text)
    m = _LEADING_INT.match(str(text).replace(",", ""))
    if not m:
        return 0
    return int(m.group(1))


def _check_index(schedule: WeeklySchedule, week_index: int) -> None:
    if not 0 <= week_index < schedule.weeks:
        raise InvalidWeekIndexError(
            f"week_index {week_index} is out of range for {schedule.weeks} weeks"
        )


def split_adjustments(difference: int, count: int) -> List[int]:
    """差分を count 件へ配る調整量。先頭 remainder 件に1単位を上乗せする。

    base は床関数で求めるため remainder は常に 0 以上 count 未満。
    """
    if count <= 0:
        return []
    base = difference // count
    remainder = difference - count * base
    return [base + (1 if position < remainder else 0) for position in range(count)]


def distribute_difference(
    values: Sequence[int], targets: Sequence[int], difference: int
) -> Tuple[List[int], List[RedistributionTarget], bool]:
    """targets の週に difference を配分する。

    戻り値は (新しい配分, 対象週ごとの変化, 0クランプが発生したか)。
    """
    new_values = list(values)
    changes: List[RedistributionTarget] = []
    clamped = False
    for idx, adjustment in zip(targets, split_adjustments(difference, len(targets))):
        raw = new_values[idx] + adjustment
        if raw < 0:
            clamped = True
        changes.append(
            RedistributionTarget(
                week_index=idx, old_value=new_values[idx], new_value=max(0, raw)
            )
        )
        new_values[idx] = max(0, raw)
    return new_values, changes, clamped


def compute_preview(
    schedule: WeeklySchedule, week_index: int, proposed_value: int
) -> RedistributionPreview:
    """前方（後続週）に吸収先が無い編集について、後方（先行週）への再配分結果を試算する。

    schedule は変更しない。同じ入力には常に同じ結果を返す。
    """
    _check_index(schedule, week_index)
    trial = list(schedule.weekly_split)
    trial[week_index] = proposed_value
    difference = schedule.total_quantity - sum(trial)

    unlocked_before = [
        idx for idx in range(week_index) if not schedule.locked_weeks[idx]
    ]
    locked_before = [
        LockedWeek(week_index=idx, value=schedule.weekly_split[idx])
        for idx in range(week_index)
        if schedule.locked_weeks[idx]
    ]

    changes: List[RedistributionTarget] = []
    clamped = False
    if unlocked_before:
        _, changes, clamped = distribute_difference(trial, unlocked_before, difference)

    return RedistributionPreview(
        difference=difference,
        eligible_targets=changes,
        locked_before=locked_before,
        has_negative_values=clamped,
        can_redistribute=bool(unlocked_before),
    )


def commit_edit(
    schedule: WeeklySchedule,
    week_index: int,
    new_value: int,
    allow_backward: bool = False,
    targets: Optional[Sequence[int]] = None,
) -> Union[CommittedSplit, PendingConfirmation]:
    """week_index の値を new_value にしてロックし、差分を再配分する。

    前方（後続週）の未ロック週が無く allow_backward=False の場合は何も変更せず
    PendingConfirmation を返す。targets を渡した場合は前方探索をせず、
    その週だけに配分する（確認済みプレビューと同じ結果を確定するため）。
    """
    _check_index(schedule, week_index)
    if targets is not None:
        for idx in targets:
            if idx == week_index:
                raise InvalidWeekIndexError("the edited week cannot be a target")
            _check_index(schedule, idx)
    split = list(schedule.weekly_split)
    locked = list(schedule.locked_weeks)
    split[week_index] = new_value
    locked[week_index] = True

    difference = schedule.total_quantity - sum(split)
    if difference == 0:
        return CommittedSplit(schedule=schedule.replace(split, locked))

    if targets is not None:
        targets = list(targets)
        direction = "backward"
    else:
        targets = [
            idx for idx in range(week_index + 1, len(split)) if not locked[idx]
        ]
        direction = "forward"
    if not targets and direction == "forward":
        if not allow_backward:
            logging.debug(
                "split_edit_needs_confirmation",
                extra={"week_index": week_index, "new_value": new_value},
            )
            return PendingConfirmation(
                request=PendingRedistribution(
                    week_index=week_index, new_value=new_value
                )
            )
        targets = [
            idx for idx in range(len(split)) if idx != week_index and not locked[idx]
        ]
        direction = "both"

    clamped = False
    if targets:
        split, _, clamped = distribute_difference(split, targets, difference)

    return CommittedSplit(
        schedule=schedule.replace(split, locked),
        target_weeks=targets,
        direction=direction,
        clamped=clamped,
    )


def unlock_week(schedule: WeeklySchedule, week_index: int) -> WeeklySchedule:
    _check_index(schedule, week_index)
    locked = list(schedule.locked_weeks)
    locked[week_index] = False
    return schedule.replace(locked_weeks=locked)


def set_all_locks(schedule: WeeklySchedule, locked: bool) -> WeeklySchedule:
    """全週を一括でロック/ロック解除する。"""
    return schedule.replace(locked_weeks=[bool(locked)] * schedule.weeks)


def split_summary(schedule: WeeklySchedule) -> dict:
    """合計と目標の差を返す。差は致命的ではなく警告表示用。"""
    split_sum = schedule.split_sum
    difference = split_sum - schedule.total_quantity
    return {
        "split_sum": split_sum,
        "total_quantity": schedule.total_quantity,
        "difference": difference,
        "is_balanced": difference == 0,
    }
