from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WeeklySchedule(BaseModel):
    """ジョブ1件分の週次数量配分とロック状態（不変値）。

    weekly_split[i] が第i週(0始まり)の数量、locked_weeks[i] が再配分対象外フラグ。
    total_quantity はジョブ側が所有する不変の目標合計。変更は replace で新しい値を作る。
    """

    model_config = ConfigDict(frozen=True)

    weekly_split: Tuple[int, ...] = Field(default_factory=tuple)
    locked_weeks: Tuple[bool, ...] = Field(default_factory=tuple)
    total_quantity: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_lengths(self) -> "WeeklySchedule":
        if len(self.weekly_split) != len(self.locked_weeks):
            raise ValueError(
                "weekly_split と locked_weeks の長さが一致しません: "
                f"{len(self.weekly_split)} != {len(self.locked_weeks)}"
            )
        return self

    @property
    def weeks(self) -> int:
        return len(self.weekly_split)

    @property
    def split_sum(self) -> int:
        return sum(self.weekly_split)

    def replace(
        self,
        weekly_split: Optional[Sequence[int]] = None,
        locked_weeks: Optional[Sequence[bool]] = None,
    ) -> "WeeklySchedule":
        """配列を差し替えた新しいスケジュールを返す（元は変更しない）。"""
        return WeeklySchedule(
            weekly_split=tuple(
                self.weekly_split if weekly_split is None else weekly_split
            ),
            locked_weeks=tuple(
                self.locked_weeks if locked_weeks is None else locked_weeks
            ),
            total_quantity=self.total_quantity,
        )


class RedistributionRequest(BaseModel):
    week_index: int = Field(ge=0)
    new_value: int


class RedistributionTarget(BaseModel):
    week_index: int
    old_value: int
    new_value: int


class LockedWeek(BaseModel):
    week_index: int
    value: int


class RedistributionPreview(BaseModel):
    """後方再配分を確定した場合の結果予測。永続化しない。"""

    difference: int
    eligible_targets: List[RedistributionTarget] = Field(default_factory=list)
    locked_before: List[LockedWeek] = Field(default_factory=list)
    has_negative_values: bool = False
    can_redistribute: bool = False


class PendingRedistribution(BaseModel):
    """確認待ちの編集要求。確認ダイアログが開いている間だけ保持する。"""

    week_index: int
    new_value: int


class CommittedSplit(BaseModel):
    """commit_edit の確定結果。"""

    schedule: WeeklySchedule
    target_weeks: List[int] = Field(default_factory=list)
    direction: str = Field(
        default="none",
        description="none / forward / both（前方なし・確認済み） / backward（確認プレビューの対象週）",
    )
    # 0クランプで差分の一部を吸収できなかった場合に True
    clamped: bool = False

    @property
    def weekly_split(self) -> List[int]:
        return list(self.schedule.weekly_split)

    @property
    def locked_weeks(self) -> List[bool]:
        return list(self.schedule.locked_weeks)


class PendingConfirmation(BaseModel):
    """前方に未ロック週が無いため、オペレーター確認が必要なことを示す。"""

    request: PendingRedistribution
