"""ジョブの開始日・納期から初期の週次配分を作る。"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Optional

from domain.models import WeeklySchedule


def weeks_between(start: date, due: date) -> int:
    """start〜due（両端含む）にかかる週数。端数週も1週と数える。"""
    if due < start:
        return 0
    days = (due - start).days + 1
    return math.ceil(days / 7)


def even_split(quantity: int, weeks: int) -> List[int]:
    """quantity を weeks 週へ均等配分する。余りは先頭週から1ずつ足す。"""
    if weeks <= 0:
        return []
    quantity = max(0, int(quantity))
    base, remainder = divmod(quantity, weeks)
    return [base + (1 if i < remainder else 0) for i in range(weeks)]


def build_initial_schedule(
    quantity: int, start: Optional[date], due: Optional[date]
) -> WeeklySchedule:
    """全週ロック解除の均等配分を作る。日付が欠けている/逆転している場合は1週。"""
    if start is None or due is None:
        logging.warning(
            "split_dates_missing",
            extra={"event": "split_dates_missing", "start": start, "due": due},
        )
        weeks = 1
    else:
        weeks = max(1, weeks_between(start, due))
    split = even_split(quantity, weeks)
    return WeeklySchedule(
        weekly_split=split,
        locked_weeks=[False] * len(split),
        total_quantity=max(0, int(quantity)),
    )


def reset_to_even(schedule: WeeklySchedule) -> WeeklySchedule:
    """既存の週数のまま total_quantity を均等配分し直し、全週のロックを外す。"""
    split = even_split(schedule.total_quantity, schedule.weeks)
    return schedule.replace(split, [False] * len(split))
