from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import (
    SplitEditorParams,
    load_split_editor_params,
    validate_weekly_schedule,
)
from domain.models import WeeklySchedule


def test_defaults_without_environment(split_env):
    params = load_split_editor_params()
    assert params == SplitEditorParams()
    assert params.read_only is False
    assert params.block_forward_clamp is False
    assert params.sum_tolerance == 0


def test_environment_values_are_parsed(split_env):
    split_env.setenv("SPLIT_EDITOR_READ_ONLY", "true")
    split_env.setenv("SPLIT_BLOCK_FORWARD_CLAMP", "1")
    split_env.setenv("SPLIT_SUM_TOLERANCE", "5")
    params = load_split_editor_params()
    assert params.read_only is True
    assert params.block_forward_clamp is True
    assert params.sum_tolerance == 5


def test_overrides_win_over_environment(split_env):
    split_env.setenv("SPLIT_EDITOR_READ_ONLY", "1")
    split_env.setenv("SPLIT_SUM_TOLERANCE", "not-a-number")
    params = load_split_editor_params(read_only=False, block_forward_clamp=None)
    assert params.read_only is False
    assert params.sum_tolerance == 0


def test_negative_tolerance_rejected(split_env):
    with pytest.raises(ValidationError):
        load_split_editor_params(sum_tolerance=-1)


def test_schedule_rejects_mismatched_lengths():
    with pytest.raises(ValidationError):
        WeeklySchedule(weekly_split=[1, 2], locked_weeks=[False], total_quantity=3)


def test_validate_reports_negative_values_and_sum_mismatch():
    sched = WeeklySchedule(
        weekly_split=[-5, 50, 50], locked_weeks=[True, False, False], total_quantity=100
    )
    result = validate_weekly_schedule(sched)
    assert result.has_errors is True
    assert [(i.severity, i.code) for i in result.issues] == [
        ("error", "negative_week_value"),
        ("warning", "split_sum_mismatch"),
    ]
    assert result.issues[1].context["difference"] == "-5"


def test_validate_respects_tolerance():
    sched = WeeklySchedule(
        weekly_split=[49, 50], locked_weeks=[False, False], total_quantity=100
    )
    assert validate_weekly_schedule(sched, sum_tolerance=1).issues == []
    assert validate_weekly_schedule(sched).has_warnings is True
