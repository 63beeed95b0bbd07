from __future__ import annotations

import pytest

from domain.models import PendingConfirmation, PendingRedistribution
from engine.confirmation import (
    AwaitingConfirmation,
    ConfirmationBlockedError,
    ConfirmationStateError,
    ConfirmationStateMachine,
    Idle,
)
from engine.redistribution import commit_edit, unlock_week


def _pending(week_index: int, new_value: int) -> PendingConfirmation:
    return PendingConfirmation(
        request=PendingRedistribution(week_index=week_index, new_value=new_value)
    )


def test_initial_state_is_idle():
    m = ConfirmationStateMachine()
    assert isinstance(m.state, Idle)
    assert m.is_open is False
    assert m.pending is None


def test_open_seeds_temp_value_from_request(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [False, False, True, False])
    outcome = commit_edit(sched, 3, 130)
    m = ConfirmationStateMachine()
    state = m.open(outcome)
    assert isinstance(state, AwaitingConfirmation)
    assert state.week_index == 3
    assert state.temp_value == 130
    assert m.pending.new_value == 130


def test_temp_value_edit_recomputes_preview(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [False, False, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(3, 130))
    assert [t.new_value for t in m.preview(sched).eligible_targets] == [85, 85]
    m.set_temp_value("1,20")
    assert m.state.temp_value == 120
    assert [t.new_value for t in m.preview(sched).eligible_targets] == [90, 90]
    m.set_temp_value("oops")
    assert m.state.temp_value == 0
    # 確定済みスケジュールは変わらない
    assert list(sched.weekly_split) == [100, 100, 100, 100]


def test_confirm_commits_backward_and_returns_to_idle(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [False, False, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(3, 130))
    assert m.can_confirm(sched) is True
    committed = m.confirm(sched)
    assert committed.weekly_split == [85, 85, 100, 130]
    assert committed.locked_weeks == [False, False, True, True]
    assert sum(committed.weekly_split) == 400
    assert isinstance(m.state, Idle)


def test_confirm_uses_latest_temp_value(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [False, False, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(3, 130))
    m.set_temp_value(110)
    committed = m.confirm(sched)
    assert committed.weekly_split == [95, 95, 100, 110]


def test_confirm_blocked_when_no_earlier_week_unlocked(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [True, True, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(3, 150))
    assert m.can_confirm(sched) is False
    with pytest.raises(ConfirmationBlockedError):
        m.confirm(sched)
    assert m.is_open


def test_unlock_mid_flow_enables_confirm(make_schedule):
    sched = make_schedule([100, 100, 100, 100], [True, True, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(3, 150))
    sched = unlock_week(sched, 1)
    preview = m.preview(sched)
    assert preview.can_redistribute is True
    assert [(t.week_index, t.new_value) for t in preview.eligible_targets] == [(1, 50)]
    committed = m.confirm(sched)
    assert committed.weekly_split == [100, 50, 100, 150]
    assert committed.locked_weeks == [True, False, True, True]


def test_confirm_blocked_on_negative_values(make_schedule):
    sched = make_schedule([10, 10, 80], [False, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(2, 150))
    assert m.preview(sched).has_negative_values is True
    assert m.can_confirm(sched) is False
    with pytest.raises(ConfirmationBlockedError):
        m.confirm(sched)


def test_cancel_discards_pending_request():
    m = ConfirmationStateMachine()
    m.open(_pending(3, 150))
    request = m.cancel()
    assert request.week_index == 3
    assert isinstance(m.state, Idle)
    assert m.pending is None


def test_invalid_transitions_raise(four_weeks):
    m = ConfirmationStateMachine()
    with pytest.raises(ConfirmationStateError):
        m.confirm(four_weeks)
    with pytest.raises(ConfirmationStateError):
        m.cancel()
    with pytest.raises(ConfirmationStateError):
        m.set_temp_value(10)
    assert m.can_confirm(four_weeks) is False
    m.open(_pending(3, 150))
    with pytest.raises(ConfirmationStateError):
        m.open(_pending(2, 10))


def test_confirm_commits_only_previewed_earlier_weeks(make_schedule):
    # 後続週 3 がロック解除されていても、確定はプレビューの対象週だけに配分する
    sched = make_schedule([100, 100, 100, 100], [False, False, True, False])
    m = ConfirmationStateMachine()
    m.open(_pending(1, 160))
    preview = m.preview(sched)
    assert [(t.week_index, t.new_value) for t in preview.eligible_targets] == [(0, 40)]
    committed = m.confirm(sched)
    assert committed.weekly_split == [40, 160, 100, 100]
    assert committed.locked_weeks == [False, True, True, False]
    assert committed.target_weeks == [0]
    assert committed.direction == "backward"
