import pytest

from domain.models import WeeklySchedule


def _make_schedule(split, locked=None, total=None):
    return WeeklySchedule(
        weekly_split=list(split),
        locked_weeks=list(locked) if locked is not None else [False] * len(split),
        total_quantity=sum(split) if total is None else total,
    )


@pytest.fixture
def make_schedule():
    """テスト用スケジュールのファクトリ。total省略時は split の合計。"""
    return _make_schedule


@pytest.fixture
def four_weeks():
    return _make_schedule([100, 100, 100, 100], total=400)


@pytest.fixture
def split_env(monkeypatch):
    """エディタ設定の環境変数を既定値に戻す。"""
    for name in (
        "SPLIT_EDITOR_READ_ONLY",
        "SPLIT_BLOCK_FORWARD_CLAMP",
        "SPLIT_SUM_TOLERANCE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
