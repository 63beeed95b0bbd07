"""環境変数から SplitEditorParams を組み立てる。"""

from __future__ import annotations

import os
from typing import Any, Optional

from .models import SplitEditorParams

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int = 0) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def load_split_editor_params(**overrides: Optional[Any]) -> SplitEditorParams:
    """SPLIT_EDITOR_READ_ONLY / SPLIT_BLOCK_FORWARD_CLAMP / SPLIT_SUM_TOLERANCE を読む。

    None 以外の overrides が環境変数より優先される。
    """
    values = {
        "read_only": _env_flag("SPLIT_EDITOR_READ_ONLY"),
        "block_forward_clamp": _env_flag("SPLIT_BLOCK_FORWARD_CLAMP"),
        "sum_tolerance": _env_int("SPLIT_SUM_TOLERANCE", 0),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SplitEditorParams.model_validate(values)
