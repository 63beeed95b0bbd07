"""週次配分エディタの設定モデル。"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SplitEditorParams(BaseModel):
    """エディタの挙動設定。環境変数からの読み込みは loader を参照。"""

    read_only: bool = Field(default=False, description="編集操作をすべて無視する")
    block_forward_clamp: bool = Field(
        default=False,
        description="前方再配分で0クランプが起きる編集を確定させない",
    )
    sum_tolerance: int = Field(
        default=0, ge=0, description="合計不一致を警告しない許容差（絶対値）"
    )
