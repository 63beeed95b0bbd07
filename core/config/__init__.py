"""週次配分エディタの設定と検証。"""

from .models import SplitEditorParams
from .loader import load_split_editor_params
from .validators import ValidationIssue, ValidationResult, validate_weekly_schedule

__all__ = [
    "SplitEditorParams",
    "load_split_editor_params",
    "ValidationIssue",
    "ValidationResult",
    "validate_weekly_schedule",
]
