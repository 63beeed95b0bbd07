"""週次配分の整合チェックユーティリティ。"""

from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from domain.models import WeeklySchedule


Severity = Literal["error", "warning"]


class ValidationIssue(BaseModel):
    """単一の検証結果。"""

    severity: Severity
    code: str
    message: str
    context: Dict[str, str] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """検証結果の集約。"""

    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(issue.severity == "warning" for issue in self.issues)

    def add_issue(
        self,
        *,
        severity: Severity,
        code: str,
        message: str,
        context: Dict[str, str] | None = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=severity,
                code=code,
                message=message,
                context=context or {},
            )
        )

    def add_error(
        self, code: str, message: str, context: Dict[str, str] | None = None
    ) -> None:
        self.add_issue(severity="error", code=code, message=message, context=context)

    def add_warning(
        self, code: str, message: str, context: Dict[str, str] | None = None
    ) -> None:
        self.add_issue(severity="warning", code=code, message=message, context=context)


def validate_weekly_schedule(
    schedule: WeeklySchedule, *, sum_tolerance: int = 0
) -> ValidationResult:
    """負の週値をエラー、合計と total_quantity の不一致を警告として返す。"""

    result = ValidationResult()
    for idx, value in enumerate(schedule.weekly_split):
        if value < 0:
            result.add_error(
                "negative_week_value",
                f"Week {idx + 1} has a negative quantity",
                {"week_index": str(idx), "value": str(value)},
            )

    difference = schedule.split_sum - schedule.total_quantity
    if abs(difference) > sum_tolerance:
        result.add_warning(
            "split_sum_mismatch",
            "Weekly split total must equal the total quantity",
            {
                "split_sum": str(schedule.split_sum),
                "total_quantity": str(schedule.total_quantity),
                "difference": str(difference),
            },
        )
    return result
