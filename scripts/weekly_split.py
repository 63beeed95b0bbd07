#!/usr/bin/env python3
"""
週次配分の作成・試算・編集CLI。

使い方:
  python scripts/weekly_split.py init --quantity 1000 --start 2025-01-06 --due 2025-02-02 -o out/split.json
  python scripts/weekly_split.py preview -i out/split.json --week 3 --value 150
  python scripts/weekly_split.py edit -i out/split.json --week 0 --value 300 -o out/split.json
  python scripts/weekly_split.py reset -i out/split.json

edit で前方に未ロック週が無い場合は試算を表示して終了コード2で終わる（書き込まない）。
--allow-backward を付けると前後すべての未ロック週へ再配分して確定する。
"""
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.config import validate_weekly_schedule
from domain.models import PendingConfirmation, WeeklySchedule
from engine.redistribution import (
    SplitEditorError,
    commit_edit,
    compute_preview,
    parse_week_value,
)
from planning.weekly_split import build_initial_schedule, reset_to_even


def _load_schedule(path: str) -> WeeklySchedule:
    with open(path, encoding="utf-8") as f:
        return WeeklySchedule.model_validate(json.load(f))


def _write_json(path: str, payload: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_init(args: argparse.Namespace) -> int:
    start = date.fromisoformat(args.start) if args.start else None
    due = date.fromisoformat(args.due) if args.due else None
    schedule = build_initial_schedule(args.quantity, start, due)
    _write_json(args.output, schedule.model_dump())
    print(f"[ok] wrote {args.output} ({schedule.weeks} weeks)")
    return 0


def _cmd_reset(args: argparse.Namespace) -> int:
    schedule = reset_to_even(_load_schedule(args.input))
    output = args.output or args.input
    _write_json(output, schedule.model_dump())
    print(f"[ok] wrote {output} (reset to even split over {schedule.weeks} weeks)")
    return 0


def _cmd_preview(args: argparse.Namespace) -> int:
    schedule = _load_schedule(args.input)
    preview = compute_preview(schedule, args.week, parse_week_value(args.value))
    _print_json(preview.model_dump())
    return 0


def _cmd_edit(args: argparse.Namespace) -> int:
    schedule = _load_schedule(args.input)
    value = parse_week_value(args.value)
    outcome = commit_edit(schedule, args.week, value, allow_backward=args.allow_backward)
    if isinstance(outcome, PendingConfirmation):
        print(
            f"[warn] week {args.week + 1} has no unlocked later week; "
            "re-run with --allow-backward to redistribute to earlier weeks",
            file=sys.stderr,
        )
        _print_json(compute_preview(schedule, args.week, value).model_dump())
        return 2

    output = args.output or args.input
    _write_json(output, outcome.schedule.model_dump())
    for issue in validate_weekly_schedule(outcome.schedule).issues:
        print(f"[{issue.severity}] {issue.message} {issue.context}", file=sys.stderr)
    print(f"[ok] wrote {output} (direction={outcome.direction})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="週次数量配分の作成・再配分")
    sub = ap.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="開始日/納期から均等配分を作成")
    p_init.add_argument("--quantity", type=int, required=True, help="ジョブ総数量")
    p_init.add_argument("--start", default=None, help="開始日 YYYY-MM-DD（省略時は1週）")
    p_init.add_argument("--due", default=None, help="納期 YYYY-MM-DD（省略時は1週）")
    p_init.add_argument("-o", "--output", required=True, help="出力JSONパス")
    p_init.set_defaults(func=_cmd_init)

    p_reset = sub.add_parser("reset", help="均等配分に戻し全週のロックを解除")
    p_reset.add_argument("-i", "--input", required=True, help="配分JSONパス")
    p_reset.add_argument("-o", "--output", default=None, help="出力先（既定: 入力を上書き）")
    p_reset.set_defaults(func=_cmd_reset)

    for name, helptext in (
        ("preview", "後方（先行週）への再配分を試算（変更しない）"),
        ("edit", "週の値を編集して再配分"),
    ):
        p = sub.add_parser(name, help=helptext)
        p.add_argument("-i", "--input", required=True, help="配分JSONパス")
        p.add_argument("--week", type=int, required=True, help="週インデックス（0始まり）")
        p.add_argument("--value", required=True, help="新しい値（数値以外は0）")
        if name == "edit":
            p.add_argument(
                "--allow-backward",
                dest="allow_backward",
                action="store_true",
                help="前方に未ロック週が無い場合に前後へ再配分する",
            )
            p.add_argument("-o", "--output", default=None, help="出力先（既定: 入力を上書き）")
            p.set_defaults(func=_cmd_edit)
        else:
            p.set_defaults(func=_cmd_preview)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (SplitEditorError, ValidationError, ValueError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
