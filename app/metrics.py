from __future__ import annotations

import os
from typing import Tuple

from prometheus_client import (
    Counter,
    CONTENT_TYPE_LATEST,
    Histogram,
    REGISTRY,
    generate_latest,
    start_http_server,
)

# ---------------------------------------------------------------------------
# Weekly split editing
# ---------------------------------------------------------------------------

SPLIT_EDITS_TOTAL = Counter(
    "split_edits_total",
    "Weekly split edits processed by the redistribution engine",
    labelnames=("outcome",),
)

SPLIT_BACKWARD_CONFIRMATIONS_TOTAL = Counter(
    "split_backward_confirmations_total",
    "Backward redistributions confirmed by the operator",
)

SPLIT_BACKWARD_CANCELLATIONS_TOTAL = Counter(
    "split_backward_cancellations_total",
    "Backward redistributions cancelled by the operator",
)

SPLIT_CLAMP_EVENTS_TOTAL = Counter(
    "split_clamp_events_total",
    "Redistributions where a week was clamped at zero",
    labelnames=("direction",),
)

SPLIT_WEEK_UNLOCKS_TOTAL = Counter(
    "split_week_unlocks_total",
    "Weeks explicitly unlocked by the operator",
)

SPLIT_RESETS_TOTAL = Counter(
    "split_resets_total",
    "Weekly splits reset to an even distribution",
)

SPLIT_TARGET_WEEKS = Histogram(
    "split_redistribution_target_weeks",
    "Number of weeks that absorbed the difference of a committed edit",
    labelnames=("direction",),
    buckets=(1, 2, 4, 8, 16, 32, float("inf")),
)


# ---------------------------------------------------------------------------
# Exposition helpers
# ---------------------------------------------------------------------------


def metrics_snapshot() -> Tuple[bytes, str]:
    """Return Prometheus exposition text and its content type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


def start_metrics_server(port: int | None = None) -> None:
    """Optional standalone metrics server for worker processes."""
    target_port = port or int(os.getenv("METRICS_PORT", "9000"))
    start_http_server(target_port)
