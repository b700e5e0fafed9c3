import math

import pytest

from clanboard import metrics
from clanboard.recently_viewed import RecentlyViewedItem
from clanboard.tools import lookup


def test_latency_summary_percentiles():
    for value in range(1, 11):
        metrics.record_upstream_latency_ms(float(value))
    summary = metrics.upstream_latency_summary()
    assert summary["count"] == 10
    assert summary["p90_ms"] == pytest.approx(9.1)
    assert summary["failures"] == 0


def test_invalid_latencies_ignored():
    metrics.record_request_latency_ms(-1)
    metrics.record_request_latency_ms(math.nan)
    metrics.record_request_latency_ms("fast")
    assert metrics.request_latency_summary() == {"count": 0, "p90_ms": None, "p95_ms": None}


def test_failures_counted():
    metrics.record_upstream_failure()
    metrics.record_upstream_failure()
    assert metrics.upstream_latency_summary()["failures"] == 2


def test_print_recent(capsys):
    lookup._print_recent([])
    assert "no recently viewed" in capsys.readouterr().out

    lookup._print_recent([RecentlyViewedItem(kind="clan", id="ABC", label="Alpha", viewedAt=0)])
    out = capsys.readouterr().out
    assert "clan" in out and "ABC" in out and "Alpha" in out and "1970-01-01 00:00" in out
