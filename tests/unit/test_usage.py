"""Tests for the usage accumulator."""

from __future__ import annotations

from sparkchat.events import UsageReport
from sparkchat.services.usage import UsageAccumulator, UsageTotals


class TestUsageAccumulator:
    def test_starts_at_zero(self) -> None:
        assert UsageAccumulator().totals == UsageTotals(0, 0, 0)

    def test_sums_every_report(self) -> None:
        acc = UsageAccumulator()
        acc.apply(UsageReport(prompt=10, response=20, total=30))
        acc.apply(UsageReport(prompt=10, response=25, total=35))
        assert acc.totals == UsageTotals(prompt=20, response=45, total=65)

    def test_totals_never_decrease(self) -> None:
        acc = UsageAccumulator()
        reports = [
            UsageReport(3, 1, 4),
            UsageReport(0, 0, 0),
            UsageReport(-5, -1, -6),
            UsageReport(2, 9, 11),
        ]
        previous = acc.totals
        for report in reports:
            acc.apply(report)
            current = acc.totals
            assert current.prompt >= previous.prompt
            assert current.response >= previous.response
            assert current.total >= previous.total
            previous = current

    def test_totals_snapshot_is_detached(self) -> None:
        acc = UsageAccumulator()
        snapshot = acc.totals
        acc.apply(UsageReport(1, 1, 2))
        assert snapshot == UsageTotals()
