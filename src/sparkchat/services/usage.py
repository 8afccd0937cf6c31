"""Running token counters for the session."""

from __future__ import annotations

from dataclasses import dataclass

from ..events import UsageReport


@dataclass(frozen=True)
class UsageTotals:
    prompt: int = 0
    response: int = 0
    total: int = 0


class UsageAccumulator:
    """Sums every usage report it is given.

    Providers differ on whether a report holds cumulative or incremental
    counts for a message. This accumulator does not try to tell them apart:
    each report is added to the totals as received. Callers that stream a
    provider reporting cumulative counts on every chunk will see the totals
    grow faster than the real spend.

    Counters that would decrease the totals (negative values) are clamped to
    zero, so the totals never go down during a session.
    """

    def __init__(self) -> None:
        self._prompt = 0
        self._response = 0
        self._total = 0

    def apply(self, report: UsageReport) -> None:
        self._prompt += max(0, report.prompt)
        self._response += max(0, report.response)
        self._total += max(0, report.total)

    @property
    def totals(self) -> UsageTotals:
        return UsageTotals(prompt=self._prompt, response=self._response, total=self._total)
