"""Trend analysis and forecasting over coverage history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covpolicy.core.events import (
    CoverageEvent,
    CoverageImprovedEvent,
    CoverageRegressedEvent,
    EventCollector,
)
from covpolicy.core.history import STABLE, Trend, calculate_trend, direction_for
from covpolicy.core.types import FULL_COVERAGE, OVERALL, SIGNIFICANT_CHANGE, TrendDirection
from covpolicy.core.values import Percentage, round1

if TYPE_CHECKING:
    import datetime

    from covpolicy.core.history import History, HistoryEntry

# Residual variance (in squared percentage points) at which the fit factor halves.
_VARIANCE_SCALE = 100.0


@dataclass(frozen=True, slots=True)
class DomainTrend:
    domain: str
    previous: Percentage
    current: Percentage
    trend: Trend


@dataclass(frozen=True, slots=True)
class TrendAnalysis:
    overall_trend: Trend = STABLE
    domain_trends: dict[str, DomainTrend] = field(default_factory=dict)
    previous: Percentage | None = None
    current: Percentage | None = None
    period: datetime.timedelta | None = None
    events: tuple[CoverageEvent, ...] = ()

    @property
    def is_improving(self) -> bool:
        return self.overall_trend.direction is TrendDirection.UP

    @property
    def is_regressing(self) -> bool:
        return self.overall_trend.direction is TrendDirection.DOWN


@dataclass(frozen=True, slots=True)
class HistoryAnalysis:
    entries_count: int = 0
    highest: Percentage = Percentage(0.0)
    lowest: Percentage = Percentage(0.0)
    average: Percentage = Percentage(0.0)
    up_days: int = 0
    down_days: int = 0
    stable_days: int = 0

    @property
    def transitions(self) -> int:
        return self.up_days + self.down_days + self.stable_days

    def volatility(self) -> float:
        """Share of transitions that moved coverage up or down (0..1)."""
        if self.entries_count < 2 or self.transitions == 0:  # noqa: PLR2004
            return 0.0
        return (self.up_days + self.down_days) / self.transitions

    def consistency_score(self) -> float:
        """100 minus the spread between the best and worst values, within 0..100."""
        if self.entries_count < 2:  # noqa: PLR2004
            return float(FULL_COVERAGE)
        spread = self.highest.value - self.lowest.value
        return min(float(FULL_COVERAGE), max(0.0, round1(FULL_COVERAGE - spread)))


@dataclass(frozen=True, slots=True)
class Forecast:
    predicted: Percentage
    confidence: float
    slope: float = 0.0
    entries_used: int = 0


class TrendAnalysisService:
    """Compare snapshots, summarise history windows, and forecast coverage.

    Every method is a pure function of its arguments, except that events raised
    by :meth:`analyze_trend` are also appended to the service's collector.
    """

    def __init__(self) -> None:
        self._events = EventCollector()

    # ------------------------------------------------------------------ #
    # pairwise                                                           #
    # ------------------------------------------------------------------ #
    def analyze_trend(self, previous: HistoryEntry | None, current: HistoryEntry | None) -> TrendAnalysis:
        if previous is None or current is None:
            return TrendAnalysis()

        prev_pct = Percentage(previous.overall)
        cur_pct = Percentage(current.overall)
        overall = calculate_trend(prev_pct.value, cur_pct.value)

        domain_trends: dict[str, DomainTrend] = {}
        for name, cur_entry in current.domains.items():
            prev_entry = previous.domains.get(name)
            if prev_entry is None:
                continue
            before = Percentage(prev_entry.percent)
            after = Percentage(cur_entry.percent)
            domain_trends[name] = DomainTrend(
                domain=name,
                previous=before,
                current=after,
                trend=calculate_trend(before.value, after.value),
            )

        events = [*_swing_events(OVERALL, prev_pct, cur_pct, overall)]
        for dt in domain_trends.values():
            events.extend(_swing_events(dt.domain, dt.previous, dt.current, dt.trend))
        self._events.extend(events)

        return TrendAnalysis(
            overall_trend=overall,
            domain_trends=domain_trends,
            previous=prev_pct,
            current=cur_pct,
            period=current.timestamp - previous.timestamp,
            events=tuple(events),
        )

    # ------------------------------------------------------------------ #
    # windowed statistics                                                #
    # ------------------------------------------------------------------ #
    def analyze_history(self, history: History, since: datetime.datetime) -> HistoryAnalysis:
        entries = sorted(history.entries_after(since), key=lambda e: e.timestamp)
        if not entries:
            return HistoryAnalysis()

        values = [e.overall for e in entries]
        up = down = stable = 0
        for before, after in zip(values, values[1:], strict=False):
            direction = direction_for(round1(after - before))
            if direction is TrendDirection.UP:
                up += 1
            elif direction is TrendDirection.DOWN:
                down += 1
            else:
                stable += 1

        return HistoryAnalysis(
            entries_count=len(entries),
            highest=Percentage(max(values)),
            lowest=Percentage(min(values)),
            average=Percentage(sum(values) / len(values)),
            up_days=up,
            down_days=down,
            stable_days=stable,
        )

    # ------------------------------------------------------------------ #
    # forecast                                                           #
    # ------------------------------------------------------------------ #
    def predict_next_coverage(self, history: History, window_size: int) -> Forecast:
        """Extrapolate the next overall value with a least-squares line.

        Uses the last *window_size* entries in timestamp order (all entries when
        *window_size* is not positive). Confidence is ``0`` for no history,
        ``0.5`` for a single point, and ``0.5 + 0.5 * fill * fit`` otherwise,
        where ``fill`` is the share of the window that had data and ``fit``
        shrinks as residual variance grows.
        """
        ordered = history.chronological()
        if not ordered:
            return Forecast(predicted=Percentage(0.0), confidence=0.0)

        window = window_size if window_size > 0 else len(ordered)
        entries = ordered[-window:]
        if len(entries) < 2:  # noqa: PLR2004
            return Forecast(predicted=Percentage(entries[-1].overall), confidence=0.5, entries_used=1)

        ys = [e.overall for e in entries]
        n = len(ys)
        slope, intercept = _least_squares(ys)
        predicted = min(float(FULL_COVERAGE), max(0.0, slope * n + intercept))

        variance = sum((y - (slope * x + intercept)) ** 2 for x, y in enumerate(ys)) / n
        fit = 1.0 / (1.0 + variance / _VARIANCE_SCALE)
        fill = n / window
        confidence = 0.5 + 0.5 * fill * fit
        return Forecast(predicted=Percentage(predicted), confidence=confidence, slope=slope, entries_used=n)

    def events(self) -> tuple[CoverageEvent, ...]:
        return self._events.events()

    def clear_events(self) -> None:
        self._events.clear()


def _least_squares(ys: list[float]) -> tuple[float, float]:
    n = len(ys)
    sum_x = sum(range(n))
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in enumerate(ys))
    sum_x2 = sum(x * x for x in range(n))
    denom = n * sum_x2 - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denom if denom else 0.0
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def _swing_events(domain: str, previous: Percentage, current: Percentage, trend: Trend) -> list[CoverageEvent]:
    if trend.delta > SIGNIFICANT_CHANGE:
        return [CoverageImprovedEvent.create(domain, previous.value, current.value)]
    if trend.delta < -SIGNIFICANT_CHANGE:
        return [CoverageRegressedEvent.create(domain, previous.value, current.value)]
    return []


__all__ = [
    "DomainTrend",
    "Forecast",
    "HistoryAnalysis",
    "TrendAnalysis",
    "TrendAnalysisService",
]
