"""Immutable facts recorded while evaluating coverage.

Events are produced by :class:`~covpolicy.core.policy.PolicyEvaluator` and
:class:`~covpolicy.core.trends.TrendAnalysisService`. Each carries enough data
for a notifier or logger to build a message without access to the result.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import ClassVar

from covpolicy.core.values import round1


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class CoverageEvent:
    """Base class for all coverage events."""

    event_type: ClassVar[str] = "CoverageEvent"

    occurred_at: datetime.datetime = field(default_factory=_now, compare=False)

    @property
    def message(self) -> str:
        return self.event_type


@dataclass(frozen=True, slots=True, kw_only=True)
class CoverageEvaluatedEvent(CoverageEvent):
    event_type: ClassVar[str] = "CoverageEvaluated"

    policy_name: str
    overall_percent: float
    passed: bool
    domain_count: int
    failed_count: int

    @property
    def message(self) -> str:
        verdict = "passed" if self.passed else "failed"
        return (
            f"policy {self.policy_name} {verdict}: {self.overall_percent:.1f}% overall, "
            f"{self.failed_count}/{self.domain_count} domains failing"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ThresholdViolatedEvent(CoverageEvent):
    event_type: ClassVar[str] = "ThresholdViolated"

    domain: str
    actual: float
    required: float
    shortfall: float = 0.0

    @classmethod
    def create(cls, domain: str, actual: float, required: float) -> ThresholdViolatedEvent:
        return cls(domain=domain, actual=actual, required=required, shortfall=round1(required - actual))

    @property
    def message(self) -> str:
        return (
            f"{self.domain} coverage {self.actual:.1f}% is below the required "
            f"{self.required:.1f}% (short by {self.shortfall:.1f})"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CoverageImprovedEvent(CoverageEvent):
    event_type: ClassVar[str] = "CoverageImproved"

    domain: str
    previous: float
    current: float
    delta: float = 0.0

    @classmethod
    def create(cls, domain: str, previous: float, current: float) -> CoverageImprovedEvent:
        return cls(domain=domain, previous=previous, current=current, delta=round1(current - previous))

    @property
    def message(self) -> str:
        return f"{self.domain} coverage improved {self.previous:.1f}% -> {self.current:.1f}% (+{self.delta:.1f})"


@dataclass(frozen=True, slots=True, kw_only=True)
class CoverageRegressedEvent(CoverageEvent):
    """Coverage dropped; ``delta`` is the size of the drop (positive)."""

    event_type: ClassVar[str] = "CoverageRegressed"

    domain: str
    previous: float
    current: float
    delta: float = 0.0

    @classmethod
    def create(cls, domain: str, previous: float, current: float) -> CoverageRegressedEvent:
        return cls(domain=domain, previous=previous, current=current, delta=round1(previous - current))

    @property
    def message(self) -> str:
        return f"{self.domain} coverage regressed {self.previous:.1f}% -> {self.current:.1f}% (-{self.delta:.1f})"


class EventCollector:
    """Append-only in-memory event log.

    Not safe for concurrent writers; give each evaluator its own collector.
    """

    def __init__(self) -> None:
        self._events: list[CoverageEvent] = []

    def record(self, event: CoverageEvent) -> None:
        self._events.append(event)

    def extend(self, events: tuple[CoverageEvent, ...] | list[CoverageEvent]) -> None:
        self._events.extend(events)

    def events(self) -> tuple[CoverageEvent, ...]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()

    def has_events(self) -> bool:
        return bool(self._events)

    def __len__(self) -> int:
        return len(self._events)


__all__ = [
    "CoverageEvaluatedEvent",
    "CoverageEvent",
    "CoverageImprovedEvent",
    "CoverageRegressedEvent",
    "EventCollector",
    "ThresholdViolatedEvent",
]
