import dataclasses
import datetime

import pytest

from covpolicy.core.events import (
    CoverageEvaluatedEvent,
    CoverageImprovedEvent,
    CoverageRegressedEvent,
    EventCollector,
    ThresholdViolatedEvent,
)


def test_threshold_violated_event_computes_shortfall() -> None:
    event = ThresholdViolatedEvent.create("core", 80.0, 85.0)
    assert event.shortfall == 5.0
    assert event.event_type == "ThresholdViolated"
    assert event.message == "core coverage 80.0% is below the required 85.0% (short by 5.0)"


def test_swing_event_deltas_are_positive_sizes() -> None:
    improved = CoverageImprovedEvent.create("overall", 70.0, 72.5)
    regressed = CoverageRegressedEvent.create("api", 72.5, 70.0)
    assert improved.delta == 2.5
    assert regressed.delta == 2.5
    assert "+2.5" in improved.message
    assert "-2.5" in regressed.message


def test_events_are_immutable_and_timestamped() -> None:
    event = CoverageEvaluatedEvent(policy_name="p", overall_percent=90.0, passed=True, domain_count=1, failed_count=0)
    assert event.occurred_at.tzinfo is datetime.UTC
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.passed = False  # type: ignore[misc]


def test_event_equality_ignores_timestamp() -> None:
    first = ThresholdViolatedEvent.create("core", 1.0, 2.0)
    second = ThresholdViolatedEvent.create("core", 1.0, 2.0)
    assert first == second


def test_collector_appends_and_clears() -> None:
    collector = EventCollector()
    assert not collector.has_events()
    e1 = ThresholdViolatedEvent.create("a", 1.0, 2.0)
    e2 = CoverageImprovedEvent.create("a", 1.0, 3.0)
    collector.record(e1)
    collector.extend([e2])
    assert collector.events() == (e1, e2)
    assert len(collector) == 2
    collector.clear()
    assert collector.events() == ()
    assert not collector.has_events()


def test_separate_collectors_do_not_share_state() -> None:
    a, b = EventCollector(), EventCollector()
    a.record(ThresholdViolatedEvent.create("x", 1.0, 2.0))
    assert len(b) == 0
