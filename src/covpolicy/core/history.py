"""Coverage history snapshots and pairwise trends."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from covpolicy.core.types import STABILITY_BAND, Status, TrendDirection
from covpolicy.core.values import round1

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def _parse_timestamp(raw: str) -> datetime.datetime:
    ts = datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=datetime.UTC)
    return ts


@dataclass(frozen=True, slots=True)
class DomainEntry:
    """Coverage of one domain at one point in time."""

    name: str
    percent: float
    min: float
    status: Status

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "percent": self.percent, "min": self.min, "status": str(self.status)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DomainEntry:
        return cls(
            name=str(data["name"]),
            percent=float(data["percent"]),
            min=float(data.get("min", 0.0)),
            status=Status(str(data.get("status", Status.PASS))),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """A single coverage measurement."""

    timestamp: datetime.datetime
    overall: float
    domains: Mapping[str, DomainEntry] = field(default_factory=dict)
    commit: str | None = None
    branch: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "timestamp": self.timestamp.isoformat(),
            "overall": self.overall,
            "domains": {name: entry.to_dict() for name, entry in self.domains.items()},
        }
        if self.commit:
            out["commit"] = self.commit
        if self.branch:
            out["branch"] = self.branch
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryEntry:
        domains = data.get("domains") or {}
        return cls(
            timestamp=_parse_timestamp(str(data["timestamp"])),
            overall=float(data["overall"]),
            domains={str(name): DomainEntry.from_dict(entry) for name, entry in domains.items()},
            commit=data.get("commit") or None,
            branch=data.get("branch") or None,
        )


@dataclass(frozen=True, slots=True)
class History:
    """Append-only, insertion-ordered collection of entries."""

    entries: tuple[HistoryEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def appended(self, entry: HistoryEntry) -> History:
        return History(entries=(*self.entries, entry))

    def latest_entry(self) -> HistoryEntry | None:
        """Entry with the greatest timestamp; the first one seen wins ties."""
        latest: HistoryEntry | None = None
        for entry in self.entries:
            if latest is None or entry.timestamp > latest.timestamp:
                latest = entry
        return latest

    def entry_before(self, cutoff: datetime.datetime) -> HistoryEntry | None:
        """Latest entry strictly older than *cutoff*; the first one seen wins ties."""
        return History.of(e for e in self.entries if e.timestamp < cutoff).latest_entry()

    def entries_after(self, cutoff: datetime.datetime) -> list[HistoryEntry]:
        return [e for e in self.entries if e.timestamp > cutoff]

    def chronological(self) -> list[HistoryEntry]:
        """Entries sorted by timestamp; ties keep insertion order."""
        return sorted(self.entries, key=lambda e: e.timestamp)

    def to_dict(self) -> dict[str, object]:
        return {"entries": [e.to_dict() for e in self.entries]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> History:
        return cls(entries=tuple(HistoryEntry.from_dict(e) for e in data.get("entries") or ()))

    @classmethod
    def of(cls, entries: Iterable[HistoryEntry]) -> History:
        return cls(entries=tuple(entries))


@dataclass(frozen=True, slots=True)
class Trend:
    direction: TrendDirection
    delta: float
    period: str = ""


def direction_for(delta: float) -> TrendDirection:
    if delta > STABILITY_BAND:
        return TrendDirection.UP
    if delta < -STABILITY_BAND:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def calculate_trend(previous: float, current: float) -> Trend:
    """Direction and size of the change from *previous* to *current*.

    The delta is rounded to one decimal before classification so that inputs
    already rounded to one decimal never straddle the stability band.
    """
    delta = round1(current - previous)
    return Trend(direction=direction_for(delta), delta=delta)


STABLE = Trend(direction=TrendDirection.STABLE, delta=0.0)


__all__ = [
    "STABLE",
    "DomainEntry",
    "History",
    "HistoryEntry",
    "Trend",
    "calculate_trend",
    "direction_for",
]
