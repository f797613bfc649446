"""Typed per-unit outcomes collected over one crawl.

Every unit of work (a listing branch, a document page, an attachment, a QA
page) ends in exactly one :class:`Outcome`.  Failures stay contained to their
unit; the report is how they surface after the run.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class Unit(str, Enum):
    SECTION = "section"
    LISTING = "listing"
    DOCUMENT = "document"
    ATTACHMENT = "attachment"
    QA = "QA"


@dataclass(frozen=True)
class Outcome:
    unit: Unit
    url: str
    status: OutcomeStatus
    reason: str = ""


@dataclass
class CrawlReport:
    """Append-only collection of outcomes.

    Appends happen from many tasks of the same event loop, never from threads.
    """

    outcomes: list[Outcome] = field(default_factory=list)
    documents_discovered: int = 0

    def success(self, unit: Unit, url: str, reason: str = "") -> None:
        self.outcomes.append(Outcome(unit, url, OutcomeStatus.SUCCESS, reason))

    def skipped(self, unit: Unit, url: str, reason: str) -> None:
        self.outcomes.append(Outcome(unit, url, OutcomeStatus.SKIPPED, reason))

    def failed(self, unit: Unit, url: str, reason: str) -> None:
        self.outcomes.append(Outcome(unit, url, OutcomeStatus.FAILED, reason))

    def filter(
        self, unit: Unit | None = None, status: OutcomeStatus | None = None
    ) -> list[Outcome]:
        return [
            o
            for o in self.outcomes
            if (unit is None or o.unit == unit)
            and (status is None or o.status == status)
        ]

    def counts(self) -> dict[str, dict[str, int]]:
        """Return ``{unit: {status: n}}`` for every unit that has outcomes."""
        tally: dict[str, Counter] = {}
        for o in self.outcomes:
            tally.setdefault(o.unit.value, Counter())[o.status.value] += 1
        return {unit: dict(counter) for unit, counter in tally.items()}

    def summary(self) -> str:
        parts = [f"discovered={self.documents_discovered}"]
        for unit, counter in sorted(self.counts().items()):
            detail = " ".join(f"{k}={v}" for k, v in sorted(counter.items()))
            parts.append(f"{unit}({detail})")
        return "  ".join(parts)

    def to_dict(self) -> dict:
        return {
            "documents_discovered": self.documents_discovered,
            "counts": self.counts(),
            "outcomes": [
                {**asdict(o), "unit": o.unit.value, "status": o.status.value}
                for o in self.outcomes
            ],
        }

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
