"""Data models for parsed metrics, catalogs, and aggregates."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd


class AggregationPolicy(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    END_OF_PERIOD = "end-of-period"


class CellStatus(str, Enum):
    OK = "ok"
    BLANK = "blank"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class CellValue:
    """Result of parsing one raw cell.

    `value` is only meaningful when `status` is OK; blank and invalid
    cells keep the original text so callers can report them.
    """

    raw: str
    status: CellStatus
    value: float = 0.0

    @property
    def is_ok(self) -> bool:
        return self.status is CellStatus.OK

    def or_zero(self) -> float:
        return self.value if self.is_ok else 0.0


@dataclass(frozen=True, slots=True)
class MetricRecord:
    uid: str
    group: str
    category: str
    type: str
    name: str
    unit: str
    values: tuple[str, ...] = ()

    @property
    def path(self) -> tuple[str, str, str, str]:
        return (self.group, self.category, self.type, self.name)

    @property
    def full_category(self) -> str:
        return f"{self.group} - {self.category} - {self.type}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "group": self.group,
            "category": self.category,
            "type": self.type,
            "name": self.name,
            "unit": self.unit,
            "values": list(self.values),
        }


@dataclass(frozen=True, slots=True)
class SkippedRow:
    line_number: int
    reason: str
    fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ParsedMetrics:
    period_axis: tuple[str, ...]
    records: tuple[MetricRecord, ...]
    skipped_rows: tuple[SkippedRow, ...] = ()
    unrecognized_periods: tuple[str, ...] = ()
    source: str | None = None


@dataclass(frozen=True, slots=True)
class MetricCatalog:
    """Flat list plus Group -> Category -> Type -> Name tree.

    The tree is built once and must be treated as read-only.
    """

    records: tuple[MetricRecord, ...]
    tree: dict[str, dict[str, dict[str, dict[str, dict[str, Any]]]]]
    shadowed_uids: tuple[str, ...] = ()
    _by_uid: dict[str, MetricRecord] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, uid: str) -> MetricRecord | None:
        return self._by_uid.get(uid)

    def groups(self) -> list[str]:
        return list(self.tree)

    def to_frame(self, period_axis: tuple[str, ...] | list[str] = ()) -> pd.DataFrame:
        """Wide DataFrame: identity columns followed by one column per period."""
        columns = ["uid", "group", "category", "type", "name", "unit"]
        rows = []
        for record in self.records:
            row = {col: getattr(record, col) for col in columns}
            for period, raw in zip(period_axis, record.values):
                row[period] = raw
            rows.append(row)
        return pd.DataFrame(rows, columns=columns + list(period_axis))


@dataclass(frozen=True, slots=True)
class AggregateResult:
    groups: list[str]
    table: dict[str, dict[str, float | None]]
    policy_used: dict[str, AggregationPolicy]
    grouping: str = "quarter"

    def value(self, group: str, uid: str) -> float | None:
        return self.table.get(group, {}).get(uid)

    def series(self, uid: str) -> list[float | None]:
        return [self.table[g].get(uid) for g in self.groups]

    def tail(self, n: int) -> "AggregateResult":
        """Keep only the most recent `n` groups."""
        kept = self.groups[-n:] if n > 0 else []
        return AggregateResult(
            groups=kept,
            table={g: self.table[g] for g in kept},
            policy_used=dict(self.policy_used),
            grouping=self.grouping,
        )

    def to_frame(self) -> pd.DataFrame:
        """DataFrame indexed by group with one column per uid."""
        df = pd.DataFrame.from_dict(self.table, orient="index")
        df = df.reindex(self.groups)
        df.index.name = self.grouping
        return df.astype(float)
