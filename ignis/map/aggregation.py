from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from ignis.map.classification import to_number, risk_color
from ignis.map.regions import (
    BIOME_NAMES,
    LatLon,
    centroid_for,
    resolve_code,
    state_abbreviation,
)
from ignis.schemas.occurrence import GroupingKey


@dataclass(frozen=True)
class RiskAggregate:
    """Mean fire risk and record count for one state or biome."""
    grouping: GroupingKey
    key: str
    media: float
    total: int

    @property
    def position(self) -> LatLon:
        return centroid_for(self.grouping.value, self.key)

    @property
    def color(self) -> str:
        return risk_color(self.media)

    @property
    def label(self) -> str:
        code = resolve_code(self.grouping.value, self.key)
        if self.grouping is GroupingKey.BIOMA:
            return BIOME_NAMES.get(code, self.key)
        return state_abbreviation(code) or self.key

    def as_dict(self) -> Dict[str, Any]:
        return {self.grouping.value: self.key, "media": self.media, "total": self.total}


def group_risk(
    records: Iterable[Mapping[str, Any]],
    by: GroupingKey | str = GroupingKey.ESTADO,
    value_field: str = "risco_fogo",
) -> List[RiskAggregate]:
    """
    Group records by state or biome and average their risk.

    Missing risk values count as 0. Records without a grouping key are
    grouped under "" so they still land on the national centroid.
    """
    grouping = GroupingKey(by)
    sums: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for record in records:
        raw_key = record.get(grouping.value)
        key = "" if raw_key is None else str(raw_key)
        sums[key] = sums.get(key, 0.0) + to_number(record.get(value_field))
        counts[key] = counts.get(key, 0) + 1

    return [
        RiskAggregate(grouping=grouping, key=key, media=sums[key] / counts[key], total=counts[key])
        for key in sums
    ]
