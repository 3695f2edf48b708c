"""
=============================================================================
IGNIS - OCCURRENCE QUERY BUILDER
=============================================================================

Builds the parameterized spatial SELECT behind the three occurrence
endpoints (risco, foco_calor, area_queimada).

Every statement joins the record table with the state and biome lookup
tables and starts from ``WHERE 1=1``. Each filter that is present appends
one clause bound to a positionally numbered parameter (``:p1``, ``:p2``...)
in the fixed order estado, bioma, inicio, fim. Filter values never reach
the SQL text.

No ORDER BY and no LIMIT: rows come back in the store's natural order.
=============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ignis.schemas.occurrence import OccurrenceFilters, OccurrenceKind

PARAM_PREFIX = "p"
STATE_TABLE = "Estados"
BIOME_TABLE = "Bioma"
LOOKUP_TABLES = (STATE_TABLE, BIOME_TABLE)


@dataclass(frozen=True)
class OccurrenceSource:
    """Where a record kind lives and which columns it projects."""
    table: str
    alias: str
    geometry_column: str
    date_column: str
    projection: Tuple[str, ...]

    def column(self, name: str) -> str:
        return f"{self.alias}.{name}"


SOURCES: Dict[OccurrenceKind, OccurrenceSource] = {
    OccurrenceKind.RISCO: OccurrenceSource(
        table="Risco",
        alias="r",
        geometry_column="geometria",
        date_column="data",
        projection=("r.risco_fogo", "r.data"),
    ),
    OccurrenceKind.FOCO_CALOR: OccurrenceSource(
        table="Foco_Calor",
        alias="f",
        geometry_column="geometria",
        date_column="data",
        projection=(
            "f.risco_fogo AS risco_fogo",
            "f.data AS data",
            "f.dia_sem_chuva AS dia_sem_chuva",
            "f.precipitacao",
            "f.frp",
        ),
    ),
    OccurrenceKind.AREA_QUEIMADA: OccurrenceSource(
        table="Area_Queimada",
        alias="a",
        geometry_column="geom",
        date_column="data_pas",
        projection=(
            "a.risco AS risco_fogo",
            "a.data_pas AS data",
            "a.frp",
        ),
    ),
}


@dataclass(frozen=True)
class OccurrenceQuery:
    sql: str
    params: Tuple[str, ...]

    def bind_params(self) -> Dict[str, str]:
        """Named binds for ``sqlalchemy.text``: {"p1": ..., "p2": ...}."""
        return {
            f"{PARAM_PREFIX}{position}": value
            for position, value in enumerate(self.params, start=1)
        }


def _base_select(source: OccurrenceSource) -> str:
    geom = source.column(source.geometry_column)
    columns = [
        f"ST_Y({geom}) AS latitude",
        f"ST_X({geom}) AS longitude",
        "e.estado",
        "b.bioma",
        *source.projection,
    ]
    return (
        "SELECT\n    "
        + ",\n    ".join(columns)
        + f"\nFROM {source.table} {source.alias}"
        + f"\nJOIN {STATE_TABLE} e ON {source.column('estado_id')} = e.id_estado"
        + f"\nJOIN {BIOME_TABLE} b ON {source.column('bioma_id')} = b.id"
        + "\nWHERE 1=1"
    )


def build_occurrence_query(
    kind: OccurrenceKind, filters: Optional[OccurrenceFilters] = None
) -> OccurrenceQuery:
    """Compose the SELECT for ``kind`` with one bound parameter per present filter."""
    source = SOURCES[OccurrenceKind(kind)]
    filters = filters or OccurrenceFilters()

    conditions = (
        (filters.estado, f"{source.column('estado_id')} = "),
        (filters.bioma, f"{source.column('bioma_id')} = "),
        (filters.inicio, f"{source.column(source.date_column)} >= "),
        (filters.fim, f"{source.column(source.date_column)} <= "),
    )

    sql = _base_select(source)
    params = []
    for value, clause in conditions:
        if not value:
            continue
        params.append(value)
        sql += f"\n  AND {clause}:{PARAM_PREFIX}{len(params)}"

    return OccurrenceQuery(sql=sql, params=tuple(params))
