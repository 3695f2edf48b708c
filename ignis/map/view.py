"""
=============================================================================
IGNIS - MAP VIEW STATE
=============================================================================

Holds what the dashboard map shows for the current filter and reacts to
filter changes:

* selecting a state flies the camera to its centroid (zoom 6); clearing it,
  or picking a code without a centroid, flies back to the national center
  (zoom 4);
* in the risk view a selected state loads its risk point layer; the new
  layer replaces the previous one, so at most one is live;
* burned area with only ``inicio`` set shows the monthly polygon layer;
  adding ``fim`` drops it and switches to per-record points;
* occurrence rows are re-fetched on every change.

Each fetch channel carries a generation counter taken at dispatch time. A
response that comes back after a newer dispatch on the same channel is
discarded, so a slow request can never overwrite newer state.
=============================================================================
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ignis.map.aggregation import RiskAggregate, group_risk
from ignis.map.client import (
    BIOME_BOUNDARIES_PATH,
    COUNTRY_BOUNDARY_PATH,
    STATE_BOUNDARIES_PATH,
    DashboardClient,
    monthly_burned_area_path,
    state_risk_layer_path,
)
from ignis.map.regions import NATIONAL_CENTER, NATIONAL_ZOOM, STATE_ZOOM, LatLon, state_centroid
from ignis.schemas.occurrence import GroupingKey, OccurrenceFilters, OccurrenceKind

logger = logging.getLogger(__name__)

ROWS = "rows"
STATE_RISK_LAYER = "state_risk_layer"
MONTHLY_LAYER = "monthly_layer"

# layer add/remove trace kept per view, oldest dropped first
LAYER_EVENT_LIMIT = 100


class DisplayMode(str, Enum):
    EMPTY = "empty"
    RISK_AGGREGATES = "risk_aggregates"
    POINTS = "points"
    MONTHLY_POLYGONS = "monthly_polygons"


@dataclass(frozen=True)
class MapFilters:
    """Filter panel state; empty strings count as unset."""
    tipo: Optional[OccurrenceKind] = None
    estado: Optional[str] = None
    bioma: Optional[str] = None
    inicio: Optional[str] = None
    fim: Optional[str] = None
    local: GroupingKey = GroupingKey.ESTADO

    def __post_init__(self):
        if self.tipo is not None:
            object.__setattr__(self, "tipo", OccurrenceKind(self.tipo))
        object.__setattr__(self, "local", GroupingKey(self.local))
        for name in ("estado", "bioma", "inicio", "fim"):
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)

    def occurrence_filters(self) -> OccurrenceFilters:
        return OccurrenceFilters(
            estado=self.estado, bioma=self.bioma, inicio=self.inicio, fim=self.fim
        )

    def update(self, **changes) -> "MapFilters":
        return replace(self, **changes)


def display_mode(filters: MapFilters) -> DisplayMode:
    if filters.tipo is OccurrenceKind.RISCO:
        return DisplayMode.RISK_AGGREGATES
    if filters.tipo is OccurrenceKind.FOCO_CALOR:
        return DisplayMode.POINTS
    if filters.tipo is OccurrenceKind.AREA_QUEIMADA:
        if filters.fim:
            return DisplayMode.POINTS
        if filters.inicio:
            return DisplayMode.MONTHLY_POLYGONS
    return DisplayMode.EMPTY


@dataclass
class Camera:
    center: LatLon = NATIONAL_CENTER
    zoom: int = NATIONAL_ZOOM
    # [[south, west], [north, east]] of the last fitted layer
    bounds: Optional[List[List[float]]] = None


def _iter_positions(coordinates) -> Iterable[Tuple[float, float]]:
    if not coordinates:
        return
    if isinstance(coordinates[0], (int, float)):
        yield coordinates[0], coordinates[1]
        return
    for part in coordinates:
        yield from _iter_positions(part)


def geojson_bounds(data: Optional[Dict[str, Any]]) -> Optional[List[List[float]]]:
    """[[south, west], [north, east]] of every coordinate in a GeoJSON object."""
    if not data:
        return None

    geometries = []
    if data.get("type") == "FeatureCollection":
        geometries = [f.get("geometry") for f in data.get("features") or []]
    elif data.get("type") == "Feature":
        geometries = [data.get("geometry")]
    else:
        geometries = [data]

    lons, lats = [], []
    for geometry in geometries:
        if not geometry:
            continue
        parts = geometry.get("geometries") or [geometry]
        for part in parts:
            for lon, lat in _iter_positions(part.get("coordinates")):
                lons.append(lon)
                lats.append(lat)

    if not lons:
        return None
    return [[min(lats), min(lons)], [max(lats), max(lons)]]


def filter_features(
    collection: Optional[Dict[str, Any]], prop: str, value: Optional[str]
) -> Optional[Dict[str, Any]]:
    """Copy of ``collection`` keeping features whose ``properties[prop]`` equals ``value``."""
    if not collection or not value:
        return None
    features = [
        feature
        for feature in collection.get("features") or []
        if str((feature.get("properties") or {}).get(prop)) == value
    ]
    return {**collection, "features": features}


@dataclass
class LayerEvent:
    action: str  # "add" | "remove"
    channel: str
    key: str


class MapView:
    """Filter-driven state of one dashboard map."""

    def __init__(self, client: DashboardClient):
        self.client = client
        self.filters = MapFilters()
        self.camera = Camera()
        self.rows: List[Dict[str, Any]] = []
        self.boundaries: Dict[str, Optional[Dict[str, Any]]] = {
            "brasil": None,
            "estados": None,
            "biomas": None,
        }
        self.state_risk_layer: Optional[Dict[str, Any]] = None
        self.state_risk_layer_key: Optional[str] = None
        self.monthly_layer: Optional[Dict[str, Any]] = None
        self.layer_events: List[LayerEvent] = []
        self._generations: Dict[str, int] = {ROWS: 0, STATE_RISK_LAYER: 0, MONTHLY_LAYER: 0}

    # ------------------------------------------------------------------ #
    # Derived state
    # ------------------------------------------------------------------ #

    @property
    def mode(self) -> DisplayMode:
        return display_mode(self.filters)

    def risk_aggregates(self) -> List[RiskAggregate]:
        if self.mode is not DisplayMode.RISK_AGGREGATES:
            return []
        return group_risk(self.rows, by=self.filters.local)

    def point_rows(self) -> List[Dict[str, Any]]:
        if self.mode is not DisplayMode.POINTS:
            return []
        return self.rows

    def selected_state_boundary(self) -> Optional[Dict[str, Any]]:
        return filter_features(self.boundaries["estados"], "id_estado", self.filters.estado)

    def selected_biome_boundary(self) -> Optional[Dict[str, Any]]:
        return filter_features(self.boundaries["biomas"], "id", self.filters.bioma)

    # ------------------------------------------------------------------ #
    # Generations
    # ------------------------------------------------------------------ #

    def _dispatch(self, channel: str) -> int:
        self._generations[channel] += 1
        return self._generations[channel]

    def _is_current(self, channel: str, generation: int) -> bool:
        current = self._generations[channel] == generation
        if not current:
            logger.debug("discarding superseded %s response (generation %d)", channel, generation)
        return current

    def _record(self, event: LayerEvent) -> None:
        self.layer_events.append(event)
        del self.layer_events[:-LAYER_EVENT_LIMIT]

    # ------------------------------------------------------------------ #
    # Reactions
    # ------------------------------------------------------------------ #

    async def load_boundaries(self) -> None:
        """Country, state and biome outlines; loaded once, missing files stay None."""
        brasil, estados, biomas = await asyncio.gather(
            self.client.fetch_geojson(COUNTRY_BOUNDARY_PATH),
            self.client.fetch_geojson(STATE_BOUNDARIES_PATH),
            self.client.fetch_geojson(BIOME_BOUNDARIES_PATH),
        )
        self.boundaries.update(brasil=brasil, estados=estados, biomas=biomas)

    async def apply(self, filters: MapFilters) -> None:
        previous = self.filters
        self.filters = filters

        if filters.estado != previous.estado:
            self.fly_to_state(filters.estado)

        tasks = [self._refresh_rows(filters)]
        if (filters.tipo, filters.estado) != (previous.tipo, previous.estado):
            tasks.append(self._refresh_state_risk_layer(filters))
        if (filters.tipo, filters.inicio, filters.fim) != (
            previous.tipo,
            previous.inicio,
            previous.fim,
        ):
            tasks.append(self._refresh_monthly_layer(filters))

        await asyncio.gather(*tasks)

    def fly_to_state(self, state_code: Optional[str]) -> None:
        centroid = state_centroid(state_code) if state_code else None
        if centroid:
            self.camera = Camera(center=centroid, zoom=STATE_ZOOM)
        else:
            self.camera = Camera(center=NATIONAL_CENTER, zoom=NATIONAL_ZOOM)

    async def _refresh_rows(self, filters: MapFilters) -> None:
        generation = self._dispatch(ROWS)
        if filters.tipo is None:
            self.rows = []
            return

        rows = await self.client.fetch_occurrences(filters.tipo, filters.occurrence_filters())
        if self._is_current(ROWS, generation):
            self.rows = rows

    async def _refresh_state_risk_layer(self, filters: MapFilters) -> None:
        generation = self._dispatch(STATE_RISK_LAYER)
        if filters.tipo is not OccurrenceKind.RISCO or not filters.estado:
            self._remove_state_risk_layer()
            return

        path = state_risk_layer_path(filters.estado)
        if path is None:
            logger.error("no UF abbreviation for state code %s", filters.estado)
            self._remove_state_risk_layer()
            return

        data = await self.client.fetch_geojson(path)
        if not self._is_current(STATE_RISK_LAYER, generation):
            return

        self._remove_state_risk_layer()
        if data is None:
            return

        self.state_risk_layer = data
        self.state_risk_layer_key = path
        self._record(LayerEvent("add", STATE_RISK_LAYER, path))
        bounds = geojson_bounds(data)
        if bounds:
            self.camera = replace(self.camera, bounds=bounds)

    def _remove_state_risk_layer(self) -> None:
        if self.state_risk_layer is None:
            return
        self._record(LayerEvent("remove", STATE_RISK_LAYER, self.state_risk_layer_key or ""))
        self.state_risk_layer = None
        self.state_risk_layer_key = None

    async def _refresh_monthly_layer(self, filters: MapFilters) -> None:
        generation = self._dispatch(MONTHLY_LAYER)
        if display_mode(filters) is not DisplayMode.MONTHLY_POLYGONS:
            self.monthly_layer = None
            return

        data = await self.client.fetch_geojson(monthly_burned_area_path(filters.inicio))
        if self._is_current(MONTHLY_LAYER, generation):
            self.monthly_layer = data
