"""
folium rendering of a MapView snapshot.

Layer order follows the dashboard: country outline, selected state and
biome outlines, the active data layer (risk aggregates, point cluster or
monthly polygons) and, in the risk view, the per-state risk points.
"""
from __future__ import annotations

import html
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping

import folium
from folium.plugins import MarkerCluster

from ignis.map.aggregation import RiskAggregate
from ignis.map.classification import frp_color, risk_color, to_number
from ignis.map.regions import BRAZIL_BOUNDS, MIN_ZOOM
from ignis.map.view import DisplayMode, MapView

TILES_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILES_ATTRIBUTION = "&copy; OpenStreetMap contributors"

COUNTRY_STYLE = {"color": "black", "weight": 2, "fillOpacity": 0}
STATE_STYLE = {"color": "#0066FF", "weight": 2, "fillOpacity": 0, "fillColor": "transparent"}
BIOME_STYLE = {"color": "green", "weight": 2, "fillOpacity": 0.05}
MONTHLY_POLYGON_STYLE = {"color": "red", "weight": 2, "fillOpacity": 0.3}

AGGREGATE_ICON_SIZE = 35
POINT_ICON_SIZE = 20


def base_map(center, zoom: int) -> folium.Map:
    (south, west), (north, east) = BRAZIL_BOUNDS
    return folium.Map(
        location=list(center),
        zoom_start=zoom,
        min_zoom=MIN_ZOOM,
        tiles=TILES_URL,
        attr=TILES_ATTRIBUTION,
        max_bounds=True,
        min_lat=south,
        max_lat=north,
        min_lon=west,
        max_lon=east,
    )


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d/%m/%Y")
        except ValueError:
            return value
    return ""


def _text(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def _round_icon(color: str, size: int, label: str = "") -> folium.DivIcon:
    style = (
        f"background-color: {color}; width: {size}px; height: {size}px; "
        "border-radius: 50%; display: flex; align-items: center; "
        "justify-content: center; color: white; font-weight: bold;"
    )
    return folium.DivIcon(
        html=f'<div style="{style}">{label}</div>',
        icon_size=(size, size),
        icon_anchor=(size // 2, size // 2),
        class_name="custom-icon",
    )


def aggregate_popup(aggregate: RiskAggregate) -> str:
    title = "Bioma" if aggregate.grouping.value == "bioma" else "Estado"
    return (
        f"<strong>{title}:</strong> {_text(aggregate.label)}<br/>"
        f"<strong>Média Risco de Fogo:</strong> {aggregate.media:.2f}<br/>"
        f"<strong>Total de Pontos:</strong> {aggregate.total}"
    )


def point_popup(row: Mapping[str, Any]) -> str:
    lines = [
        f"<strong>Data:</strong> {_text(_format_date(row.get('data')))}",
        f"<strong>Estado:</strong> {_text(row.get('estado'))}",
        f"<strong>Bioma:</strong> {_text(row.get('bioma'))}",
        f"<strong>Risco de Fogo:</strong> {_text(row.get('risco_fogo') if row.get('risco_fogo') is not None else 0)}",
    ]
    if row.get("frp") is not None:
        lines.append(f"<strong>FRP:</strong> {_text(row.get('frp'))}")
    if row.get("dia_sem_chuva"):
        lines.append(f"<strong>Dias sem chuva:</strong> {_text(row.get('dia_sem_chuva'))}")
        lines.append(f"<strong>Precipitação:</strong> {_text(row.get('precipitacao'))}")
    return "<br/>".join(lines)


def _has_features(data: Dict[str, Any] | None) -> bool:
    if not data:
        return False
    if data.get("type") == "FeatureCollection":
        return bool(data.get("features"))
    return True


def add_boundaries(m: folium.Map, view: MapView) -> None:
    if _has_features(view.boundaries.get("brasil")):
        folium.GeoJson(
            view.boundaries["brasil"],
            name="Brasil",
            style_function=lambda _feature: COUNTRY_STYLE,
        ).add_to(m)

    state = view.selected_state_boundary()
    if _has_features(state):
        folium.GeoJson(
            state, name="Estado", style_function=lambda _feature: STATE_STYLE
        ).add_to(m)

    biome = view.selected_biome_boundary()
    if _has_features(biome):
        folium.GeoJson(
            biome, name="Bioma", style_function=lambda _feature: BIOME_STYLE
        ).add_to(m)


def add_risk_aggregates(m: folium.Map, aggregates: Iterable[RiskAggregate]) -> folium.FeatureGroup:
    group = folium.FeatureGroup(name="Média de risco")
    for aggregate in aggregates:
        folium.Marker(
            location=list(aggregate.position.as_tuple()),
            icon=_round_icon(aggregate.color, AGGREGATE_ICON_SIZE, f"{aggregate.media:.2f}"),
            popup=folium.Popup(aggregate_popup(aggregate), max_width=300),
        ).add_to(group)
    group.add_to(m)
    return group


def add_points(m: folium.Map, rows: Iterable[Mapping[str, Any]]) -> MarkerCluster:
    cluster = MarkerCluster(name="Ocorrências")
    for row in rows:
        latitude = row.get("latitude")
        longitude = row.get("longitude")
        if latitude is None or longitude is None:
            continue
        folium.Marker(
            location=[latitude, longitude],
            icon=_round_icon(frp_color(row.get("frp")), POINT_ICON_SIZE),
            popup=folium.Popup(point_popup(row), max_width=300),
        ).add_to(cluster)
    cluster.add_to(m)
    return cluster


def add_state_risk_points(m: folium.Map, data: Dict[str, Any]) -> folium.FeatureGroup:
    group = folium.FeatureGroup(name="Risco por estado")
    for feature in data.get("features") or []:
        geometry = feature.get("geometry") or {}
        if geometry.get("type") != "Point":
            continue
        lon, lat = geometry["coordinates"][:2]
        properties = feature.get("properties") or {}
        risk = to_number(properties.get("rf"))
        folium.CircleMarker(
            location=[lat, lon],
            radius=5,
            color="#000",
            weight=0.5,
            opacity=1,
            fill=True,
            fill_color=risk_color(risk),
            fill_opacity=0.7,
            popup=folium.Popup(
                f"<strong>Risco:</strong> {_text(properties.get('rf'))}<br/>"
                f"<strong>Estado:</strong> {_text(properties.get('id'))}",
                max_width=300,
            ),
        ).add_to(group)
    group.add_to(m)
    return group


def add_monthly_polygons(m: folium.Map, data: Dict[str, Any]) -> folium.GeoJson:
    layer = folium.GeoJson(
        data,
        name="Área queimada (mês)",
        style_function=lambda _feature: MONTHLY_POLYGON_STYLE,
    )
    layer.add_to(m)
    return layer


def build_map(view: MapView) -> folium.Map:
    """Render the current state of ``view`` as a folium map."""
    m = base_map(view.camera.center.as_tuple(), view.camera.zoom)
    add_boundaries(m, view)

    mode = view.mode
    if mode is DisplayMode.RISK_AGGREGATES:
        add_risk_aggregates(m, view.risk_aggregates())
    elif mode is DisplayMode.POINTS:
        add_points(m, view.point_rows())
    elif mode is DisplayMode.MONTHLY_POLYGONS and _has_features(view.monthly_layer):
        add_monthly_polygons(m, view.monthly_layer)

    if mode is DisplayMode.RISK_AGGREGATES and view.state_risk_layer:
        add_state_risk_points(m, view.state_risk_layer)

    if view.camera.bounds:
        m.fit_bounds(view.camera.bounds)

    folium.LayerControl().add_to(m)
    return m


def render_html(view: MapView) -> str:
    return build_map(view).get_root().render()

