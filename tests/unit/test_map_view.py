"""
Map view reactions driven through a fake API and asset server.

The fake serves both hosts through one httpx.MockTransport. Requests can
be held behind a gate to force responses to arrive out of order.
"""
import asyncio

import httpx
import pytest

from ignis.map.client import DashboardClient
from ignis.map.regions import NATIONAL_CENTER, LatLon
from ignis.map.view import (
    LAYER_EVENT_LIMIT,
    STATE_RISK_LAYER,
    DisplayMode,
    LayerEvent,
    MapFilters,
    MapView,
    display_mode,
    filter_features,
    geojson_bounds,
)
from ignis.schemas.occurrence import GroupingKey, OccurrenceKind

API = "http://api.test"
ASSETS = "http://assets.test"

SP_LAYER = "/geojson/estados/risco_SP.geojson"
MT_LAYER = "/geojson/estados/risco_MT.geojson"
JUNE_LAYER = "/geojson/area_queimada/2024-06.geojson"
JULY_LAYER = "/geojson/area_queimada/2024-07.geojson"


def _points(*coords):
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
                "properties": {"rf": 0.8, "id": 1},
            }
            for lon, lat in coords
        ],
    }


class FakeBackend:
    def __init__(self):
        self.assets = {
            "/geojson/brasil.geojson": {"type": "FeatureCollection", "features": []},
            "/geojson/estados.geojson": {
                "type": "FeatureCollection",
                "features": [
                    {"type": "Feature", "properties": {"id_estado": 35}, "geometry": None},
                    {"type": "Feature", "properties": {"id_estado": 51}, "geometry": None},
                ],
            },
            SP_LAYER: _points((-46.0, -23.0), (-48.0, -21.0)),
            MT_LAYER: _points((-55.0, -12.0)),
            JUNE_LAYER: {"type": "FeatureCollection", "features": [{"type": "Feature"}]},
        }
        self.api_status = 200
        self.gates = {}
        self.requests = []

    def hold(self, path, estado=None):
        """Hold the matching request until the returned release event is set."""
        entered, release = asyncio.Event(), asyncio.Event()
        self.gates[(path, estado)] = (entered, release)
        return entered, release

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        estado = request.url.params.get("estado")

        gate = self.gates.pop((path, estado), None)
        if gate:
            entered, release = gate
            entered.set()
            await release.wait()

        if request.url.host == "api.test":
            if self.api_status != 200:
                return httpx.Response(self.api_status, json={"erro": "Erro ao buscar"})
            return httpx.Response(
                200,
                json=[
                    {
                        "latitude": -20.0,
                        "longitude": -50.0,
                        "estado": estado or "",
                        "bioma": "Cerrado",
                        "risco_fogo": 0.75,
                        "data": "2024-06-02",
                        "frp": 12.0,
                    }
                ],
            )

        if path in self.assets:
            return httpx.Response(200, json=self.assets[path])
        return httpx.Response(404)


def _view(backend):
    client = DashboardClient(
        api_base_url=API, assets_base_url=ASSETS, transport=httpx.MockTransport(backend)
    )
    return MapView(client)


# -----------------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------------


def test_map_filters_treat_empty_strings_as_unset():
    filters = MapFilters(tipo="foco_calor", estado="", bioma="", local="bioma")

    assert filters.tipo is OccurrenceKind.FOCO_CALOR
    assert filters.estado is None
    assert filters.local is GroupingKey.BIOMA
    assert filters.occurrence_filters().present() == {}


@pytest.mark.parametrize(
    "filters, mode",
    [
        (MapFilters(), DisplayMode.EMPTY),
        (MapFilters(tipo="risco"), DisplayMode.RISK_AGGREGATES),
        (MapFilters(tipo="foco_calor"), DisplayMode.POINTS),
        (MapFilters(tipo="area_queimada"), DisplayMode.EMPTY),
        (MapFilters(tipo="area_queimada", inicio="2024-06"), DisplayMode.MONTHLY_POLYGONS),
        (
            MapFilters(tipo="area_queimada", inicio="2024-06-01", fim="2024-06-30"),
            DisplayMode.POINTS,
        ),
        (MapFilters(tipo="area_queimada", fim="2024-06-30"), DisplayMode.POINTS),
    ],
)
def test_display_mode(filters, mode):
    assert display_mode(filters) is mode


def test_geojson_bounds_covers_every_coordinate():
    assert geojson_bounds(_points((-46.0, -23.0), (-48.0, -21.0))) == [
        [-23.0, -48.0],
        [-21.0, -46.0],
    ]
    assert geojson_bounds({"type": "FeatureCollection", "features": []}) is None
    assert geojson_bounds(None) is None


def test_filter_features_matches_on_string_value():
    collection = FakeBackend().assets["/geojson/estados.geojson"]

    selected = filter_features(collection, "id_estado", "35")

    assert [f["properties"]["id_estado"] for f in selected["features"]] == [35]
    assert filter_features(collection, "id_estado", None) is None


# -----------------------------------------------------------------------------
# Camera
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_selecting_a_state_flies_to_its_centroid_and_back():
    backend = FakeBackend()
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(tipo="foco_calor", estado="35"))
        assert view.camera.center == LatLon(-23.55, -46.64)
        assert view.camera.zoom == 6

        await view.apply(view.filters.update(estado=None))
        assert view.camera.center == NATIONAL_CENTER
        assert view.camera.zoom == 4


@pytest.mark.asyncio
async def test_state_without_centroid_flies_to_national_center():
    view = _view(FakeBackend())
    async with view.client:
        await view.apply(MapFilters(tipo="foco_calor", estado="35"))
        await view.apply(view.filters.update(estado="99"))

    assert view.camera.center == NATIONAL_CENTER
    assert view.camera.zoom == 4


# -----------------------------------------------------------------------------
# Layers
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_state_risk_layer_replaces_previous_one():
    view = _view(FakeBackend())
    async with view.client:
        await view.apply(MapFilters(tipo="risco", estado="35"))
        assert view.state_risk_layer_key == SP_LAYER
        assert view.camera.bounds == [[-23.0, -48.0], [-21.0, -46.0]]

        await view.apply(view.filters.update(estado="51"))
        assert view.state_risk_layer_key == MT_LAYER

        await view.apply(view.filters.update(estado=None))

    assert view.state_risk_layer is None
    assert view.layer_events == [
        LayerEvent("add", STATE_RISK_LAYER, SP_LAYER),
        LayerEvent("remove", STATE_RISK_LAYER, SP_LAYER),
        LayerEvent("add", STATE_RISK_LAYER, MT_LAYER),
        LayerEvent("remove", STATE_RISK_LAYER, MT_LAYER),
    ]


@pytest.mark.asyncio
async def test_state_risk_layer_only_in_risk_view():
    view = _view(FakeBackend())
    async with view.client:
        await view.apply(MapFilters(tipo="risco", estado="35"))
        await view.apply(view.filters.update(tipo="foco_calor"))

    assert view.state_risk_layer is None
    assert view.layer_events[-1] == LayerEvent("remove", STATE_RISK_LAYER, SP_LAYER)


@pytest.mark.asyncio
async def test_missing_state_layer_leaves_no_layer():
    backend = FakeBackend()
    del backend.assets[SP_LAYER]
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(tipo="risco", estado="35"))

    assert view.state_risk_layer is None
    assert view.layer_events == []
    assert view.camera.bounds is None
    assert view.camera.center == LatLon(-23.55, -46.64)


@pytest.mark.asyncio
async def test_monthly_layer_then_points_when_fim_is_set():
    view = _view(FakeBackend())
    async with view.client:
        await view.apply(MapFilters(tipo="area_queimada", inicio="2024-06"))
        assert view.mode is DisplayMode.MONTHLY_POLYGONS
        assert view.monthly_layer is not None
        assert view.point_rows() == []

        await view.apply(view.filters.update(fim="2024-06-30"))

    assert view.monthly_layer is None
    assert view.mode is DisplayMode.POINTS
    assert len(view.point_rows()) == 1


@pytest.mark.asyncio
async def test_monthly_layer_uses_month_of_full_date():
    backend = FakeBackend()
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(tipo="area_queimada", inicio="2024-06-15"))

    assert view.monthly_layer == backend.assets[JUNE_LAYER]


@pytest.mark.asyncio
async def test_boundaries_load_and_missing_ones_stay_none():
    backend = FakeBackend()
    view = _view(backend)
    async with view.client:
        await view.load_boundaries()
        await view.apply(MapFilters(tipo="risco", estado="35"))

    assert view.boundaries["brasil"] is not None
    assert view.boundaries["biomas"] is None
    assert len(view.selected_state_boundary()["features"]) == 1
    assert view.selected_biome_boundary() is None


# -----------------------------------------------------------------------------
# Rows
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_rows_are_fetched_with_present_filters_only():
    backend = FakeBackend()
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(tipo="foco_calor", estado="35", bioma=""))

    api_requests = [r for r in backend.requests if r.url.host == "api.test"]
    assert [r.url.path for r in api_requests] == ["/foco_calor"]
    assert dict(api_requests[0].url.params) == {"estado": "35"}
    assert view.point_rows()[0]["estado"] == "35"


@pytest.mark.asyncio
async def test_risk_rows_are_grouped_by_selected_local():
    view = _view(FakeBackend())
    async with view.client:
        await view.apply(MapFilters(tipo="risco", local="bioma"))

    aggregates = view.risk_aggregates()
    assert [(a.key, a.total) for a in aggregates] == [("Cerrado", 1)]
    assert aggregates[0].media == pytest.approx(0.75)


@pytest.mark.asyncio
async def test_failed_row_fetch_gives_empty_rows():
    backend = FakeBackend()
    backend.api_status = 500
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(tipo="foco_calor"))

    assert view.rows == []


@pytest.mark.asyncio
async def test_no_kind_fetches_nothing():
    backend = FakeBackend()
    view = _view(backend)
    async with view.client:
        await view.apply(MapFilters(estado="35"))

    assert view.rows == []
    assert [r for r in backend.requests if r.url.host == "api.test"] == []


# -----------------------------------------------------------------------------
# Supersession
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_slow_rows_response_does_not_overwrite_newer_rows():
    backend = FakeBackend()
    entered, release = backend.hold("/foco_calor", estado="35")
    view = _view(backend)
    async with view.client:
        slow = asyncio.create_task(view.apply(MapFilters(tipo="foco_calor", estado="35")))
        await entered.wait()

        await view.apply(view.filters.update(estado="51"))
        assert view.rows[0]["estado"] == "51"

        release.set()
        await slow

    assert view.rows[0]["estado"] == "51"
    assert view.camera.center == LatLon(-12.64, -55.42)


@pytest.mark.asyncio
async def test_slow_state_layer_is_discarded_once_superseded():
    backend = FakeBackend()
    entered, release = backend.hold(SP_LAYER)
    view = _view(backend)
    async with view.client:
        slow = asyncio.create_task(view.apply(MapFilters(tipo="risco", estado="35")))
        await entered.wait()

        await view.apply(view.filters.update(estado="51"))
        release.set()
        await slow

    assert view.state_risk_layer_key == MT_LAYER
    assert view.layer_events == [LayerEvent("add", STATE_RISK_LAYER, MT_LAYER)]


@pytest.mark.asyncio
async def test_slow_monthly_layer_does_not_overwrite_newer_month():
    backend = FakeBackend()
    july = {"type": "FeatureCollection", "features": []}
    backend.assets[JULY_LAYER] = july
    entered, release = backend.hold(JUNE_LAYER)
    view = _view(backend)
    async with view.client:
        slow = asyncio.create_task(view.apply(MapFilters(tipo="area_queimada", inicio="2024-06")))
        await entered.wait()

        await view.apply(view.filters.update(inicio="2024-07"))
        assert view.monthly_layer == july

        release.set()
        await slow

    assert view.monthly_layer == july
    assert view.mode is DisplayMode.MONTHLY_POLYGONS


@pytest.mark.asyncio
async def test_slow_monthly_layer_stays_dropped_after_fim_is_set():
    backend = FakeBackend()
    entered, release = backend.hold(JUNE_LAYER)
    view = _view(backend)
    async with view.client:
        slow = asyncio.create_task(view.apply(MapFilters(tipo="area_queimada", inicio="2024-06")))
        await entered.wait()

        await view.apply(view.filters.update(fim="2024-06-30"))
        release.set()
        await slow

    assert view.monthly_layer is None
    assert view.mode is DisplayMode.POINTS
    assert len(view.point_rows()) == 1


@pytest.mark.asyncio
async def test_layer_event_trace_is_capped():
    view = _view(FakeBackend())
    async with view.client:
        for i in range(60):
            await view.apply(MapFilters(tipo="risco", estado="35" if i % 2 == 0 else "51"))

    assert len(view.layer_events) == LAYER_EVENT_LIMIT
    assert view.layer_events[-1] == LayerEvent("add", STATE_RISK_LAYER, MT_LAYER)
    assert view.layer_events[-2] == LayerEvent("remove", STATE_RISK_LAYER, SP_LAYER)
