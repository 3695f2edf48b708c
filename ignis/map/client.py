"""
HTTP access for the map view: occurrence rows from the API and GeoJSON
overlays from the static asset server.

Failures never raise: a missing or broken asset is ``None`` and a failed
occurrence fetch is an empty list, so rendering carries on without that
overlay. There are no retries.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ignis.core.config import settings
from ignis.map.regions import state_abbreviation
from ignis.schemas.occurrence import OccurrenceFilters, OccurrenceKind

logger = logging.getLogger(__name__)

COUNTRY_BOUNDARY_PATH = "/geojson/brasil.geojson"
STATE_BOUNDARIES_PATH = "/geojson/estados.geojson"
BIOME_BOUNDARIES_PATH = "/geojson/biomas.geojson"


def state_risk_layer_path(state_code: str) -> Optional[str]:
    """Per-state risk point layer, or None when the code has no UF."""
    abbreviation = state_abbreviation(state_code)
    if not abbreviation:
        return None
    return f"/geojson/estados/risco_{abbreviation}.geojson"


def monthly_burned_area_path(month: str) -> str:
    """Monthly burned-area polygons; ``month`` is YYYY-MM (a full date is cut)."""
    return f"/geojson/area_queimada/{month[:7]}.geojson"


class DashboardClient:
    """Async client shared by one map view."""

    def __init__(
        self,
        api_base_url: Optional[str] = None,
        assets_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        timeout = settings.CLIENT_TIMEOUT if timeout is None else timeout
        self._api = httpx.AsyncClient(
            base_url=api_base_url or settings.API_BASE_URL,
            timeout=timeout,
            transport=transport,
        )
        self._assets = httpx.AsyncClient(
            base_url=assets_base_url or settings.ASSETS_BASE_URL,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._api.aclose()
        await self._assets.aclose()

    async def fetch_occurrences(
        self, kind: OccurrenceKind, filters: OccurrenceFilters
    ) -> List[Dict[str, Any]]:
        path = f"/{OccurrenceKind(kind).value}"
        try:
            response = await self._api.get(path, params=filters.present())
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("occurrence fetch failed for %s: %s", path, exc)
            return []

        if not isinstance(rows, list):
            logger.warning("occurrence fetch for %s did not return a list", path)
            return []
        return rows

    async def fetch_geojson(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self._assets.get(path)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GeoJSON not available at %s: %s", path, exc)
            return None

        if not isinstance(data, dict):
            logger.warning("GeoJSON at %s is not an object", path)
            return None
        return data
