"""
=============================================================================
IGNIS API - OCCURRENCE ENDPOINTS
=============================================================================

Read-only listings behind the map dashboard.

Endpoints:
    GET /risco - Fire-risk probability records
    GET /foco_calor - Heat-focus detections (+ dia_sem_chuva, precipitacao, frp)
    GET /area_queimada - Burned-area records (+ frp)

Every endpoint accepts the same optional filters (estado, bioma, inicio,
fim). State and biome are store-internal numeric codes passed through as
opaque strings: unknown codes answer with an empty list, not an error.
Store failures answer 500 with {"erro", "detalhes"}.
=============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ignis.api import deps
from ignis.schemas.occurrence import (
    BurnedAreaOccurrence,
    HeatFocusOccurrence,
    OccurrenceFilters,
    OccurrenceKind,
    RiskOccurrence,
    listing_responses,
)
from ignis.services.occurrence_service import OccurrenceService

router = APIRouter()


def get_occurrence_service(db: Session = Depends(deps.get_db)) -> OccurrenceService:
    """Return occurrence service bound to request DB session."""
    return OccurrenceService(db)


def occurrence_filters(
    estado: Optional[str] = Query(None, description="Codigo do estado (id_estado)"),
    bioma: Optional[str] = Query(None, description="Codigo do bioma"),
    inicio: Optional[str] = Query(None, description="Data inicial (YYYY-MM-DD)"),
    fim: Optional[str] = Query(None, description="Data final (YYYY-MM-DD)"),
) -> OccurrenceFilters:
    return OccurrenceFilters(estado=estado, bioma=bioma, inicio=inicio, fim=fim)


@router.get(
    "/risco",
    response_model=None,
    responses=listing_responses(RiskOccurrence),
    summary="Risco de fogo",
    description="Lista pontos de risco de fogo filtrados por estado, bioma e periodo.",
)
def list_fire_risk(
    filters: OccurrenceFilters = Depends(occurrence_filters),
    service: OccurrenceService = Depends(get_occurrence_service),
) -> List[Dict[str, Any]]:
    return service.list_occurrences(OccurrenceKind.RISCO, filters)


@router.get(
    "/foco_calor",
    response_model=None,
    responses=listing_responses(HeatFocusOccurrence),
    summary="Focos de calor",
    description="Lista focos de calor com dias sem chuva, precipitacao e FRP.",
)
def list_heat_foci(
    filters: OccurrenceFilters = Depends(occurrence_filters),
    service: OccurrenceService = Depends(get_occurrence_service),
) -> List[Dict[str, Any]]:
    return service.list_occurrences(OccurrenceKind.FOCO_CALOR, filters)


@router.get(
    "/area_queimada",
    response_model=None,
    responses=listing_responses(BurnedAreaOccurrence),
    summary="Area queimada",
    description="Lista registros de area queimada com FRP.",
)
def list_burned_area(
    filters: OccurrenceFilters = Depends(occurrence_filters),
    service: OccurrenceService = Depends(get_occurrence_service),
) -> List[Dict[str, Any]]:
    return service.list_occurrences(OccurrenceKind.AREA_QUEIMADA, filters)
