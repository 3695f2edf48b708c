"""
Occurrence schemas shared by the API and the map client.

Field names follow the store columns (Portuguese) because the dashboard
consumes them verbatim.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OccurrenceKind(str, Enum):
    RISCO = "risco"
    FOCO_CALOR = "foco_calor"
    AREA_QUEIMADA = "area_queimada"


class GroupingKey(str, Enum):
    ESTADO = "estado"
    BIOMA = "bioma"


class OccurrenceFilters(BaseModel):
    """Optional filters; values are opaque store codes and ISO date strings."""

    model_config = ConfigDict(frozen=True)

    estado: Optional[str] = None
    bioma: Optional[str] = None
    inicio: Optional[str] = None
    fim: Optional[str] = None

    def present(self) -> dict:
        """Filters that take part in a query, empty strings included as absent."""
        return {
            key: value
            for key, value in (
                ("estado", self.estado),
                ("bioma", self.bioma),
                ("inicio", self.inicio),
                ("fim", self.fim),
            )
            if value
        }


class RiskOccurrence(BaseModel):
    """Row shape for the OpenAPI docs; listings return store rows unchanged."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    estado: Optional[str] = None
    bioma: Optional[str] = None
    risco_fogo: Optional[float] = None
    data: Optional[Union[datetime, date, str]] = None


class BurnedAreaOccurrence(RiskOccurrence):
    frp: Optional[float] = None


class HeatFocusOccurrence(BurnedAreaOccurrence):
    dia_sem_chuva: Optional[int] = None
    precipitacao: Optional[float] = None


class OccurrenceErrorResponse(BaseModel):
    erro: str = Field(..., examples=["Erro ao buscar risco de fogo"])
    detalhes: Optional[str] = Field(
        None, examples=['relation "risco" does not exist']
    )


ERROR_RESPONSES = {
    500: {"model": OccurrenceErrorResponse, "description": "Store failure"},
}


def listing_responses(row_model: type) -> dict:
    """OpenAPI ``responses=`` for a listing; rows are not re-validated on the way out."""
    return {
        200: {"model": List[row_model], "description": "Every matching row"},
        **ERROR_RESPONSES,
    }
