"""Reference tables for Brazilian states and biomes, keyed by store code."""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class LatLon:
    lat: float
    lon: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lon)


NATIONAL_CENTER = LatLon(-15.78, -47.92)
NATIONAL_ZOOM = 4
STATE_ZOOM = 6
MIN_ZOOM = 4

# [[south, west], [north, east]]
BRAZIL_BOUNDS = [[-34.0, -74.0], [5.3, -32.4]]

STATE_ABBREVIATIONS: Dict[str, str] = {
    "11": "RO", "12": "AC", "13": "AM", "14": "RR", "15": "PA", "16": "AP", "17": "TO",
    "21": "MA", "22": "PI", "23": "CE", "24": "RN", "25": "PB", "26": "PE", "27": "AL",
    "28": "SE", "29": "BA",
    "31": "MG", "32": "ES", "33": "RJ", "35": "SP",
    "41": "PR", "42": "SC", "43": "RS",
    "50": "MS", "51": "MT", "52": "GO", "53": "DF",
}

STATE_NAMES: Dict[str, str] = {
    "11": "Rondônia", "12": "Acre", "13": "Amazonas", "14": "Roraima", "15": "Pará",
    "16": "Amapá", "17": "Tocantins", "21": "Maranhão", "22": "Piauí", "23": "Ceará",
    "24": "Rio Grande do Norte", "25": "Paraíba", "26": "Pernambuco", "27": "Alagoas",
    "28": "Sergipe", "29": "Bahia", "31": "Minas Gerais", "32": "Espírito Santo",
    "33": "Rio de Janeiro", "35": "São Paulo", "41": "Paraná", "42": "Santa Catarina",
    "43": "Rio Grande do Sul", "50": "Mato Grosso do Sul", "51": "Mato Grosso",
    "52": "Goiás", "53": "Distrito Federal",
}

STATE_CENTROIDS: Dict[str, LatLon] = {
    "11": LatLon(-10.9, -62.8),
    "12": LatLon(-9.02, -70.81),
    "13": LatLon(-3.47, -65.10),
    "14": LatLon(2.05, -61.39),
    "15": LatLon(-3.79, -52.48),
    "16": LatLon(1.41, -51.77),
    "17": LatLon(-10.25, -48.25),
    "21": LatLon(-5.42, -45.44),
    "22": LatLon(-7.06, -42.82),
    "23": LatLon(-5.20, -39.50),
    "24": LatLon(-5.81, -36.59),
    "25": LatLon(-7.12, -36.72),
    "26": LatLon(-8.38, -37.86),
    "27": LatLon(-9.57, -36.78),
    "28": LatLon(-10.57, -37.45),
    "29": LatLon(-12.96, -41.55),
    "31": LatLon(-18.10, -44.38),
    "32": LatLon(-19.19, -40.34),
    "33": LatLon(-22.84, -43.15),
    "35": LatLon(-23.55, -46.64),
    "41": LatLon(-24.89, -51.55),
    "42": LatLon(-27.45, -50.95),
    "43": LatLon(-30.01, -53.43),
    "50": LatLon(-20.51, -54.54),
    "51": LatLon(-12.64, -55.42),
    "52": LatLon(-15.98, -49.86),
    "53": LatLon(-15.83, -47.86),
}

BIOME_NAMES: Dict[str, str] = {
    "1": "Amazônia",
    "2": "Caatinga",
    "3": "Cerrado",
    "4": "Mata Atlântica",
    "5": "Pampa",
    "6": "Pantanal",
}

BIOME_CENTROIDS: Dict[str, LatLon] = {
    "1": LatLon(-3, -60),
    "2": LatLon(-9, -40),
    "3": LatLon(-12, -47),
    "4": LatLon(-20, -43),
    "5": LatLon(-30, -53),
    "6": LatLon(-17, -57),
}


def _code(value) -> str:
    return "" if value is None else str(value)


def state_centroid(code) -> Optional[LatLon]:
    return STATE_CENTROIDS.get(_code(code))


def biome_centroid(code) -> Optional[LatLon]:
    return BIOME_CENTROIDS.get(_code(code))


def state_abbreviation(code) -> Optional[str]:
    return STATE_ABBREVIATIONS.get(_code(code))


def centroid_for(grouping: str, code) -> LatLon:
    """Centroid of a state or biome code; unknown codes get the national center."""
    lookup = BIOME_CENTROIDS if grouping == "bioma" else STATE_CENTROIDS
    return lookup.get(resolve_code(grouping, code), NATIONAL_CENTER)


def _normalize(value: str) -> str:
    return unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode().strip().lower()


_STATE_ALIASES: Dict[str, str] = {
    **{_normalize(abbr): code for code, abbr in STATE_ABBREVIATIONS.items()},
    **{_normalize(name): code for code, name in STATE_NAMES.items()},
}
_BIOME_ALIASES: Dict[str, str] = {_normalize(name): code for code, name in BIOME_NAMES.items()}


def resolve_code(grouping: str, value) -> str:
    """
    Store code for a state or biome given its code, UF or name.

    The occurrence API answers with names from the lookup tables while the
    centroid tables are keyed by code; anything unrecognised is returned
    unchanged.
    """
    code = _code(value)
    lookup, aliases = (
        (BIOME_CENTROIDS, _BIOME_ALIASES) if grouping == "bioma" else (STATE_CENTROIDS, _STATE_ALIASES)
    )
    if code in lookup:
        return code
    return aliases.get(_normalize(code), code)
