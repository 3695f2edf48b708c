#!/usr/bin/env python3
"""
=============================================================================
IGNIS - RENDERIZA O MAPA DO DASHBOARD EM HTML
=============================================================================

Busca as ocorrencias de um filtro na API e os GeoJSON do servidor de
arquivos estaticos, e grava o mapa (folium) num arquivo HTML.

Uso:
    python scripts/render_map.py --tipo risco --estado 35 --out mapa.html
    python scripts/render_map.py --tipo area_queimada --inicio 2024-06
    python scripts/render_map.py --tipo foco_calor --bioma 3 \
        --inicio 2024-06-01 --fim 2024-06-30

Requisitos:
    - API e servidor de GeoJSON acessiveis (API_BASE_URL / ASSETS_BASE_URL no .env)
=============================================================================
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(PROJECT_ROOT / ".env")

from ignis.map.client import DashboardClient  # noqa: E402
from ignis.map.layers import render_html  # noqa: E402
from ignis.map.view import MapFilters, MapView  # noqa: E402
from ignis.schemas.occurrence import GroupingKey, OccurrenceKind  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger("render_map")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Render the wildfire dashboard map to HTML")
    parser.add_argument("--tipo", choices=[k.value for k in OccurrenceKind], required=True)
    parser.add_argument("--estado", help="Codigo do estado (ex.: 35)")
    parser.add_argument("--bioma", help="Codigo do bioma (1-6)")
    parser.add_argument("--inicio", help="Data inicial YYYY-MM-DD (ou YYYY-MM para o mapa mensal)")
    parser.add_argument("--fim", help="Data final YYYY-MM-DD")
    parser.add_argument(
        "--local",
        choices=[g.value for g in GroupingKey],
        default=GroupingKey.ESTADO.value,
        help="Agrupamento da media de risco",
    )
    parser.add_argument("--api-url", help="Sobrescreve API_BASE_URL")
    parser.add_argument("--assets-url", help="Sobrescreve ASSETS_BASE_URL")
    parser.add_argument("--out", default="mapa.html", help="Arquivo HTML de saida")
    return parser.parse_args(argv)


async def render(args) -> str:
    filters = MapFilters(
        tipo=args.tipo,
        estado=args.estado,
        bioma=args.bioma,
        inicio=args.inicio,
        fim=args.fim,
        local=args.local,
    )
    async with DashboardClient(api_base_url=args.api_url, assets_base_url=args.assets_url) as client:
        view = MapView(client)
        await view.load_boundaries()
        await view.apply(filters)

    logger.info(f"Mode: {view.mode.value} | rows: {len(view.rows)}")
    return render_html(view)


def main(argv=None) -> int:
    args = parse_args(argv)
    document = asyncio.run(render(args))

    out = Path(args.out)
    out.write_text(document, encoding="utf-8")
    logger.info(f"Map written to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
