from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ignis.core.errors import OccurrenceQueryError
from ignis.schemas.occurrence import OccurrenceFilters, OccurrenceKind
from ignis.services.query_builder import build_occurrence_query

logger = logging.getLogger(__name__)

ERROR_MESSAGES: Dict[OccurrenceKind, str] = {
    OccurrenceKind.RISCO: "Erro ao buscar risco de fogo",
    OccurrenceKind.FOCO_CALOR: "Erro ao buscar foco de calor",
    OccurrenceKind.AREA_QUEIMADA: "Erro ao buscar área queimada",
}


class OccurrenceService:
    """Read-only access to risk, heat-focus and burned-area records."""
    def __init__(self, db: Session):
        self.db = db

    def list_occurrences(
        self,
        kind: OccurrenceKind,
        filters: Optional[OccurrenceFilters] = None,
    ) -> List[dict]:
        kind = OccurrenceKind(kind)
        query = build_occurrence_query(kind, filters)

        logger.debug(
            "occurrence query kind=%s params=%d", kind.value, len(query.params)
        )
        try:
            rows = self.db.execute(text(query.sql), query.bind_params()).mappings().all()
        except SQLAlchemyError as exc:
            # DBAPI errors carry the driver message in .orig, without the SQL echo
            detail = str(getattr(exc, "orig", None) or exc).strip()
            logger.error("%s: %s", ERROR_MESSAGES[kind], detail)
            self.db.rollback()
            raise OccurrenceQueryError(ERROR_MESSAGES[kind], detail) from exc

        return [dict(row) for row in rows]
