"""
Ignis Services Module.

Services:
    - OccurrenceService: read-only risk, heat-focus and burned-area queries
    - build_occurrence_query: parameterized SELECT per record kind
"""

from .occurrence_service import OccurrenceService
from .query_builder import OccurrenceQuery, build_occurrence_query

__all__ = ["OccurrenceService", "OccurrenceQuery", "build_occurrence_query"]
