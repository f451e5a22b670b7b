"""
Classificação de materiais e disciplinas de edital.
"""

from .taxonomy import (
    Taxonomy,
    TaxonomyEntry,
    default_taxonomy,
    infer_area,
    area_color,
)
from .discipline_classifier import (
    classify_path,
    match_discipline_name,
    path_segments,
    strip_accents,
)

__all__ = [
    "Taxonomy",
    "TaxonomyEntry",
    "default_taxonomy",
    "infer_area",
    "area_color",
    "classify_path",
    "match_discipline_name",
    "path_segments",
    "strip_accents",
]
