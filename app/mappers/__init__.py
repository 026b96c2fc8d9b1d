"""
app/mappers package marker.
"""

from app.mappers.confidence import score_mapping
from app.mappers.mapping_heuristics import (
    DEFAULT_RULE_GROUPS,
    HeaderRule,
    HeaderRuleGroup,
    MappingHeuristics,
    normalize_header,
)

__all__ = [
    "DEFAULT_RULE_GROUPS",
    "HeaderRule",
    "HeaderRuleGroup",
    "MappingHeuristics",
    "normalize_header",
    "score_mapping",
]
