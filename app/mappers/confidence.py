"""
app/mappers/confidence.py

Advisory confidence score for a suggested mapping.
"""

from __future__ import annotations

import math
from typing import Mapping

from app.domain.rate_import import ConfidenceScore

MAX_EXPECTED_FIELDS = 15
ESSENTIAL_FIELDS: tuple[str, ...] = ("origin", "destination", "base_rate")
ESSENTIAL_FIELD_BONUS = 10
EXISTING_TEMPLATE_PENALTY = 5
MAX_EXISTING_TEMPLATE_PENALTY = 20


def score_mapping(
    field_mappings: Mapping[str, str | None],
    existing_template_count: int,
) -> ConfidenceScore:
    """
    Score a suggested mapping from 0 to 100.

    Coverage counts mapped fields against a nominal fifteen. Each essential
    field adds a fixed bonus when it, or its city/province variant, is mapped.
    Existing templates for the same carrier reduce the score since the
    operator likely needs to pick one rather than create another.
    """

    mapped = [name for name, column in field_mappings.items() if column]
    coverage = min(len(mapped) / MAX_EXPECTED_FIELDS, 1.0) * 100

    essential_bonus = 0
    for name in ESSENTIAL_FIELDS:
        if any(field_mappings.get(candidate) for candidate in (name, f"{name}_city", f"{name}_province")):
            essential_bonus += ESSENTIAL_FIELD_BONUS

    penalty = min(EXISTING_TEMPLATE_PENALTY * max(0, existing_template_count), MAX_EXISTING_TEMPLATE_PENALTY)
    overall = max(0.0, min(100.0, coverage + essential_bonus - penalty))

    return ConfidenceScore(
        overall=_round_half_up(overall),
        field_coverage=_round_half_up(coverage),
        essential_fields=essential_bonus,
        existing_templates=-penalty,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
